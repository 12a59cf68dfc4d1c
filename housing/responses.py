from rest_framework import status as http_status
from rest_framework.response import Response


def ok(data=None, message: str | None = None, status: int = http_status.HTTP_200_OK) -> Response:
    """Wrap ``data`` in the ``{success, message?, data?}`` envelope."""
    payload: dict[str, object] = {'success': True}
    if message:
        payload['message'] = message
    if data is not None:
        payload['data'] = data
    return Response(payload, status=status)


def created(data=None, message: str | None = None) -> Response:
    return ok(data, message, status=http_status.HTTP_201_CREATED)
