import logging
import time

logger = logging.getLogger(__name__)


class RequestLogMiddleware:
    """Log one line per request: method, path, origin, status and duration."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - started) * 1000
        origin = request.META.get('HTTP_ORIGIN') or request.META.get('REMOTE_ADDR') or '-'
        logger.info(
            '%s %s origin=%s status=%s %.1fms',
            request.method, request.get_full_path(), origin, response.status_code, elapsed_ms,
        )
        return response
