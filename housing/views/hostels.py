from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated

from ..permissions import IsAdminOrReadOnly
from ..responses import created, ok
from ..serializers.hostels import HostelListQuerySerializer, HostelSerializer
from ..services import hostels as hostel_service


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def hostels_list(request):
    if request.method == 'GET':
        q = HostelListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        return ok(hostel_service.list_hostels(**q.validated_data))

    s = HostelSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    hostel = hostel_service.create_hostel(s.model_fields())
    return created({'hostel': hostel_service.format_hostel(hostel)}, 'Hostel created successfully')


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated, IsAdminOrReadOnly])
def hostel_detail(request, pk: int):
    if request.method == 'GET':
        return ok(hostel_service.hostel_detail(pk))
    if request.method == 'DELETE':
        hostel_service.delete_hostel(pk)
        return ok(message='Hostel deleted successfully')

    s = HostelSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    hostel = hostel_service.update_hostel(pk, s.model_fields())
    return ok({'hostel': hostel_service.format_hostel(hostel)}, 'Hostel updated successfully')
