"""
Root URL configuration.

The API itself lives in ``housing.routers``; this module adds the Django
admin and the generated OpenAPI pages (``/swagger/`` and ``/redoc/``).
"""
from django.contrib import admin
from django.urls import include, path

from drf_yasg import openapi
from drf_yasg.views import get_schema_view
from rest_framework import permissions

api_info = openapi.Info(
    title="Hostel Allocation API",
    default_version='v1',
    description="Hostel applications, bed allocation and occupancy reports.",
)

schema_view = get_schema_view(api_info, public=True, permission_classes=(permissions.AllowAny,))

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', include('housing.routers')),
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
