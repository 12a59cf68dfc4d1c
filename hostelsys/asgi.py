"""
ASGI config for the hostelsys project.

Only HTTP is served; the API has no WebSocket endpoints.
"""
import os

from django.core.asgi import get_asgi_application  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "hostelsys.settings")

application = get_asgi_application()
