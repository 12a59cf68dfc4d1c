import bleach
from rest_framework import serializers

from housing.models import MATRIC_RE, PHONE_RE

GENDERS = ['male', 'female']
ROOM_TYPES = ['single', 'double', 'triple', 'quad']


def clean_text(v: str) -> str:
    return bleach.clean((v or '').strip(), tags=[], strip=True)


class PhoneField(serializers.RegexField):
    def __init__(self, **kwargs):
        kwargs.setdefault('error_messages', {'invalid': 'Please enter a valid Nigerian phone number'})
        super().__init__(PHONE_RE, **kwargs)


class MatricField(serializers.RegexField):
    def __init__(self, **kwargs):
        kwargs.setdefault('error_messages', {'invalid': 'Invalid matric number format (e.g., CU/20/1234)'})
        super().__init__(MATRIC_RE, **kwargs)

    def to_internal_value(self, data):
        return super().to_internal_value((data or '').strip().upper())


class CleanCharField(serializers.CharField):
    """CharField with markup stripped before length checks."""

    def to_internal_value(self, data):
        return super().to_internal_value(clean_text(str(data)))


class PageQuerySerializer(serializers.Serializer):
    page = serializers.IntegerField(required=False, min_value=1, default=1)
    limit = serializers.IntegerField(required=False, min_value=1, max_value=100, default=20)
