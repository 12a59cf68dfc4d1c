from rest_framework import serializers

from .common import GENDERS, ROOM_TYPES, CleanCharField, PageQuerySerializer

CONDITIONS = ['excellent', 'good', 'fair', 'needs_repair']

_FIELD_MAP = {
    'number': 'number',
    'hostel': 'hostel',
    'capacity': 'capacity',
    'type': 'type',
    'isEnsuite': 'is_ensuite',
    'gender': 'gender',
    'price': 'price',
    'amenities': 'amenities',
    'condition': 'condition',
    'isActive': 'is_active',
}


class RoomSerializer(serializers.Serializer):
    number = CleanCharField(min_length=1, max_length=10)
    hostel = serializers.IntegerField()
    capacity = serializers.IntegerField(min_value=1, max_value=4)
    type = serializers.ChoiceField(choices=ROOM_TYPES)
    isEnsuite = serializers.BooleanField(required=False, default=False)
    gender = serializers.ChoiceField(choices=GENDERS)
    price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    amenities = serializers.ListField(child=CleanCharField(max_length=100), required=False, default=list)
    condition = serializers.ChoiceField(choices=CONDITIONS, required=False, default='good')
    isActive = serializers.BooleanField(required=False, default=True)

    def model_fields(self) -> dict:
        return {_FIELD_MAP[k]: v for k, v in self.validated_data.items() if k in _FIELD_MAP}


class RoomUpdateSerializer(RoomSerializer):
    """Partial update; occupancy fields are not part of the payload at all."""
    hostel = None

    def __init__(self, *args, **kwargs):
        kwargs.setdefault('partial', True)
        super().__init__(*args, **kwargs)


class AssignSerializer(serializers.Serializer):
    studentId = serializers.IntegerField(required=False, allow_null=True)
    roomId = serializers.IntegerField(required=False, allow_null=True)
    applicationId = serializers.IntegerField(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs.get('studentId') is None or attrs.get('roomId') is None:
            raise serializers.ValidationError('Student ID and Room ID are required')
        return attrs


class RemoveStudentSerializer(serializers.Serializer):
    studentId = serializers.IntegerField(error_messages={'required': 'Student ID is required'})


class RoomListQuerySerializer(PageQuerySerializer):
    hostel = serializers.IntegerField(required=False)
    gender = serializers.ChoiceField(choices=GENDERS, required=False)
    type = serializers.ChoiceField(choices=ROOM_TYPES, required=False)
    available = serializers.BooleanField(required=False, allow_null=True, default=None)


class AvailableRoomsQuerySerializer(serializers.Serializer):
    gender = serializers.ChoiceField(choices=GENDERS, error_messages={'required': 'Gender parameter is required'})
    type = serializers.ChoiceField(choices=ROOM_TYPES, required=False)
    hostel = serializers.IntegerField(required=False)


class OccupancyReportQuerySerializer(serializers.Serializer):
    hostel = serializers.IntegerField(required=False)
    gender = serializers.ChoiceField(choices=GENDERS, required=False)
