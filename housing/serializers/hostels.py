from rest_framework import serializers

from .common import GENDERS, ROOM_TYPES, CleanCharField, PhoneField


class RoomTypeSerializer(serializers.Serializer):
    type = serializers.ChoiceField(choices=ROOM_TYPES)
    count = serializers.IntegerField(min_value=0)
    price = serializers.FloatField(min_value=0)


class WardenSerializer(serializers.Serializer):
    name = CleanCharField(max_length=100, required=False, allow_blank=True)
    phoneNumber = PhoneField(required=False, allow_blank=True)
    email = serializers.EmailField(required=False, allow_blank=True)


class HostelSerializer(serializers.Serializer):
    name = CleanCharField(min_length=2, max_length=100)
    gender = serializers.ChoiceField(choices=GENDERS)
    description = CleanCharField(max_length=500, required=False, allow_blank=True, default='')
    roomTypes = RoomTypeSerializer(many=True, allow_empty=False,
                                   error_messages={'empty': 'At least one room type is required'})
    totalRooms = serializers.IntegerField(min_value=1)
    facilities = serializers.ListField(child=CleanCharField(max_length=100), required=False, default=list)
    rules = serializers.ListField(child=CleanCharField(max_length=300), required=False, default=list)
    warden = WardenSerializer(required=False)
    isActive = serializers.BooleanField(required=False, default=True)

    def model_fields(self) -> dict:
        mapping = {
            'name': 'name', 'gender': 'gender', 'description': 'description',
            'roomTypes': 'room_types', 'totalRooms': 'total_rooms', 'facilities': 'facilities',
            'rules': 'rules', 'warden': 'warden', 'isActive': 'is_active',
        }
        out = {}
        for key, value in self.validated_data.items():
            if key == 'roomTypes':
                value = [dict(rt) for rt in value]
            elif key == 'warden':
                value = dict(value)
            out[mapping[key]] = value
        return out


class HostelListQuerySerializer(serializers.Serializer):
    gender = serializers.ChoiceField(choices=GENDERS, required=False)
    active = serializers.BooleanField(required=False, allow_null=True, default=None)
