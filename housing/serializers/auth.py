from rest_framework import serializers

from .common import GENDERS, CleanCharField, MatricField, PageQuerySerializer, PhoneField


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True)
    matricNumber = MatricField(required=False, allow_blank=True)
    password = serializers.CharField(error_messages={'required': 'Password is required',
                                                     'blank': 'Password is required'})

    def validate(self, attrs):
        if not attrs.get('email') and not attrs.get('matricNumber'):
            raise serializers.ValidationError('Email or matric number is required')
        return attrs


class RegisterSerializer(serializers.Serializer):
    name = CleanCharField(min_length=2, max_length=100)
    email = serializers.EmailField()
    password = serializers.CharField(min_length=6, write_only=True)
    role = serializers.ChoiceField(choices=['student', 'admin'], default='student')
    gender = serializers.ChoiceField(choices=GENDERS)
    phoneNumber = PhoneField()
    matricNumber = MatricField(required=False, allow_blank=True)
    level = serializers.ChoiceField(choices=['100', '200', '300', '400', '500'], required=False, allow_blank=True)
    department = CleanCharField(min_length=2, max_length=100, required=False, allow_blank=True)

    def validate_email(self, v):
        return v.strip().lower()

    def validate(self, attrs):
        if attrs.get('role', 'student') == 'student':
            if not (attrs.get('matricNumber') and attrs.get('level') and attrs.get('department')):
                raise serializers.ValidationError(
                    'Matric number, level, and department are required for students'
                )
        return attrs

    def model_fields(self) -> dict:
        vd = self.validated_data
        fields = {
            'name': vd['name'],
            'email': vd['email'],
            'password': vd['password'],
            'role': vd.get('role', 'student'),
            'gender': vd['gender'],
            'phone_number': vd['phoneNumber'],
        }
        if fields['role'] == 'student':
            fields.update(
                matric_number=vd['matricNumber'],
                level=vd['level'],
                department=vd['department'],
            )
        return fields


class ProfileUpdateSerializer(serializers.Serializer):
    name = CleanCharField(min_length=2, max_length=100, required=False)
    phoneNumber = PhoneField(required=False)
    department = CleanCharField(min_length=2, max_length=100, required=False)

    def model_fields(self) -> dict:
        mapping = {'name': 'name', 'phoneNumber': 'phone_number', 'department': 'department'}
        return {mapping[k]: v for k, v in self.validated_data.items()}


class ChangePasswordSerializer(serializers.Serializer):
    currentPassword = serializers.CharField()
    newPassword = serializers.CharField(min_length=6)


class UserListQuerySerializer(PageQuerySerializer):
    role = serializers.ChoiceField(choices=['student', 'admin'], required=False)
    gender = serializers.ChoiceField(choices=GENDERS, required=False)
    level = serializers.CharField(required=False)
    department = serializers.CharField(required=False)
    hasRoom = serializers.BooleanField(required=False, allow_null=True, default=None)
    search = serializers.CharField(required=False, allow_blank=True)
