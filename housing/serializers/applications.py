from rest_framework import serializers

from housing.models import ACADEMIC_YEAR_RE, Hostel

from .common import ROOM_TYPES, CleanCharField, PageQuerySerializer, PhoneField


class EmergencyContactSerializer(serializers.Serializer):
    name = CleanCharField(min_length=2, max_length=100)
    phone = PhoneField()
    relationship = CleanCharField(min_length=2, max_length=50)


class PersonalInfoSerializer(serializers.Serializer):
    guardianName = CleanCharField(min_length=2, max_length=100)
    guardianPhone = PhoneField()
    guardianEmail = serializers.EmailField()
    homeAddress = CleanCharField(min_length=10, max_length=200)
    stateOfOrigin = CleanCharField(min_length=2, max_length=50)
    emergencyContact = EmergencyContactSerializer()


class PreferencesSerializer(serializers.Serializer):
    hostelPreference = serializers.PrimaryKeyRelatedField(queryset=Hostel.objects.all())
    roomTypePreference = serializers.ChoiceField(choices=ROOM_TYPES)
    specialRequests = CleanCharField(max_length=300, required=False, allow_blank=True, default='')


class DocumentSerializer(serializers.Serializer):
    name = CleanCharField(max_length=200)
    url = serializers.URLField()
    uploadedAt = serializers.DateTimeField(required=False)


class ApplicationSerializer(serializers.Serializer):
    """Submission and update payload; nested camelCase in, model fields out."""
    academicYear = serializers.RegexField(
        ACADEMIC_YEAR_RE,
        error_messages={'invalid': 'Academic year format should be YYYY/YYYY (e.g., 2024/2025)'},
    )
    semester = serializers.ChoiceField(choices=['first', 'second'])
    personalInfo = PersonalInfoSerializer()
    preferences = PreferencesSerializer()
    documents = DocumentSerializer(many=True, required=False)
    paymentStatus = serializers.ChoiceField(choices=['pending', 'paid', 'partial', 'overdue'], required=False)

    def model_fields(self) -> dict:
        vd = self.validated_data
        out: dict = {}
        if 'academicYear' in vd:
            out['academic_year'] = vd['academicYear']
        if 'semester' in vd:
            out['semester'] = vd['semester']
        info = vd.get('personalInfo') or {}
        for src, dst in (('guardianName', 'guardian_name'), ('guardianPhone', 'guardian_phone'),
                         ('guardianEmail', 'guardian_email'), ('homeAddress', 'home_address'),
                         ('stateOfOrigin', 'state_of_origin')):
            if src in info:
                out[dst] = info[src]
        contact = info.get('emergencyContact') or {}
        for src, dst in (('name', 'emergency_name'), ('phone', 'emergency_phone'),
                         ('relationship', 'emergency_relationship')):
            if src in contact:
                out[dst] = contact[src]
        prefs = vd.get('preferences') or {}
        if 'hostelPreference' in prefs:
            out['hostel_preference'] = prefs['hostelPreference']
        if 'roomTypePreference' in prefs:
            out['room_type_preference'] = prefs['roomTypePreference']
        if 'specialRequests' in prefs:
            out['special_requests'] = prefs['specialRequests']
        if 'documents' in vd:
            out['documents'] = [
                {
                    'name': d['name'],
                    'url': d['url'],
                    'uploadedAt': d['uploadedAt'].isoformat() if d.get('uploadedAt') else None,
                }
                for d in vd['documents']
            ]
        if 'paymentStatus' in vd:
            out['payment_status'] = vd['paymentStatus']
        return out


class ReviewSerializer(serializers.Serializer):
    comments = serializers.CharField(required=False, allow_blank=True, max_length=500, default='')


class ApplicationListQuerySerializer(PageQuerySerializer):
    status = serializers.ChoiceField(choices=['pending', 'approved', 'rejected', 'assigned'], required=False)
    academicYear = serializers.CharField(required=False)
    semester = serializers.ChoiceField(choices=['first', 'second'], required=False)


class ApplicationsReportQuerySerializer(serializers.Serializer):
    academicYear = serializers.CharField(required=False)
    semester = serializers.ChoiceField(choices=['first', 'second'], required=False)
    status = serializers.ChoiceField(choices=['pending', 'approved', 'rejected', 'assigned'], required=False)
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)
