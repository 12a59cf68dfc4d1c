from datetime import timedelta

import pytest
from django.utils import timezone
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from housing.models import AuditEvent, User

from .conftest import authed

pytestmark = pytest.mark.django_db


def register_payload(**overrides):
    payload = {
        'name': 'Ada Obi',
        'email': 'Ada.Obi@Student.calebu.edu.ng',
        'password': 'secret123',
        'gender': 'female',
        'phoneNumber': '08033333333',
        'matricNumber': 'cu/21/2001',
        'level': '100',
        'department': 'Mass Communication',
    }
    payload.update(overrides)
    return payload


def test_register_then_login_by_matric_number():
    client = APIClient()
    r = client.post('/api/auth/register', register_payload(), format='json')
    assert r.status_code == 201, r.data
    assert r.data['data']['token']
    user = r.data['data']['user']
    assert user['email'] == 'ada.obi@student.calebu.edu.ng'
    assert user['matricNumber'] == 'CU/21/2001'
    assert user['role'] == 'student'

    r = client.post('/api/auth/login', {'matricNumber': 'CU/21/2001', 'password': 'secret123'}, format='json')
    assert r.status_code == 200
    assert r.data['message'] == 'Login successful'
    assert AuditEvent.objects.filter(action='login', detail__result='ok').exists()


def test_register_student_needs_academic_details():
    r = APIClient().post('/api/auth/register', register_payload(level=''), format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Matric number, level, and department are required for students'


def test_register_duplicate_email_conflicts(student):
    r = APIClient().post('/api/auth/register', register_payload(email=student.email), format='json')
    assert r.status_code == 400
    assert r.data['code'] == 'conflict'
    assert User.objects.filter(email=student.email).count() == 1


def test_login_with_wrong_password(student):
    r = APIClient().post('/api/auth/login', {'email': student.email, 'password': 'nope'}, format='json')
    assert r.status_code == 401
    assert r.data == {'success': False, 'message': 'Invalid credentials', 'code': 'invalid_credentials'}
    assert AuditEvent.objects.filter(action='login', detail__result='fail').exists()


def test_login_requires_an_identifier():
    r = APIClient().post('/api/auth/login', {'password': 'x'}, format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Email or matric number is required'


def test_profile_shows_no_room(student_client):
    r = student_client.get('/api/auth/profile')
    assert r.status_code == 200
    assert r.data['data']['user']['roomAssigned'] is None


def test_profile_update_and_password_change(student, student_client):
    r = student_client.put('/api/auth/profile', {'name': '<b>Johnny</b> Doe', 'phoneNumber': '09012345678'},
                           format='json')
    assert r.status_code == 200
    assert r.data['data']['user']['name'] == 'Johnny Doe'

    r = student_client.post('/api/auth/change-password',
                            {'currentPassword': 'wrong', 'newPassword': 'another1'}, format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Current password is incorrect'
    r = student_client.post('/api/auth/change-password',
                            {'currentPassword': 'student123', 'newPassword': 'another1'}, format='json')
    assert r.status_code == 200
    student.refresh_from_db()
    assert student.check_password('another1')


def test_missing_token():
    r = APIClient().get('/api/auth/profile')
    assert r.status_code == 401
    assert r.data['message'] == 'Access token required'


def test_expired_token_is_distinguished_from_invalid(student):
    token = AccessToken.for_user(student)
    token.set_exp(from_time=timezone.now() - timedelta(days=2), lifetime=timedelta(hours=1))
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
    r = client.get('/api/auth/profile')
    assert r.status_code == 401
    assert r.data['message'] == 'Token expired'

    client.credentials(HTTP_AUTHORIZATION='Bearer not-a-jwt')
    r = client.get('/api/auth/profile')
    assert r.status_code == 401
    assert r.data['message'] == 'Invalid token'


def test_deactivated_user_token_is_refused(student):
    client = authed(student)
    student.is_active = False
    student.save(update_fields=['is_active'])
    r = client.get('/api/auth/profile')
    assert r.status_code == 401
    assert r.data['message'] == 'Invalid token or user not found'


def test_students_are_kept_out_of_admin_routes(student_client):
    for path in ('/api/admin/dashboard', '/api/admin/users', '/api/admin/reports/occupancy'):
        r = student_client.get(path)
        assert r.status_code == 403, path
        assert r.data['success'] is False


def test_admin_toggles_user_status(admin_client, student):
    r = admin_client.put(f'/api/admin/users/{student.pk}/toggle-status')
    assert r.status_code == 200
    assert r.data['message'] == 'User deactivated successfully'
    student.refresh_from_db()
    assert student.is_active is False

    r = admin_client.get('/api/admin/users', {'role': 'student'})
    assert r.data['data']['pagination']['total'] == 1


def test_refresh_and_logout():
    client = APIClient()
    r = client.post('/api/auth/register', register_payload(), format='json')
    refresh = r.data['data']['refresh']

    r = client.post('/api/auth/refresh', {'refresh': refresh}, format='json')
    assert r.status_code == 200
    access = r.data['data']['token']

    client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
    r = client.post('/api/auth/logout', {'refresh': refresh}, format='json')
    assert r.status_code == 200
    assert r.data['data']['blacklisted'] == 1

    client.credentials()
    r = client.post('/api/auth/refresh', {'refresh': refresh}, format='json')
    assert r.status_code == 401
