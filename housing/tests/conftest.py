import pytest
from django.core.cache import cache
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from housing.models import Hostel, Room, User


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


def make_student(email, *, gender='male', matric='CU/20/1001', **extra):
    return User.objects.create_user(
        username=email, email=email, password='student123', name=extra.pop('name', 'Test Student'),
        role=User.ROLE_STUDENT, gender=gender, phone_number='08011111111', matric_number=matric,
        level='200', department='Computer Science', **extra,
    )


def make_room(hostel, number='001', *, capacity=2, **extra):
    room_type = {1: 'single', 2: 'double', 3: 'triple', 4: 'quad'}[capacity]
    return Room.objects.create(
        hostel=hostel, hostel_name=hostel.name, number=number, capacity=capacity, type=room_type,
        gender=hostel.gender, price=100000, **extra,
    )


def application_payload(hostel, *, year='2024/2025', semester='first'):
    return {
        'academicYear': year,
        'semester': semester,
        'personalInfo': {
            'guardianName': 'Mary Doe',
            'guardianPhone': '08055555555',
            'guardianEmail': 'mary.doe@example.com',
            'homeAddress': '12 Unity Road, Ikeja, Lagos',
            'stateOfOrigin': 'Lagos',
            'emergencyContact': {'name': 'Peter Doe', 'phone': '+2348066666666', 'relationship': 'Uncle'},
        },
        'preferences': {'hostelPreference': hostel.pk, 'roomTypePreference': 'double'},
    }


def authed(user) -> APIClient:
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {AccessToken.for_user(user)}')
    return client


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        username='admin@calebu.edu.ng', email='admin@calebu.edu.ng', password='admin123', name='Admin User',
        role=User.ROLE_ADMIN, gender='male', phone_number='08012345678',
    )


@pytest.fixture
def student(db):
    return make_student('john.doe@student.calebu.edu.ng', name='John Doe')


@pytest.fixture
def female_student(db):
    return make_student('jane.smith@student.calebu.edu.ng', gender='female', matric='CU/20/1002', name='Jane Smith')


@pytest.fixture
def hostel(db):
    return Hostel.objects.create(
        name='Caleb Hall (Male)', gender='male', total_rooms=10,
        room_types=[{'type': 'double', 'count': 10, 'price': 120000}],
    )


@pytest.fixture
def room(hostel):
    return make_room(hostel, '001', capacity=2)


@pytest.fixture
def admin_client(admin_user):
    return authed(admin_user)


@pytest.fixture
def student_client(student):
    return authed(student)
