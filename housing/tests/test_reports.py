import pytest
from django.core.management import call_command

from housing.models import Application, Hostel
from housing.services import reports

from .conftest import make_room, make_student
from .test_applications import submit

pytestmark = pytest.mark.django_db

YEAR = '2024/2025'


def test_dashboard_counts(admin_client, student, female_student, hostel, room, admin_user):
    submit(student, hostel)
    submit(female_student, hostel).reject(admin_user, 'Wrong hostel')

    r = admin_client.get('/api/admin/dashboard', {'academicYear': YEAR})
    assert r.status_code == 200
    data = r.data['data']
    assert data['academicYear'] == YEAR
    assert data['applications']['total'] == 2
    assert data['applications']['pending'] == 1
    assert data['applications']['rejected'] == 1
    assert data['users'] == {'totalStudents': 2, 'totalAdmins': 1, 'studentsWithRooms': 0, 'studentsWithoutRooms': 2}
    assert data['hostels']['total'] == 1
    assert data['beds'] == {'total': 2, 'occupied': 0, 'available': 2, 'occupancyRate': 0.0}


def test_dashboard_cache_is_invalidated_on_commit(admin_client, student, room,
                                                  django_capture_on_commit_callbacks):
    before = admin_client.get('/api/admin/dashboard', {'academicYear': YEAR}).data['data']
    assert before['beds']['occupied'] == 0

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        r = admin_client.post('/api/rooms/assign', {'studentId': student.pk, 'roomId': room.pk}, format='json')
    assert r.status_code == 200
    assert callbacks

    after = admin_client.get('/api/admin/dashboard', {'academicYear': YEAR}).data['data']
    assert after['beds']['occupied'] == 1
    assert after['users']['studentsWithRooms'] == 1
    assert after['rooms']['occupancyRate'] == 100.0


def test_dashboard_served_from_cache_until_invalidated(hostel, settings):
    settings.REPORT_CACHE_TTL = 60
    first = reports.dashboard(YEAR)
    make_room(hostel, '050', capacity=4)
    assert reports.dashboard(YEAR) == first
    reports.invalidate_reports()
    assert reports.dashboard(YEAR)['beds']['total'] == first['beds']['total'] + 4


def test_occupancy_report_groups_by_hostel(admin_client, hostel, room, student, female_student):
    queens = Hostel.objects.create(name='Queen Esther Hall', gender='female', total_rooms=4,
                                   room_types=[{'type': 'single', 'count': 4, 'price': 90000}])
    q_room = make_room(queens, 'Q1', capacity=1)
    admin_client.post('/api/rooms/assign', {'studentId': student.pk, 'roomId': room.pk}, format='json')
    admin_client.post('/api/rooms/assign', {'studentId': female_student.pk, 'roomId': q_room.pk}, format='json')

    r = admin_client.get('/api/admin/reports/occupancy')
    assert r.status_code == 200
    data = r.data['data']
    assert [h['hostelName'] for h in data['hostels']] == ['Caleb Hall (Male)', 'Queen Esther Hall']
    assert data['hostels'][0]['occupancyRate'] == 50.0
    assert data['hostels'][1]['availableBeds'] == 0
    assert data['overall']['occupiedBeds'] == 2
    assert data['overall']['totalBeds'] == 3

    r = admin_client.get('/api/admin/reports/occupancy', {'gender': 'female'})
    assert len(r.data['data']['hostels']) == 1


def test_applications_report_filters(admin_client, student, female_student, hostel, admin_user):
    submit(student, hostel)
    submit(student, hostel, semester='second').approve(admin_user)
    submit(female_student, hostel, year='2023/2024')

    r = admin_client.get('/api/admin/reports/applications', {'academicYear': YEAR})
    assert r.status_code == 200
    data = r.data['data']
    assert data['summary'] == {'total': 2, 'byStatus': {'approved': 1, 'pending': 1}}
    assert data['filters']['academicYear'] == YEAR

    r = admin_client.get('/api/admin/reports/applications', {'status': 'pending'})
    assert r.data['data']['summary']['total'] == 2
    assert Application.objects.count() == 3


def test_refresh_report_cache_command(hostel, settings):
    settings.REPORT_CACHE_TTL = 60
    stale = reports.dashboard(YEAR)
    make_student('late@student.calebu.edu.ng', matric='CU/20/0999')
    call_command('refresh_report_cache', academic_year=YEAR)
    assert reports.dashboard(YEAR)['users']['totalStudents'] == stale['users']['totalStudents'] + 1
