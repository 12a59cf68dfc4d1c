import pytest

from housing.models import Application, AuditEvent, Occupant
from housing.services import allocation

from .conftest import make_room, make_student
from .test_applications import submit

pytestmark = pytest.mark.django_db


def test_assign_links_room_student_and_application(admin_client, admin_user, student, hostel, room):
    app = submit(student, hostel)
    app.approve(admin_user)
    r = admin_client.post('/api/rooms/assign',
                          {'studentId': student.pk, 'roomId': room.pk, 'applicationId': app.pk}, format='json')
    assert r.status_code == 200, r.data
    data = r.data['data']
    assert data['room']['occupiedBeds'] == 1
    assert data['room']['occupants'][0]['bedNumber'] == 1
    assert data['student']['roomAssigned']['id'] == room.pk
    assert data['application']['status'] == 'assigned'

    app.refresh_from_db()
    assert app.assigned_room == room
    assert student.room_assigned == room
    assert AuditEvent.objects.filter(action='room_assign', object_id=room.pk).exists()


def test_assign_without_application(admin_client, student, room):
    r = admin_client.post('/api/rooms/assign', {'studentId': student.pk, 'roomId': room.pk}, format='json')
    assert r.status_code == 200
    assert 'application' not in r.data['data']


def test_assign_requires_both_ids(admin_client, room):
    r = admin_client.post('/api/rooms/assign', {'roomId': room.pk}, format='json')
    assert r.status_code == 400
    assert r.data['message'] == 'Student ID and Room ID are required'
    r = admin_client.post('/api/rooms/assign', {'studentId': 1, 'roomId': None}, format='json')
    assert r.status_code == 400
    assert r.data['errors'] == ['Student ID and Room ID are required']


def test_assign_unknown_student_or_room(admin_client, student, room, admin_user):
    r = admin_client.post('/api/rooms/assign', {'studentId': 999999, 'roomId': room.pk}, format='json')
    assert r.status_code == 404
    assert r.data['message'] == 'Student not found'
    r = admin_client.post('/api/rooms/assign', {'studentId': admin_user.pk, 'roomId': room.pk}, format='json')
    assert r.status_code == 404
    r = admin_client.post('/api/rooms/assign', {'studentId': student.pk, 'roomId': 999999}, format='json')
    assert r.status_code == 404
    assert r.data['message'] == 'Room not found'


def test_assign_gender_mismatch(admin_client, female_student, room):
    r = admin_client.post('/api/rooms/assign', {'studentId': female_student.pk, 'roomId': room.pk}, format='json')
    assert r.status_code == 400
    assert r.data['code'] == 'gender_mismatch'
    assert r.data['message'] == 'Student gender does not match room gender'
    room.refresh_from_db()
    assert room.occupied_beds == 0


def test_assign_full_room(admin_client, hostel):
    single = make_room(hostel, '100', capacity=1)
    a = make_student('a@student.calebu.edu.ng', matric='CU/20/0001')
    b = make_student('b@student.calebu.edu.ng', matric='CU/20/0002')
    assert admin_client.post('/api/rooms/assign', {'studentId': a.pk, 'roomId': single.pk},
                             format='json').status_code == 200
    r = admin_client.post('/api/rooms/assign', {'studentId': b.pk, 'roomId': single.pk}, format='json')
    assert r.status_code == 400
    assert r.data['code'] == 'capacity_exceeded'
    single.refresh_from_db()
    assert single.occupied_beds == 1


def test_assign_already_assigned_student(admin_client, student, hostel, room):
    other = make_room(hostel, '002')
    admin_client.post('/api/rooms/assign', {'studentId': student.pk, 'roomId': room.pk}, format='json')
    r = admin_client.post('/api/rooms/assign', {'studentId': student.pk, 'roomId': other.pk}, format='json')
    assert r.status_code == 400
    assert r.data['code'] == 'already_assigned'


def test_application_checked_before_any_write(admin_client, student, female_student, hostel, room, admin_user):
    foreign = submit(female_student, hostel)
    r = admin_client.post('/api/rooms/assign',
                          {'studentId': student.pk, 'roomId': room.pk, 'applicationId': foreign.pk}, format='json')
    assert r.status_code == 400
    assert not Occupant.objects.exists()

    rejected = submit(student, hostel)
    rejected.reject(admin_user, 'No')
    r = admin_client.post('/api/rooms/assign',
                          {'studentId': student.pk, 'roomId': room.pk, 'applicationId': rejected.pk}, format='json')
    assert r.status_code == 400
    assert r.data['code'] == 'invalid_state'
    room.refresh_from_db()
    assert room.occupied_beds == 0


def test_failure_after_room_write_rolls_everything_back(admin_client, student, hostel, room, monkeypatch):
    app = submit(student, hostel)

    def boom(self, room):
        raise RuntimeError('disk on fire')

    monkeypatch.setattr(Application, 'mark_assigned', boom)
    r = admin_client.post('/api/rooms/assign',
                          {'studentId': student.pk, 'roomId': room.pk, 'applicationId': app.pk}, format='json')
    assert r.status_code == 500
    assert r.data == {'success': False, 'message': 'Internal server error', 'code': 'server_error'}

    room.refresh_from_db()
    app.refresh_from_db()
    assert room.occupied_beds == 0
    assert not Occupant.objects.exists()
    assert app.status == 'pending'
    assert student.room_assigned is None
    assert not AuditEvent.objects.filter(action='room_assign').exists()


def test_remove_student_reverts_application(admin_client, student, hostel, room, admin_user):
    app = submit(student, hostel)
    allocation.assign_room(admin_user, student_id=student.pk, room_id=room.pk, application_id=app.pk)

    r = admin_client.post(f'/api/rooms/{room.pk}/remove-student', {'studentId': student.pk}, format='json')
    assert r.status_code == 200, r.data
    assert r.data['data']['room']['occupiedBeds'] == 0

    app.refresh_from_db()
    assert app.status == 'approved'
    assert app.assigned_room is None
    assert student.room_assigned is None


def test_remove_non_occupant(admin_client, student, room):
    r = admin_client.post(f'/api/rooms/{room.pk}/remove-student', {'studentId': student.pk}, format='json')
    assert r.status_code == 400
    assert r.data['code'] == 'not_an_occupant'
    assert r.data['message'] == 'Student not found in this room'


def test_students_cannot_allocate(student_client, student, room):
    r = student_client.post('/api/rooms/assign', {'studentId': student.pk, 'roomId': room.pk}, format='json')
    assert r.status_code == 403
    r = student_client.post(f'/api/rooms/{room.pk}/remove-student', {'studentId': student.pk}, format='json')
    assert r.status_code == 403
