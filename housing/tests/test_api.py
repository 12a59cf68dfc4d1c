"""
Integration tests for hostel and room management.

These tests exercise the admin CRUD surface for hostels and rooms,
the read access students have to it, and the guards that keep room
edits from breaking occupancy.  The tests use Django REST Framework's
APIClient within the APITestCase base class.

To run the tests:

```
pytest -q housing/tests
```
"""

from django.db import transaction
from rest_framework import status
from rest_framework.test import APITestCase

from ..models import Hostel, Room, User
from ..services import rooms as ledger


class HousingAPITests(APITestCase):
    def setUp(self) -> None:
        """Create an admin, a student and one male hostel with two rooms."""
        self.admin = User.objects.create_user(
            username="warden@calebu.edu.ng",
            email="warden@calebu.edu.ng",
            password="admin123",
            name="Chief Warden",
            role=User.ROLE_ADMIN,
            gender="male",
            phone_number="08012345678",
        )
        self.student = User.objects.create_user(
            username="tunde@student.calebu.edu.ng",
            email="tunde@student.calebu.edu.ng",
            password="student123",
            name="Tunde Bakare",
            role=User.ROLE_STUDENT,
            gender="male",
            phone_number="08022222222",
            matric_number="CU/22/3001",
            level="300",
            department="Economics",
        )
        self.hostel = Hostel.objects.create(
            name="Daniel Hall",
            gender="male",
            total_rooms=20,
            room_types=[{"type": "double", "count": 20, "price": 150000}],
        )
        self.room_a = Room.objects.create(
            hostel=self.hostel, hostel_name=self.hostel.name, number="A1",
            capacity=2, type="double", gender="male", price=150000,
        )
        self.room_b = Room.objects.create(
            hostel=self.hostel, hostel_name=self.hostel.name, number="A2",
            capacity=1, type="single", gender="male", price=200000, is_active=False,
        )

    def occupy(self, room, student):
        with transaction.atomic():
            ledger.assign_student(ledger.lock_room(room.pk), student)

    def hostel_payload(self, **overrides):
        payload = {
            "name": "Esther Hall",
            "gender": "female",
            "description": "Quiet hall close to the library",
            "roomTypes": [{"type": "quad", "count": 30, "price": 90000}],
            "totalRooms": 30,
            "facilities": ["Wi-Fi", "Reading room"],
            "warden": {"name": "Mrs. Ade", "phoneNumber": "08077777777"},
        }
        payload.update(overrides)
        return payload

    # -----------------------------------------------------------------
    # Hostels
    # -----------------------------------------------------------------
    def test_admin_creates_and_lists_hostels(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post("/api/hostels", self.hostel_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        hostel = response.data["data"]["hostel"]
        self.assertEqual(hostel["warden"]["name"], "Mrs. Ade")
        self.assertEqual(hostel["roomTypes"][0]["type"], "quad")

        response = self.client.get("/api/hostels", {"gender": "male"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data["data"]
        self.assertEqual(data["count"], 1)
        stats = data["hostels"][0]["stats"]
        # the inactive room still counts towards capacity figures
        self.assertEqual(stats["totalBeds"], 3)
        self.assertEqual(stats["availableRooms"], 1)

    def test_duplicate_hostel_name(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post("/api/hostels", self.hostel_payload(name="daniel hall"), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "conflict")

    def test_hostel_requires_room_types(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.post("/api/hostels", self.hostel_payload(roomTypes=[]), format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "roomTypes: At least one room type is required")

    def test_rename_cascades_to_rooms(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.put(f"/api/hostels/{self.hostel.pk}", {"name": "Daniel Hall Annex"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.room_a.refresh_from_db()
        self.assertEqual(self.room_a.hostel_name, "Daniel Hall Annex")

    def test_hostel_with_rooms_keeps_its_gender(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.put(f"/api/hostels/{self.hostel.pk}", {"gender": "female"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.hostel.refresh_from_db()
        self.assertEqual(self.hostel.gender, "male")

    def test_occupied_hostel_cannot_be_deleted(self) -> None:
        self.occupy(self.room_a, self.student)
        self.client.force_authenticate(self.admin)
        response = self.client.delete(f"/api/hostels/{self.hostel.pk}")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "Cannot delete hostel with occupied rooms")
        self.assertTrue(Hostel.objects.filter(pk=self.hostel.pk).exists())

    def test_empty_hostel_is_deleted_with_its_rooms(self) -> None:
        self.client.force_authenticate(self.admin)
        response = self.client.delete(f"/api/hostels/{self.hostel.pk}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Room.objects.filter(hostel_id=self.hostel.pk).exists())

    def test_student_reads_but_cannot_write_hostels(self) -> None:
        self.client.force_authenticate(self.student)
        response = self.client.get(f"/api/hostels/{self.hostel.pk}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data["data"]["rooms"]), 2)
        self.assertEqual(response.data["data"]["stats"]["totalRooms"], 2)
        self.assertEqual(response.data["data"]["stats"]["availableBeds"], 3)
        response = self.client.post("/api/hostels", self.hostel_payload(), format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    # -----------------------------------------------------------------
    # Rooms
    # -----------------------------------------------------------------
    def test_create_room(self) -> None:
        self.client.force_authenticate(self.admin)
        payload = {
            "number": "B1", "hostel": self.hostel.pk, "capacity": 4, "type": "quad",
            "gender": "male", "price": "95000.00", "amenities": ["Fan", "<i>Locker</i>"],
        }
        response = self.client.post("/api/rooms", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        room = response.data["data"]["room"]
        self.assertEqual(room["hostelName"], "Daniel Hall")
        self.assertEqual(room["occupiedBeds"], 0)
        self.assertEqual(room["amenities"], ["Fan", "Locker"])

        response = self.client.post("/api/rooms", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["code"], "conflict")

    def test_room_gender_must_match_hostel(self) -> None:
        self.client.force_authenticate(self.admin)
        payload = {
            "number": "B2", "hostel": self.hostel.pk, "capacity": 1, "type": "single",
            "gender": "female", "price": "80000",
        }
        response = self.client.post("/api/rooms", payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Room.objects.filter(number="B2").exists())

    def test_room_list_filters_and_pagination(self) -> None:
        self.client.force_authenticate(self.student)
        response = self.client.get("/api/rooms", {"available": "true"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        numbers = [r["number"] for r in response.data["data"]["rooms"]]
        self.assertEqual(numbers, ["A1"])

        response = self.client.get("/api/rooms", {"limit": 1})
        self.assertEqual(response.data["data"]["pagination"]["pages"], 2)

    def test_available_rooms_needs_gender(self) -> None:
        self.client.force_authenticate(self.student)
        response = self.client.get("/api/rooms/available")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["message"], "gender: Gender parameter is required")

        response = self.client.get("/api/rooms/available", {"gender": "male"})
        self.assertEqual(response.data["data"]["count"], 1)
        self.assertIn("Daniel Hall", response.data["data"]["roomsByHostel"])

    def test_room_update_guards_occupancy(self) -> None:
        roommate = User.objects.create_user(
            username="femi@student.calebu.edu.ng", email="femi@student.calebu.edu.ng", password="student123",
            name="Femi Ojo", role=User.ROLE_STUDENT, gender="male", phone_number="08044444444",
            matric_number="CU/22/3002", level="300", department="Economics",
        )
        self.occupy(self.room_a, self.student)
        self.occupy(self.room_a, roommate)
        self.client.force_authenticate(self.admin)

        response = self.client.put(f"/api/rooms/{self.room_a.pk}", {"capacity": 1, "type": "single"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.put(f"/api/rooms/{self.room_a.pk}", {"gender": "female"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.client.put(f"/api/rooms/{self.room_a.pk}", {"condition": "fair", "occupiedBeds": 0},
                                   format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.room_a.refresh_from_db()
        self.assertEqual(self.room_a.condition, "fair")
        self.assertEqual(self.room_a.occupied_beds, 2)

    def test_occupied_room_cannot_be_deleted(self) -> None:
        self.occupy(self.room_a, self.student)
        self.client.force_authenticate(self.admin)
        response = self.client.delete(f"/api/rooms/{self.room_a.pk}")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.delete(f"/api/rooms/{self.room_b.pk}")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_unknown_room(self) -> None:
        self.client.force_authenticate(self.student)
        response = self.client.get("/api/rooms/424242")
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"success": False, "message": "Room not found", "code": "not_found"})

    def test_health(self) -> None:
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, status.HTTP_200_OK)
