"""
Management command to populate the database with sample data.
"""
import random

from django.core.management.base import BaseCommand
from django.db import transaction

from housing.models import ROOM_TYPE_CAPACITY, Application, AuditEvent, Hostel, Occupant, Room, User
from housing.services import rooms as ledger
from housing.services.reports import current_academic_year, invalidate_reports

HOSTELS = [
    {
        'name': 'Caleb Hall (Male)',
        'gender': 'male',
        'description': 'Modern male hostel with excellent facilities',
        'room_types': [
            {'type': 'single', 'count': 20, 'price': 150000},
            {'type': 'double', 'count': 30, 'price': 120000},
            {'type': 'triple', 'count': 25, 'price': 100000},
            {'type': 'quad', 'count': 15, 'price': 80000},
        ],
        'facilities': ['WiFi', 'Laundry', 'Common Room', 'Study Hall', 'Cafeteria'],
        'rules': ['No visitors after 10 PM', 'Keep rooms clean', 'No loud music after 11 PM'],
        'warden': {'name': 'Mr. Johnson Adebayo', 'phoneNumber': '08012345678',
                   'email': 'johnson.adebayo@calebu.edu.ng'},
    },
    {
        'name': 'Grace Hall (Female)',
        'gender': 'female',
        'description': 'Comfortable female hostel with modern amenities',
        'room_types': [
            {'type': 'single', 'count': 25, 'price': 150000},
            {'type': 'double', 'count': 35, 'price': 120000},
            {'type': 'triple', 'count': 20, 'price': 100000},
            {'type': 'quad', 'count': 10, 'price': 80000},
        ],
        'facilities': ['WiFi', 'Laundry', 'Common Room', 'Beauty Salon', 'Cafeteria'],
        'rules': ['No male visitors in rooms', 'Visitors allowed until 8 PM', 'Keep rooms tidy'],
        'warden': {'name': 'Mrs. Sarah Okafor', 'phoneNumber': '08087654321',
                   'email': 'sarah.okafor@calebu.edu.ng'},
    },
    {
        'name': 'David Lodge (Male)',
        'gender': 'male',
        'description': 'Budget-friendly male accommodation',
        'room_types': [
            {'type': 'double', 'count': 40, 'price': 100000},
            {'type': 'triple', 'count': 30, 'price': 85000},
            {'type': 'quad', 'count': 20, 'price': 70000},
        ],
        'facilities': ['WiFi', 'Laundry', 'Common Room', 'Sports Facility'],
        'rules': ['No visitors after 9 PM', 'Maintain cleanliness', 'No gambling'],
        'warden': {'name': 'Mr. Emmanuel Okon', 'phoneNumber': '08098765432',
                   'email': 'emmanuel.okon@calebu.edu.ng'},
    },
    {
        'name': 'Ruth Hall (Female)',
        'gender': 'female',
        'description': 'Affordable female hostel with basic amenities',
        'room_types': [
            {'type': 'double', 'count': 35, 'price': 100000},
            {'type': 'triple', 'count': 35, 'price': 85000},
            {'type': 'quad', 'count': 20, 'price': 70000},
        ],
        'facilities': ['WiFi', 'Laundry', 'Common Room', 'Kitchen'],
        'rules': ['No male visitors in rooms', 'Visitors until 7 PM only', 'Keep common areas clean'],
        'warden': {'name': 'Mrs. Grace Eze', 'phoneNumber': '08076543210', 'email': 'grace.eze@calebu.edu.ng'},
    },
]

ADMINS = [
    {'name': 'Admin User', 'email': 'admin@calebu.edu.ng', 'gender': 'male', 'phone_number': '08012345678'},
    {'name': 'Sarah Admin', 'email': 'sarah.admin@calebu.edu.ng', 'gender': 'female',
     'phone_number': '08087654321'},
]

STUDENTS = [
    {'name': 'John Doe', 'email': 'john.doe@student.calebu.edu.ng', 'matric_number': 'CU/20/1001',
     'gender': 'male', 'phone_number': '08011111111', 'level': '200', 'department': 'Computer Science'},
    {'name': 'Jane Smith', 'email': 'jane.smith@student.calebu.edu.ng', 'matric_number': 'CU/20/1002',
     'gender': 'female', 'phone_number': '08022222222', 'level': '300', 'department': 'Business Administration'},
    {'name': 'Michael Johnson', 'email': 'michael.johnson@student.calebu.edu.ng', 'matric_number': 'CU/21/1003',
     'gender': 'male', 'phone_number': '08033333333', 'level': '100', 'department': 'Engineering'},
    {'name': 'Emily Brown', 'email': 'emily.brown@student.calebu.edu.ng', 'matric_number': 'CU/21/1004',
     'gender': 'female', 'phone_number': '08044444444', 'level': '200', 'department': 'Mass Communication'},
]

AMENITIES = ['Bed', 'Mattress', 'Wardrobe', 'Study Table', 'Chair', 'Fan', 'Reading Lamp']
CONDITIONS = (['excellent'] * 6) + (['good'] * 10) + (['fair'] * 3) + ['needs_repair']


class Command(BaseCommand):
    help = 'Populate database with sample hostels, rooms, users and applications'

    def add_arguments(self, parser):
        parser.add_argument('--reset', action='store_true', help='Delete existing housing data first')
        parser.add_argument('--seed', type=int, default=None, help='Random seed for reproducible rooms')

    def handle(self, *args, **options):
        rng = random.Random(options['seed'])
        with transaction.atomic():
            if options['reset']:
                self.reset()
            hostels = self.create_hostels()
            rooms_created = self.create_rooms(hostels, rng)
            self.create_admins()
            students = self.create_students()
            assigned = self.assign_students(students[: len(students) // 2])
            applications = self.create_applications(students[len(students) // 2:], hostels)
        invalidate_reports()
        self.stdout.write(self.style.SUCCESS(
            f'Seeded {len(hostels)} hostels, {rooms_created} rooms, {len(students)} students, '
            f'{assigned} assignments, {applications} applications'
        ))

    def reset(self):
        self.stdout.write('Clearing existing data...')
        AuditEvent.objects.all().delete()
        Application.objects.all().delete()
        Occupant.objects.all().delete()
        Room.objects.all().delete()
        Hostel.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()

    def create_hostels(self):
        hostels = []
        for data in HOSTELS:
            total = sum(rt['count'] for rt in data['room_types'])
            hostel, _ = Hostel.objects.get_or_create(name=data['name'], defaults={**data, 'total_rooms': total})
            hostels.append(hostel)
        return hostels

    def create_rooms(self, hostels, rng):
        created = 0
        for hostel in hostels:
            if hostel.rooms.exists():
                continue
            batch = []
            number = 1
            for rt in hostel.room_types:
                for _ in range(rt['count']):
                    batch.append(Room(
                        number=f'{number:03d}',
                        hostel=hostel,
                        hostel_name=hostel.name,
                        capacity=ROOM_TYPE_CAPACITY[rt['type']],
                        type=rt['type'],
                        is_ensuite=rng.random() > 0.6,
                        gender=hostel.gender,
                        price=rt['price'],
                        amenities=AMENITIES[: rng.randint(4, 6)],
                        condition=rng.choice(CONDITIONS),
                    ))
                    number += 1
            Room.objects.bulk_create(batch)
            created += len(batch)
        return created

    def create_admins(self):
        for data in ADMINS:
            if not User.objects.filter(email=data['email']).exists():
                User.objects.create_user(
                    username=data['email'], password='admin123', role=User.ROLE_ADMIN,
                    **data,
                )

    def create_students(self):
        students = []
        for data in STUDENTS:
            user = User.objects.filter(email=data['email']).first()
            if user is None:
                user = User.objects.create_user(
                    username=data['email'], password='student123', role=User.ROLE_STUDENT, **data,
                )
            students.append(user)
        return students

    def assign_students(self, students):
        assigned = 0
        for student in students:
            if Occupant.objects.filter(student=student).exists():
                continue
            room = (
                Room.objects.select_for_update()
                .filter(gender=student.gender, is_active=True, occupied_beds=0, capacity__gt=1)
                .order_by('hostel_name', 'number')
                .first()
            )
            if room is None:
                self.stdout.write(self.style.WARNING(f'No free room for {student.name}'))
                continue
            ledger.assign_student(room, student)
            assigned += 1
        return assigned

    def create_applications(self, students, hostels):
        year = current_academic_year()
        created = 0
        for student in students:
            hostel = next((h for h in hostels if h.gender == student.gender), None)
            _, was_created = Application.objects.get_or_create(
                student=student, academic_year=year, semester='first',
                defaults={
                    'guardian_name': 'Guardian of ' + student.name,
                    'guardian_phone': '08055555555',
                    'guardian_email': 'guardian@example.com',
                    'home_address': '12 Unity Road, Ikeja, Lagos',
                    'state_of_origin': 'Lagos',
                    'emergency_name': 'Emergency Contact',
                    'emergency_phone': '08066666666',
                    'emergency_relationship': 'Parent',
                    'hostel_preference': hostel,
                    'room_type_preference': 'double',
                },
            )
            created += int(was_created)
        return created
