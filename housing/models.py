"""
Database models for the hostel allocation backend.

These models capture the core concepts of the system: users (students
and administrators), hostels, rooms and their occupants, and housing
applications.  The room ledger (``Room`` + ``Occupant``) is the single
source of truth for who sleeps where; a student's room is looked up from
it rather than stored a second time on the user.
"""
from __future__ import annotations

from django.contrib.auth.models import AbstractUser, UserManager
from django.core.validators import MaxValueValidator, MinValueValidator, RegexValidator
from django.db import models
from django.utils import timezone

from .exceptions import StateError, ValidationError

PHONE_RE = r'^(\+234|0)[789]\d{9}$'
MATRIC_RE = r'^CU/\d{2}/\d{4}$'
ACADEMIC_YEAR_RE = r'^\d{4}/\d{4}$'

phone_validator = RegexValidator(PHONE_RE, 'Please enter a valid Nigerian phone number')
matric_validator = RegexValidator(MATRIC_RE, 'Invalid matric number format (e.g., CU/20/1234)')
academic_year_validator = RegexValidator(
    ACADEMIC_YEAR_RE, 'Academic year format should be YYYY/YYYY (e.g., 2024/2025)'
)

GENDER_CHOICES = [
    ('male', 'Male'),
    ('female', 'Female'),
]

ROOM_TYPE_CHOICES = [
    ('single', 'Single'),
    ('double', 'Double'),
    ('triple', 'Triple'),
    ('quad', 'Quad'),
]

# Beds per room type, used when generating rooms from a hostel's price table.
ROOM_TYPE_CAPACITY = {'single': 1, 'double': 2, 'triple': 3, 'quad': 4}


class HousingUserManager(UserManager):
    """Users log in by email; ``username`` mirrors it for Django's sake."""

    def create_user(self, username=None, email=None, password=None, **extra_fields):
        email = self.normalize_email(email or username or '').lower()
        username = username or email
        return super().create_user(username, email, password, **extra_fields)

    def create_superuser(self, username=None, email=None, password=None, **extra_fields):
        extra_fields.setdefault('role', 'admin')
        extra_fields.setdefault('gender', 'male')
        email = self.normalize_email(email or username or '').lower()
        username = username or email
        return super().create_superuser(username, email, password, **extra_fields)


class User(AbstractUser):
    """Custom user model with a role, gender and student particulars.

    Roles are 'student' and 'admin'.  Students additionally carry a
    matric number, level and department.  The room a student occupies is
    exposed through :attr:`room_assigned`, which reads the occupant
    table instead of a duplicated pointer.
    """
    ROLE_STUDENT = 'student'
    ROLE_ADMIN = 'admin'
    ROLE_CHOICES = [
        (ROLE_STUDENT, 'Student'),
        (ROLE_ADMIN, 'Administrator'),
    ]
    LEVEL_CHOICES = [(lv, lv) for lv in ('100', '200', '300', '400', '500')]

    name = models.CharField(max_length=100)
    email = models.EmailField(unique=True)
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default=ROLE_STUDENT, db_index=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    phone_number = models.CharField(max_length=20, validators=[phone_validator])
    matric_number = models.CharField(
        max_length=20, unique=True, null=True, blank=True, validators=[matric_validator]
    )
    level = models.CharField(max_length=3, choices=LEVEL_CHOICES, blank=True)
    department = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = HousingUserManager()

    REQUIRED_FIELDS = ['email']

    def __str__(self) -> str:
        return f"{self.email} ({self.role})"

    @property
    def is_student(self) -> bool:
        return self.role == self.ROLE_STUDENT

    @property
    def is_admin(self) -> bool:
        return self.role == self.ROLE_ADMIN

    @property
    def room_assigned(self) -> 'Room | None':
        if not self.pk:
            return None
        return Room.objects.filter(occupants__student_id=self.pk).first()


class Hostel(models.Model):
    """Static catalog entry for a building and its room-type price table.

    ``room_types`` holds a list of ``{"type", "count", "price"}`` dicts.
    Occupancy is never stored here; it is aggregated from the rooms.
    """
    name = models.CharField(max_length=100, unique=True)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES)
    description = models.TextField(blank=True, max_length=500)
    room_types = models.JSONField(default=list)
    total_rooms = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    facilities = models.JSONField(default=list, blank=True)
    rules = models.JSONField(default=list, blank=True)
    warden = models.JSONField(default=dict, blank=True)
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']

    def __str__(self) -> str:
        return f"{self.name} ({self.gender})"


class Room(models.Model):
    """A bookable room and its bed ledger.

    ``occupied_beds`` is kept equal to the number of :class:`Occupant`
    rows.  Both only change through ``housing.services.rooms``, which
    holds a row lock on the room while it edits them.
    """
    CONDITION_CHOICES = [
        ('excellent', 'Excellent'),
        ('good', 'Good'),
        ('fair', 'Fair'),
        ('needs_repair', 'Needs repair'),
    ]

    number = models.CharField(max_length=10)
    hostel = models.ForeignKey(Hostel, on_delete=models.CASCADE, related_name='rooms')
    hostel_name = models.CharField(max_length=100)
    capacity = models.PositiveSmallIntegerField(validators=[MinValueValidator(1), MaxValueValidator(4)])
    type = models.CharField(max_length=10, choices=ROOM_TYPE_CHOICES)
    is_ensuite = models.BooleanField(default=False)
    gender = models.CharField(max_length=10, choices=GENDER_CHOICES, db_index=True)
    occupied_beds = models.PositiveSmallIntegerField(default=0)
    price = models.DecimalField(max_digits=12, decimal_places=2, validators=[MinValueValidator(0)])
    amenities = models.JSONField(default=list, blank=True)
    condition = models.CharField(max_length=20, choices=CONDITION_CHOICES, default='good')
    is_active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['hostel_name', 'number']
        constraints = [
            models.UniqueConstraint(fields=['hostel', 'number'], name='uniq_room_number_per_hostel'),
            models.CheckConstraint(
                condition=models.Q(occupied_beds__lte=models.F('capacity')),
                name='room_occupied_within_capacity',
            ),
        ]

    def __str__(self) -> str:
        return f"{self.hostel_name} {self.number}"

    def is_available(self) -> bool:
        return self.is_active and self.occupied_beds < self.capacity

    @property
    def available_beds(self) -> int:
        return self.capacity - self.occupied_beds

    @property
    def occupancy_rate(self) -> float:
        return (self.occupied_beds / self.capacity) * 100 if self.capacity else 0.0


class Occupant(models.Model):
    """One bed in a room held by one student.

    The one-to-one link on ``student`` is what makes a second concurrent
    assignment of the same student fail at the database level.
    """
    room = models.ForeignKey(Room, on_delete=models.PROTECT, related_name='occupants')
    student = models.OneToOneField(User, on_delete=models.PROTECT, related_name='occupancy')
    bed_number = models.PositiveSmallIntegerField()
    assigned_date = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ['room_id', 'bed_number']
        constraints = [
            models.UniqueConstraint(fields=['room', 'bed_number'], name='uniq_bed_per_room'),
        ]

    def __str__(self) -> str:
        return f"bed {self.bed_number} in {self.room_id} -> {self.student_id}"


class Application(models.Model):
    """A student's housing request for one academic year and semester.

    Status changes only through the transition methods below; the
    ``TRANSITIONS`` table lists every legal move.
    """
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_ASSIGNED = 'assigned'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_ASSIGNED, 'Assigned'),
    ]
    TRANSITIONS = {
        STATUS_PENDING: {STATUS_APPROVED, STATUS_REJECTED, STATUS_ASSIGNED},
        STATUS_APPROVED: {STATUS_ASSIGNED},
        STATUS_ASSIGNED: set(),  # left only through revert_assignment
        STATUS_REJECTED: set(),
    }

    SEMESTER_CHOICES = [('first', 'First'), ('second', 'Second')]
    PAYMENT_CHOICES = [
        ('pending', 'Pending'),
        ('paid', 'Paid'),
        ('partial', 'Partial'),
        ('overdue', 'Overdue'),
    ]

    student = models.ForeignKey(User, on_delete=models.CASCADE, related_name='applications')
    academic_year = models.CharField(max_length=9, validators=[academic_year_validator])
    semester = models.CharField(max_length=10, choices=SEMESTER_CHOICES)

    # personal information
    guardian_name = models.CharField(max_length=100)
    guardian_phone = models.CharField(max_length=20, validators=[phone_validator])
    guardian_email = models.EmailField()
    home_address = models.CharField(max_length=200)
    state_of_origin = models.CharField(max_length=50)
    emergency_name = models.CharField(max_length=100)
    emergency_phone = models.CharField(max_length=20, validators=[phone_validator])
    emergency_relationship = models.CharField(max_length=50)

    # preferences (advisory)
    hostel_preference = models.ForeignKey(
        Hostel, null=True, on_delete=models.SET_NULL, related_name='preferred_by'
    )
    room_type_preference = models.CharField(max_length=10, choices=ROOM_TYPE_CHOICES)
    special_requests = models.CharField(max_length=300, blank=True)

    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    assigned_room = models.ForeignKey(
        Room, null=True, blank=True, on_delete=models.SET_NULL, related_name='applications'
    )
    reviewed_by = models.ForeignKey(
        User, null=True, blank=True, on_delete=models.SET_NULL, related_name='reviewed_applications'
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    review_comments = models.CharField(max_length=500, blank=True)
    payment_status = models.CharField(max_length=10, choices=PAYMENT_CHOICES, default='pending')
    documents = models.JSONField(default=list, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['student', 'academic_year', 'semester'], name='uniq_application_per_term'
            ),
        ]
        indexes = [
            models.Index(fields=['academic_year', 'status']),
        ]

    def __str__(self) -> str:
        return f"{self.student_id} {self.academic_year}/{self.semester} [{self.status}]"

    @property
    def application_age(self) -> int:
        if not self.created_at:
            return 0
        return (timezone.now() - self.created_at).days

    def can_transition(self, new_status: str) -> bool:
        return new_status in self.TRANSITIONS.get(self.status, set())

    def _require(self, new_status: str, message: str) -> None:
        if not self.can_transition(new_status):
            raise StateError(message)

    def _review(self, new_status: str, reviewer: User, comments: str) -> None:
        self.status = new_status
        self.reviewed_by = reviewer
        self.reviewed_at = timezone.now()
        self.review_comments = comments
        self.save(update_fields=['status', 'reviewed_by', 'reviewed_at', 'review_comments', 'updated_at'])

    def approve(self, reviewer: User, comments: str = '') -> None:
        self._require(self.STATUS_APPROVED, 'Only pending applications can be approved')
        self._review(self.STATUS_APPROVED, reviewer, (comments or '').strip())

    def reject(self, reviewer: User, comments: str) -> None:
        comments = (comments or '').strip()
        if not comments:
            raise ValidationError('Rejection reason is required')
        self._require(self.STATUS_REJECTED, 'Only pending applications can be rejected')
        self._review(self.STATUS_REJECTED, reviewer, comments)

    def mark_assigned(self, room: Room) -> None:
        self._require(self.STATUS_ASSIGNED, f'Cannot assign a room to a {self.status} application')
        self.status = self.STATUS_ASSIGNED
        self.assigned_room = room
        self.save(update_fields=['status', 'assigned_room', 'updated_at'])

    def revert_assignment(self) -> None:
        if self.status != self.STATUS_ASSIGNED:
            raise StateError('Only assigned applications can be released')
        self.status = self.STATUS_APPROVED
        self.assigned_room = None
        self.save(update_fields=['status', 'assigned_room', 'updated_at'])


class AuditEvent(models.Model):
    user = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True)
    action = models.CharField(max_length=64)
    object_type = models.CharField(max_length=64, blank=True, null=True)
    object_id = models.IntegerField(blank=True, null=True)
    detail = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        indexes = [
            models.Index(fields=['action', 'created_at']),
            models.Index(fields=['object_type', 'object_id', 'created_at']),
        ]

    def __str__(self):
        return f"{self.action}:{self.object_type}#{self.object_id}"
