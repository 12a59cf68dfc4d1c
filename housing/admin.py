"""
Django admin registrations for the housing models.

The room ledger is shown read-only in the admin: beds are handed out and
taken back through the allocation service so that the occupant list and
``occupied_beds`` never drift apart.
"""

from django.contrib import admin

from .models import Application, AuditEvent, Hostel, Occupant, Room, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('email', 'name', 'role', 'gender', 'matric_number', 'is_active')
    list_filter = ('role', 'gender', 'level', 'is_active')
    search_fields = ('email', 'name', 'matric_number', 'department')


@admin.register(Hostel)
class HostelAdmin(admin.ModelAdmin):
    list_display = ('name', 'gender', 'total_rooms', 'is_active')
    list_filter = ('gender', 'is_active')
    search_fields = ('name',)


class OccupantInline(admin.TabularInline):
    model = Occupant
    extra = 0
    can_delete = False
    readonly_fields = ('student', 'bed_number', 'assigned_date')


@admin.register(Room)
class RoomAdmin(admin.ModelAdmin):
    list_display = ('number', 'hostel_name', 'type', 'gender', 'capacity', 'occupied_beds', 'is_active')
    list_filter = ('hostel', 'gender', 'type', 'condition', 'is_active')
    search_fields = ('number', 'hostel_name')
    readonly_fields = ('occupied_beds',)
    inlines = [OccupantInline]


@admin.register(Application)
class ApplicationAdmin(admin.ModelAdmin):
    list_display = ('id', 'student', 'academic_year', 'semester', 'status', 'assigned_room', 'created_at')
    list_filter = ('status', 'academic_year', 'semester', 'payment_status')
    search_fields = ('student__email', 'student__name', 'student__matric_number')
    readonly_fields = ('status', 'assigned_room', 'reviewed_by', 'reviewed_at')


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'object_type', 'object_id', 'user')
    list_filter = ('action', 'object_type')
    search_fields = ('action', 'object_type')
