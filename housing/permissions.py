"""
Role based permission classes.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsAdminRole(BasePermission):
    """Allow access only to users with the admin role."""
    message = 'Access denied. Admin role required.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "is_admin", False))

class IsStudentRole(BasePermission):
    """Allow access only to users with the student role."""
    message = 'Access denied. Student role required.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        return bool(user and user.is_authenticated and getattr(user, "is_student", False))

class IsAdminOrReadOnly(BasePermission):
    """Reads for any authenticated user, writes for admins."""
    message = 'Access denied. Admin role required.'

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, "user", None)
        if not (user and user.is_authenticated):
            return False
        return request.method in SAFE_METHODS or getattr(user, "is_admin", False)

def is_owner_or_admin(user, student_id) -> bool:
    """True when ``user`` is an admin or is the student ``student_id``."""
    if getattr(user, "is_admin", False):
        return True
    return str(getattr(user, "pk", "")) == str(student_id)
