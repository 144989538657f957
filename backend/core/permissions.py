from rest_framework.permissions import BasePermission


def is_admin_user(user):
    """
    Check if user is an admin user.
    Returns True for the superadmin/ceo/deputy_ceo roles and for Django
    superusers/staff.
    """
    if not user or not user.is_authenticated:
        return False
    return user.is_admin_role or user.is_staff


class IsAdminRole(BasePermission):
    """Allows access only to admin roles"""
    message = 'Only administrators can perform this action.'

    def has_permission(self, request, view):
        return is_admin_user(request.user)
