"""
Custom permission classes for staff roles.

Event administrators manage payments and reference data; kit
distributors (volunteers at the claim desk) may only scan tickets and
claim kits.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS


class IsEventAdmin(BasePermission):
    """
    Allow access only to event administrators.

    Usage:
        class RegistrationViewSet(viewsets.ModelViewSet):
            permission_classes = [IsAuthenticated, IsEventAdmin]
    """

    message = 'Only event administrators can perform this action.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_event_admin)


class CanDistributeKits(BasePermission):
    """Allow administrators and kit-desk volunteers."""

    message = 'You do not have permission to distribute kits.'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_kit_distributor)


class IsEventAdminOrReadOnly(BasePermission):
    """
    Read access for everyone, writes for event administrators.

    The public registration form reads categories and payment methods
    through this.
    """

    message = 'Only event administrators can modify this resource.'

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        user = request.user
        return bool(user and user.is_authenticated and user.is_event_admin)
