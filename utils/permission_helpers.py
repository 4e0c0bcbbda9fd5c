from rest_framework import permissions


class RoleBasedPermissions:
    """
    Reusable permission checks shared by the permission classes below.
    """

    @staticmethod
    def has_role(request, allowed_roles):
        """
        Generic role-based permission check.

        Args:
            request: HTTP request object
            allowed_roles (list): List of allowed role names

        Returns:
            bool: True if user has one of the allowed roles
        """
        if not request.user or not request.user.is_authenticated:
            return False

        if not request.user.role:
            return False

        return request.user.role.name in allowed_roles


class IsAdminUser(permissions.BasePermission):
    """
    Restricts access to users with the admin role.

    Used for the back office: fleet, trips, agent approval and manual
    booking reconciliation.
    """

    def has_permission(self, request, view):
        return RoleBasedPermissions.has_role(request, ["admin"])


class IsSeller(permissions.BasePermission):
    """
    Approved, unsuspended agents and consultants.
    """

    def has_permission(self, request, view):
        if not RoleBasedPermissions.has_role(request, ["agent", "consultant"]):
            return False
        return request.user.can_sell


class AdminOnlyPermissionMixin:
    """
    Mixin to restrict access to admin users only.
    """

    def get_permissions(self):
        """
        Returns admin-only permission classes.

        Returns:
            list: List containing IsAdminUser permission class
        """
        return [IsAdminUser()]
