# permissions.py
import logging

from rest_framework import permissions

logger = logging.getLogger(__name__)


class IsOwner(permissions.BasePermission):
    """
    Object-level permission granting access only to the record's owner.

    Querysets are already scoped to ``request.user``; this guards detail
    actions against objects fetched some other way.
    """

    def has_object_permission(self, request, view, obj):
        owner_id = getattr(obj, "owner_id", None)
        if owner_id == request.user.id:
            return True

        logger.warning(
            "Owner access denied",
            extra={
                "user_id": request.user.id,
                "object_type": type(obj).__name__,
                "object_id": getattr(obj, "pk", None),
                "action": "owner_access_denied",
                "component": "IsOwner",
                "severity": "high",
            },
        )
        return False
