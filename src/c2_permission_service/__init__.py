"""C2 Permission Service - capability checks for projects and columns."""
from src.c2_permission_service.permission_service import (
    ContainerPermissionChecker,
    ProjectPermissionChecker,
    AllowAllPermissionChecker,
    ROLE_PERMISSIONS,
    PROJECT_VIEW,
    COLUMN_CREATE,
    COLUMN_REORDER,
    COLUMN_DELETE,
    CARD_CREATE,
    CARD_EDIT,
    CARD_MOVE,
    CARD_DELETE,
)
__all__ = [
    "ContainerPermissionChecker",
    "ProjectPermissionChecker",
    "AllowAllPermissionChecker",
    "ROLE_PERMISSIONS",
    "PROJECT_VIEW",
    "COLUMN_CREATE",
    "COLUMN_REORDER",
    "COLUMN_DELETE",
    "CARD_CREATE",
    "CARD_EDIT",
    "CARD_MOVE",
    "CARD_DELETE",
]
