from .permissions import PermissionManager
from .selection import SelectionGrabber

__all__ = ["PermissionManager", "SelectionGrabber"]
