# Document store readers package
from .base_source import BaseSource
from .complaint_source import ComplaintSource
from .notification_source import NotificationSource

__all__ = ["BaseSource", "ComplaintSource", "NotificationSource"]
