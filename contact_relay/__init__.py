"""Contact relay — validate contact-form submissions and mail them to the site operator."""

__version__ = "0.1.0"

from .composer import Notification, NotificationComposer
from .config import MailConfig, Settings
from .dispatcher import NotificationDispatcher
from .intake import normalize, validate
from .models import Delivered, Failed, Submission, ValidatedContact
from .service import ContactService
from .smtp_client import AsyncSmtpClient

__all__ = [
    "AsyncSmtpClient",
    "ContactService",
    "Delivered",
    "Failed",
    "MailConfig",
    "Notification",
    "NotificationComposer",
    "NotificationDispatcher",
    "Settings",
    "Submission",
    "ValidatedContact",
    "normalize",
    "validate",
]
