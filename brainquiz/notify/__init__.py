from .api import SMSClient
from .notifier import Notifier, SMSNotifier, TEMPLATES, render_message
from .utils import format_phone_number, is_valid_phone_number, mask_phone_number

__all__ = [
    "SMSClient",
    "Notifier",
    "SMSNotifier",
    "TEMPLATES",
    "render_message",
    "format_phone_number",
    "is_valid_phone_number",
    "mask_phone_number",
]
