"""
Report delivery.
"""

from .mail import MailDelivery

__all__ = ["MailDelivery"]
