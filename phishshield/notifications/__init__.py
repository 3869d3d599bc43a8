"""User-facing phishing alerts."""

from .throttle import Alert, NotificationThrottle, build_alert

__all__ = ["Alert", "NotificationThrottle", "build_alert"]
