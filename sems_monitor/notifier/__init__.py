"""SEMS Monitor — Notifier Package.

Delivery of generated messages. Components:
  - SendGridTransport: SendGrid v3 mail client
  - NotificationDispatcher: channel routing and operator-facing results
  - NotificationSession: generate-then-send flow with stale-result guard
"""

from sems_monitor.notifier.sendgrid_transport import MailMessage, SendGridTransport
from sems_monitor.notifier.dispatcher import NotificationDispatcher
from sems_monitor.notifier.session import NotificationSession

__all__ = [
    "MailMessage",
    "SendGridTransport",
    "NotificationDispatcher",
    "NotificationSession",
]
