from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from jinja2 import DictLoader, Environment

from ..users.model import User
from .email import EmailSender

logger = logging.getLogger(__name__)

_LAYOUT = """\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>{{ title }}</title></head>
<body style="font-family: Arial, sans-serif; color: #1f2937;">
  <h2>{{ title }}</h2>
  {% block content %}{% endblock %}
  <hr>
  <p style="font-size: 12px; color: #6b7280;">{{ system_name }}</p>
</body>
</html>
"""

TEMPLATES = {
    "layout.html": _LAYOUT,
    "approval.html": """\
{% extends "layout.html" %}
{% block content %}
<p>Hello {{ student_name }},</p>
{% if approved %}
<p>Your account registration has been approved.</p>
<p>You can now mark your attendance using QR codes and view your attendance history.</p>
{% else %}
<p>Your account registration has been received and is under review.</p>
<p>An administrator will review your registration and you will receive another email when approved.</p>
{% endif %}
{% endblock %}
""",
    "attendance.html": """\
{% extends "layout.html" %}
{% block content %}
<p>Hello {{ student_name }},</p>
<p>Your attendance has been recorded.</p>
<ul>
  <li><strong>Class:</strong> {{ class_name }}</li>
  <li><strong>Date &amp; Time:</strong> {{ timestamp.strftime("%A, %B %d, %Y %H:%M %Z") }}</li>
  <li><strong>Status:</strong> {{ status }}</li>
</ul>
{% endblock %}
""",
}


class Notifier:
    """Render and send notification e-mails.

    Every method makes exactly one delivery attempt and never raises: it
    returns ``None`` on success or a warning message on failure.
    """

    def __init__(self, sender: EmailSender, *, system_name: str = "QR Attendance System"):
        self._sender = sender
        self._system_name = system_name
        self._env = Environment(loader=DictLoader(TEMPLATES), autoescape=True)

    def render(self, template_name: str, **context) -> str:
        template = self._env.get_template(template_name)
        return template.render(system_name=self._system_name, **context)

    def _deliver(self, to: Optional[str], subject: str, template_name: str, **context) -> Optional[str]:
        if not to:
            logger.warning("No recipient for %s notification; skipped", template_name)
            return "Email notification skipped: no recipient address"

        try:
            html = self.render(template_name, title=subject, **context)
            self._sender.send(to, subject, html)
        except Exception as e:
            logger.warning("Failed to send %s notification to %s", template_name, to, exc_info=True)
            return f"Email notification failed: {e}"

        logger.info("Sent %s notification to %s", template_name, to)
        return None

    def send_approval(self, user: User, approved: bool) -> Optional[str]:
        subject = (
            "Account Approved - Welcome to Attendance System!"
            if approved
            else "Registration Received - Pending Approval"
        )
        return self._deliver(
            user.email,
            subject,
            "approval.html",
            student_name=user.name or "Student",
            approved=approved,
        )

    def send_attendance_confirmation(
        self,
        *,
        to: Optional[str],
        student_name: Optional[str],
        class_name: Optional[str],
        timestamp: datetime,
        status: str,
    ) -> Optional[str]:
        return self._deliver(
            to,
            f"Attendance Confirmed - {class_name or 'Class'}",
            "attendance.html",
            student_name=student_name or "Student",
            class_name=class_name or "Class",
            timestamp=timestamp,
            status=status,
        )
