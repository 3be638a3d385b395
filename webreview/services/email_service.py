"""
WebReview
Email Service — invitation and feedback notification emails.

When SMTP is not configured, emails are logged but not sent (dev/test mode)
and reported as delivered.

Configuration (env vars):
    MAIL_SERVER     SMTP host (default: None → log-only mode)
    MAIL_PORT       SMTP port (default: 587)
    MAIL_USE_TLS    Use TLS (default: true)
    MAIL_USERNAME   SMTP username
    MAIL_PASSWORD   SMTP password
    MAIL_DEFAULT_SENDER  Default from address
    APP_URL         Base URL used in links (signup page, project page)

Sending never raises: callers get True/False and carry on.  Invitation
creation reports the flag to its caller as ``emailSent``.
"""

from __future__ import annotations

import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any

from flask import current_app

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  Email Templates
# ═══════════════════════════════════════════════════════════════════════════

_TEMPLATES: dict[str, dict[str, str]] = {
    "invitation": {
        "subject": "You're invited to join {app_name}",
        "html": """
        <div style="font-family: 'Segoe UI', Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <div style="background: #1e5fa8; color: white; padding: 24px; border-radius: 8px 8px 0 0; text-align: center;">
                <h2 style="margin: 0; font-size: 22px;">{app_name}</h2>
            </div>
            <div style="background: #f8fafc; padding: 24px; border: 1px solid #e2e8f0; border-top: none;">
                <p>Hello,</p>
                <p><strong>{inviter_name}</strong> has invited you to join {app_name} as a
                   <strong>{role}</strong>.</p>
                <p>You'll be able to view project previews, submit feedback and approve completed work.</p>
                <p style="text-align: center; margin: 24px 0;">
                    <a href="{invite_url}" style="background: #1e5fa8; color: white; padding: 12px 24px;
                       text-decoration: none; border-radius: 6px; font-weight: 600;">
                        Accept Invitation &amp; Create Account
                    </a>
                </p>
                <p style="font-size: 13px; color: #64748b;">
                    This invitation expires in {expiry_days} days. If the button doesn't work, open:
                    <br><a href="{invite_url}">{invite_url}</a>
                </p>
            </div>
            <div style="padding: 12px 24px; text-align: center;">
                <p style="color: #94a3b8; font-size: 12px; margin: 0;">
                    If you didn't expect this invitation, you can safely ignore this email.
                </p>
            </div>
        </div>
        """,
        "text": (
            "You're invited to join {app_name}\n\n"
            "{inviter_name} has invited you to join {app_name} as a {role}.\n\n"
            "Accept your invitation and create your account here:\n{invite_url}\n\n"
            "This invitation link will expire in {expiry_days} days.\n"
        ),
    },
    "feedback_notification": {
        "subject": "New {feedback_type} feedback on {project_name}",
        "html": """
        <div style="font-family: 'Segoe UI', Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <div style="background: #1e5fa8; color: white; padding: 16px 24px; border-radius: 8px 8px 0 0;">
                <h2 style="margin: 0; font-size: 18px;">New Feedback Received</h2>
                <p style="margin: 4px 0 0; opacity: 0.9;">{project_name}</p>
            </div>
            <div style="background: #f8fafc; padding: 24px; border: 1px solid #e2e8f0; border-top: none;">
                <p><strong>{author_name}</strong> submitted new feedback:</p>
                <div style="background: white; border: 1px solid #e2e8f0; border-radius: 8px; padding: 16px;">
                    <p style="margin-top: 0;"><strong>Type:</strong> {feedback_type}
                       <span style="background: {priority_color}; color: white; padding: 2px 10px;
                                    border-radius: 12px; font-size: 12px;">{priority}</span></p>
                    <p style="margin-bottom: 0;">{text}</p>
                </div>
                <p style="text-align: center; margin-top: 24px;">
                    <a href="{project_url}">View Project</a>
                </p>
            </div>
        </div>
        """,
        "text": (
            "New feedback on {project_name}\n\n"
            "{author_name} submitted new {feedback_type} feedback ({priority} priority):\n\n"
            "\"{text}\"\n\n"
            "View project: {project_url}\n"
        ),
    },
}

PRIORITY_COLORS = {
    "high": "#ef4444",
    "medium": "#f59e0b",
    "low": "#10b981",
}


class EmailService:
    """
    Email sending service with template support.

    In development/test mode (no MAIL_SERVER configured), emails are
    logged but not actually sent via SMTP.
    """

    @staticmethod
    def is_configured() -> bool:
        """Check if SMTP is configured."""
        return bool(current_app.config.get("MAIL_SERVER"))

    @staticmethod
    def get_template(template_name: str) -> dict[str, str] | None:
        """Get an email template by name."""
        return _TEMPLATES.get(template_name)

    @classmethod
    def send(
        cls,
        *,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: str | None = None,
        template_name: str | None = None,
    ) -> bool:
        """
        Send an email.

        Returns True when the message was handed to SMTP (or logged in dev
        mode), False when delivery failed.
        """
        if not cls.is_configured():
            logger.info(
                "Email (dev mode): to=%s subject='%s' template=%s",
                to_email, subject, template_name,
            )
            return True

        try:
            cls._send_smtp(to_email=to_email, subject=subject,
                           html_body=html_body, text_body=text_body)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Email failed: to=%s template=%s error=%s", to_email, template_name, exc)
            return False

        logger.info("Email sent: to=%s subject='%s'", to_email, subject)
        return True

    @classmethod
    def send_from_template(
        cls,
        *,
        to_email: str,
        template_name: str,
        context: dict[str, Any],
    ) -> bool:
        """
        Send an email using a named template.

        Template variables are interpolated from the context dict; values are
        HTML-escaped for the HTML part.
        """
        template = cls.get_template(template_name)
        if not template:
            logger.warning("Email template not found: %s", template_name)
            return False

        escaped = {k: html.escape(str(v)) for k, v in context.items()}
        subject = template["subject"].format_map(_SafeDict(context))
        html_body = template["html"].format_map(_SafeDict(escaped))
        text_body = template["text"].format_map(_SafeDict(context))

        return cls.send(
            to_email=to_email,
            subject=subject,
            html_body=html_body,
            text_body=text_body,
            template_name=template_name,
        )

    # ── Domain emails ─────────────────────────────────────────────────────

    @classmethod
    def send_invitation(cls, invitation) -> bool:
        """Email the signup link for *invitation*."""
        cfg = current_app.config
        invite_url = f"{cfg['APP_URL'].rstrip('/')}/signup.html?token={invitation.token}"
        return cls.send_from_template(
            to_email=invitation.email,
            template_name="invitation",
            context={
                "app_name": cfg.get("APP_NAME", "WebReview"),
                "inviter_name": invitation.invited_by_name or "A teammate",
                "role": invitation.role,
                "invite_url": invite_url,
                "expiry_days": cfg.get("INVITE_EXPIRY_DAYS", 7),
            },
        )

    @classmethod
    def send_feedback_notification(cls, feedback, project, recipients: list[str]) -> int:
        """Notify *recipients* of new feedback.  Returns how many sends succeeded."""
        project_url = f"{current_app.config['APP_URL'].rstrip('/')}/#project={project.id}"
        context = {
            "project_name": project.name,
            "author_name": feedback.author_name or "Someone",
            "feedback_type": feedback.type,
            "priority": feedback.priority,
            "priority_color": PRIORITY_COLORS.get(feedback.priority, "#64748b"),
            "text": feedback.text,
            "project_url": project_url,
        }
        sent = 0
        for recipient in recipients:
            if cls.send_from_template(
                to_email=recipient,
                template_name="feedback_notification",
                context=context,
            ):
                sent += 1
        return sent

    @staticmethod
    def _send_smtp(*, to_email: str, subject: str,
                   html_body: str, text_body: str | None) -> None:
        """Actually send via SMTP."""
        cfg = current_app.config
        server = cfg.get("MAIL_SERVER")
        port = cfg.get("MAIL_PORT", 587)
        use_tls = cfg.get("MAIL_USE_TLS", True)
        username = cfg.get("MAIL_USERNAME")
        password = cfg.get("MAIL_PASSWORD")
        sender = cfg.get("MAIL_DEFAULT_SENDER", f"noreply@{server}")

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = sender
        msg["To"] = to_email
        if text_body:
            msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))

        with smtplib.SMTP(server, port, timeout=30) as smtp:
            if use_tls:
                smtp.starttls()
            if username and password:
                smtp.login(username, password)
            smtp.send_message(msg)


class _SafeDict(dict):
    """Dict that returns {key} for missing keys instead of raising."""

    def __missing__(self, key):
        return f"{{{key}}}"
