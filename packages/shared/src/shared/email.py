"""Transactional email sending using Resend.

Handles the emails Growth Manager Pro sends directly (campaign email goes
through Instantly/Smartlead instead):
- Password reset links
- Welcome email when a strategy call is won
- Advisor/client connection requests and confirmations

Every send returns a bool; failures are logged, never raised.
"""

import logging
import os
from dataclasses import dataclass

import resend

logger = logging.getLogger("growth-manager-email")


# =============================================================================
# Configuration
# =============================================================================


@dataclass
class EmailConfig:
    """Email service configuration."""

    api_key: str
    from_email: str
    from_name: str = "Growth Manager Pro"

    @classmethod
    def from_env(cls) -> "EmailConfig":
        """Load email config from environment variables."""
        api_key = os.getenv("RESEND_API_KEY", "")
        from_email = os.getenv("RESEND_FROM_EMAIL", "noreply@example.com")
        from_name = os.getenv("RESEND_FROM_NAME", "Growth Manager Pro")

        if not api_key:
            logger.warning("RESEND_API_KEY not set - emails will fail")

        return cls(api_key=api_key, from_email=from_email, from_name=from_name)

    def is_configured(self) -> bool:
        return bool(self.api_key)


# =============================================================================
# Email Templates
# =============================================================================


def _first_name(name: str | None) -> str:
    """First word of a name, or a friendly fallback."""
    if not name or not name.strip():
        return "there"
    return name.strip().split()[0]


def _build_password_reset_html(name: str | None, reset_link: str) -> str:
    """Build HTML content for the password reset email."""
    return f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #333;">Reset Your Password</h2>

        <p>Hi {_first_name(name)},</p>

        <p>We received a request to reset your Growth Manager Pro password. This link expires in one hour:</p>

        <div style="text-align: center; margin: 30px 0;">
            <a href="{reset_link}" style="display: inline-block; background: #0066cc; color: white; padding: 15px 30px; text-decoration: none; border-radius: 5px; font-size: 18px;">Reset Password</a>
        </div>

        <p>If you didn't ask for this, you can ignore this email.</p>

        <p style="color: #999; font-size: 12px; margin-top: 30px;">
            If the button doesn't work, copy and paste this link: {reset_link}
        </p>
    </div>
    """


def _build_client_welcome_html(
    name: str | None,
    company: str | None,
    tier: str | None,
) -> str:
    """Build HTML content for the new client welcome email."""
    html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #333;">Welcome to Growth Manager Pro</h2>

        <p>Hi {_first_name(name)},</p>

        <p>Thank you for choosing to work with us{f" on behalf of {company}" if company else ""}. We're excited to get started.</p>
    """

    if tier:
        html += f"""
        <div style="background: #f5f5f5; padding: 15px; border-radius: 8px; margin: 20px 0;">
            <h3 style="margin-top: 0; color: #666;">Your Engagement</h3>
            <p>{tier.replace("_", " ").title()}</p>
        </div>
        """

    html += """
        <p>Over the next few days we'll send your onboarding schedule and portal access details.</p>

        <p style="color: #999; font-size: 12px; margin-top: 30px;">
            This email was automatically generated by Growth Manager Pro.
        </p>
    </div>
    """
    return html


def _counterpart(inviter_type: str) -> str:
    return "advisor" if inviter_type == "advisor" else "client"


CONNECTION_SUBJECTS = {
    "request": "{inviter} wants to connect on Growth Manager Pro",
    "platform_invite": "{inviter} invited you to Growth Manager Pro",
    "connected": "You're now connected with {inviter}",
}


def _build_connection_html(
    kind: str,
    to_name: str | None,
    inviter: str,
    inviter_type: str,
    link: str,
) -> str:
    """Build HTML content for the advisor/client connection emails."""
    if kind == "connected":
        body = f"<p>You and {inviter} are now connected. Shared dashboards are available in your portal.</p>"
        button = "Open Your Portal"
    elif kind == "platform_invite":
        body = (
            f"<p>{inviter} would like to work with you as your {_counterpart(inviter_type)} "
            "and has invited you to join Growth Manager Pro.</p>"
        )
        button = "Create Your Account"
    else:
        body = f"<p>{inviter} has asked to connect with you as your {_counterpart(inviter_type)}.</p>"
        button = "Review Request"

    html = f"""
    <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <h2 style="color: #333;">Growth Manager Pro</h2>

        <p>Hi {_first_name(to_name)},</p>

        {body}

        <div style="text-align: center; margin: 30px 0;">
            <a href="{link}" style="display: inline-block; background: #0066cc; color: white; padding: 15px 30px; text-decoration: none; border-radius: 5px; font-size: 18px;">{button}</a>
        </div>

        <p style="color: #999; font-size: 12px; margin-top: 30px;">
            This email was automatically generated by Growth Manager Pro.
        </p>
    </div>
    """
    return html


# =============================================================================
# Email Sender
# =============================================================================


class EmailSender:
    """Sends emails via Resend API."""

    def __init__(self, config: EmailConfig | None = None):
        """Initialize the email sender.

        Args:
            config: Email configuration. If not provided, loads from environment.
        """
        self.config = config or EmailConfig.from_env()
        resend.api_key = self.config.api_key

    def _send(self, to: str, subject: str, html: str) -> bool:
        if not self.config.is_configured():
            logger.error("Cannot send email: RESEND_API_KEY not configured")
            return False

        try:
            params: resend.Emails.SendParams = {
                "from": f"{self.config.from_name} <{self.config.from_email}>",
                "to": [to],
                "subject": subject,
                "html": html,
            }
            email_response = resend.Emails.send(params)
            logger.info(f"Email '{subject}' sent to {to}: {email_response.get('id')}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email '{subject}' to {to}: {e}")
            return False

    async def send_password_reset(
        self,
        to: str,
        name: str | None,
        reset_link: str,
    ) -> bool:
        """Send a password reset link.

        Args:
            to: Recipient email address
            name: Recipient's full name, if known
            reset_link: Single-use reset URL

        Returns:
            True if email sent successfully, False otherwise
        """
        return self._send(
            to,
            "Reset Your Password",
            _build_password_reset_html(name, reset_link),
        )

    async def send_client_welcome(
        self,
        to: str,
        name: str | None,
        company: str | None = None,
        tier: str | None = None,
    ) -> bool:
        """Send the welcome email to a newly won client.

        Returns:
            True if email sent successfully, False otherwise
        """
        return self._send(
            to,
            "Welcome to Growth Manager Pro",
            _build_client_welcome_html(name, company, tier),
        )

    async def send_connection_notice(
        self,
        kind: str,
        to: str,
        to_name: str | None,
        inviter: str,
        inviter_type: str,
        link: str,
    ) -> bool:
        """Send a connection email.

        Args:
            kind: "request", "platform_invite" or "connected"
            to: Recipient email address
            to_name: Recipient's name, if known
            inviter: Name (or email) of the other party
            inviter_type: "advisor" or "client"
            link: Portal or signup URL for the button
        """
        subject = CONNECTION_SUBJECTS.get(kind, CONNECTION_SUBJECTS["request"])
        return self._send(
            to,
            subject.format(inviter=inviter),
            _build_connection_html(kind, to_name, inviter, inviter_type, link),
        )


# Singleton instance
_email_sender: EmailSender | None = None


def get_email_sender() -> EmailSender:
    """Get the email sender singleton."""
    global _email_sender
    if _email_sender is None:
        _email_sender = EmailSender()
    return _email_sender
