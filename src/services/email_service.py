"""
Email service using Resend API
"""

import logging
from typing import Optional
import resend

from config.settings import FROM_EMAIL, FRONTEND_URL, RESEND_API_KEY, RESET_TOKEN_TTL_MINUTES

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    """Raised when Resend rejects or fails to send a message"""


def send_email(recipient_email: str, subject: str, html_body: str, text_body: Optional[str] = None) -> Optional[str]:
    """
    Send an email via Resend

    Returns:
        The Resend message id

    Raises:
        EmailDeliveryError: If email is not configured or sending fails
    """
    if not RESEND_API_KEY:
        raise EmailDeliveryError("Email delivery is not configured")

    email_data = {
        "from": FROM_EMAIL,
        "to": [recipient_email],
        "subject": subject,
        "html": html_body,
    }
    if text_body:
        email_data["text"] = text_body

    try:
        result = resend.Emails.send(email_data)
    except Exception as e:
        logger.error(f"Email sending failed to {recipient_email}: {e}")
        raise EmailDeliveryError(str(e)) from e

    # Extract just the ID string from the Resend response
    if hasattr(result, 'id'):
        resend_id = result.id
    elif isinstance(result, dict):
        resend_id = result.get('id')
    else:
        resend_id = None

    logger.info(f"Email sent via Resend - ID: {resend_id}, To: {recipient_email}")
    return resend_id


def build_reset_url(token: str) -> str:
    return f"{FRONTEND_URL.rstrip('/')}/reset-password?token={token}"


def send_welcome_email(recipient_email: str, first_name: str) -> Optional[str]:
    subject = "Welcome to Sycamore Church"
    html = f"""
        <h2>Welcome, {first_name}!</h2>
        <p>Your Sycamore Church account has been created. You can now check in to services,
        join communities and follow your church journey from the mobile app.</p>
        <p>We are glad you are here.</p>
    """
    text = (
        f"Welcome, {first_name}!\n\n"
        "Your Sycamore Church account has been created. You can now check in to services, "
        "join communities and follow your church journey from the mobile app."
    )
    return send_email(recipient_email, subject, html, text)


def send_password_reset_email(recipient_email: str, first_name: str, token: str) -> Optional[str]:
    reset_url = build_reset_url(token)
    subject = "Reset your Sycamore Church password"
    html = f"""
        <p>Hi {first_name},</p>
        <p>We received a request to reset your password. Use the link below within
        {RESET_TOKEN_TTL_MINUTES} minutes:</p>
        <p><a href="{reset_url}">Reset password</a></p>
        <p>If you did not request this, you can ignore this email.</p>
    """
    text = (
        f"Hi {first_name},\n\nReset your password within {RESET_TOKEN_TTL_MINUTES} minutes: {reset_url}\n\n"
        "If you did not request this, you can ignore this email."
    )
    return send_email(recipient_email, subject, html, text)
