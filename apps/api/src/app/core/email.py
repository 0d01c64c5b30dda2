"""
Email Service using Resend

Notifications sent when a registration is received:
- the back-office notification (always)
- the acknowledgement to the applicant (when ``notify_applicant`` is set)

Sending never raises; failures are logged and reported as False so the
intake itself is never rolled back because of email.
"""

import asyncio
import logging
from datetime import UTC, datetime
from html import escape
from zoneinfo import ZoneInfo

import resend

from app.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

DISPLAY_TIMEZONE = ZoneInfo("Asia/Jerusalem")
NOT_PROVIDED = "Non renseigné"


def format_local_datetime(moment: datetime | None = None) -> str:
    """Format a timestamp as dd/mm/yyyy HH:MM:SS in Israel time."""
    moment = moment or datetime.now(UTC)
    return moment.astimezone(DISPLAY_TIMEZONE).strftime("%d/%m/%Y %H:%M:%S")


async def send_email(
    to_email: str,
    subject: str,
    text_content: str,
    html_content: str | None = None,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        text_content: Plain-text body
        html_content: Optional HTML alternative

    Returns:
        True if the email was sent (or logged, without an API key)
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "text": text_content,
        }
        if html_content:
            params["html"] = html_content

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


def build_acknowledgement_text(code: str) -> str:
    """Acknowledgement message for the applicant, quoting their NIU."""
    return f"""Bonjour,

Nous vous remercions pour votre demande d'inscription au Programme Kadima.

Voici votre Numéro d'Inscription Unique (NIU) : {code}
Ce numéro est votre référence pour tous les échanges avec l'administration.
Veuillez le conserver précieusement et le mentionner dans toute correspondance.

Elle sera traitée dans les meilleurs délais. Vous recevrez une réponse complète sous 24 à 48 heures (hors jours fériés et Chabbat).

Bien cordialement,

Service gestion - Programme Kadima
{settings.notification_recipient}
"""


async def send_registration_notification(
    code: str,
    last_name: str,
    first_name: str,
    email: str,
    phone: str | None,
    received_at: datetime | None = None,
) -> bool:
    """Notify the back office that a registration was received."""
    separator = "-" * 41
    text_content = f"""NOUVELLE INSCRIPTION KADIMA

{separator}
NIU: {code}
{separator}

ÉTUDIANT:
   Nom: {last_name} {first_name}
   Email: {email}
   Téléphone: {phone or NOT_PROVIDED}

Date d'inscription: {format_local_datetime(received_at)}

{separator}

Message d'accusé de réception:

{build_acknowledgement_text(code)}"""

    return await send_email(
        to_email=settings.notification_recipient,
        subject=f"[{code}] Nouvelle inscription: {last_name} {first_name}",
        text_content=text_content,
    )


async def send_registration_acknowledgement(to_email: str, code: str) -> bool:
    """Send the acknowledgement, with the NIU, to the applicant."""
    text_content = build_acknowledgement_text(code)
    paragraphs = "".join(
        f"<p>{escape(block).replace(chr(10), '<br>')}</p>"
        for block in text_content.split("\n\n")
        if block.strip()
    )
    html_content = f"""
    <!DOCTYPE html>
    <html>
    <body style="font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937;">
        <div style="max-width: 600px; margin: 0 auto; padding: 40px 20px;">
            {paragraphs}
        </div>
    </body>
    </html>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Programme Kadima - Votre inscription {code}",
        text_content=text_content,
        html_content=html_content,
    )
