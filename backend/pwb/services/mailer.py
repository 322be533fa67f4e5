"""
Enquiry notification emails sent to the agency.
"""

import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from typing import Callable, Optional

from pwb.core.config import settings
from pwb.core.database import session_scope
from pwb.core.i18n import translate
from pwb.core.tenant import website_scope
from pwb.models.contact import Contact, Message
from pwb.models.prop import Prop
from pwb.models.website import Website
from pwb.services.domains import primary_url

logger = logging.getLogger(__name__)

GENERAL_TEMPLATE = """\
You have received a new enquiry through {website_name}.

From: {visitor_name}
Email: {visitor_email}
Phone: {visitor_phone}

{message}
"""

PROPERTY_TEMPLATE = """\
You have received a new enquiry about {property_title} (ref. {property_reference}).

From: {visitor_name}
Email: {visitor_email}
Phone: {visitor_phone}

{message}

View the property: {property_url}
"""


def send_via_smtp(email: EmailMessage) -> None:
    with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=10) as smtp:
        if settings.SMTP_USE_TLS:
            smtp.starttls()
        if settings.SMTP_USERNAME:
            smtp.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        smtp.send_message(email)


class EnquiryMailer:
    """Builds and sends enquiry emails."""

    def __init__(self, transport: Optional[Callable[[EmailMessage], None]] = None):
        self.transport = transport or send_via_smtp

    @staticmethod
    def template_variables(contact: Contact, message: Message, website: Website,
                           prop: Optional[Prop] = None) -> dict:
        variables = {
            "visitor_name": contact.display_name if contact else "",
            "visitor_email": message.origin_email or "",
            "visitor_phone": (contact.primary_phone_number if contact else None) or "",
            "message": message.content or "",
            "website_name": website.display_name,
        }
        if prop is not None:
            base_url = primary_url(website) or ""
            variables.update({
                "property_title": prop.title or "",
                "property_reference": prop.reference or "",
                "property_url": f"{base_url}/properties/{prop.id}/{prop.url_friendly_title}",
            })
        return variables

    def _build(self, subject: str, body: str, message: Message) -> EmailMessage:
        email = EmailMessage()
        email["Subject"] = subject
        email["From"] = settings.MAIL_FROM
        email["To"] = message.delivery_email
        if message.origin_email:
            email["Reply-To"] = message.origin_email
        email.set_content(body)
        return email

    def general_enquiry(self, contact: Contact, message: Message, website: Website) -> EmailMessage:
        locale = message.locale or "en"
        subject = message.title or translate("general_enquiry_title", locale)
        body = GENERAL_TEMPLATE.format(**self.template_variables(contact, message, website))
        return self._build(subject, body, message)

    def property_enquiry(self, contact: Contact, message: Message, website: Website, prop: Prop) -> EmailMessage:
        locale = message.locale or "en"
        subject = message.title or translate("property_enquiry_title", locale, property=prop.title or prop.reference)
        body = PROPERTY_TEMPLATE.format(**self.template_variables(contact, message, website, prop))
        return self._build(subject, body, message)

    def deliver(self, message: Message, website: Website) -> bool:
        """Send the email for ``message`` and record the outcome on it."""
        if not message.delivery_email:
            logger.info(f"Message {message.id} has no delivery address, skipping email")
            return False

        if message.prop is not None:
            email = self.property_enquiry(message.contact, message, website, message.prop)
        else:
            email = self.general_enquiry(message.contact, message, website)

        try:
            self.transport(email)
        except Exception as e:
            message.delivery_success = False
            message.delivery_error = f"{type(e).__name__}: {e}"
            logger.error(f"Enquiry email for message {message.id} failed: {e}", exc_info=True)
            return False

        message.delivery_success = True
        message.delivered_at = datetime.utcnow()
        message.delivery_error = None
        logger.info(f"Enquiry email for message {message.id} sent to {message.delivery_email}")
        return True


def deliver_enquiry(message_id: int, website_id: int, shard: str, mailer: Optional[EnquiryMailer] = None) -> bool:
    """Background task entry point: runs outside the request session."""
    mailer = mailer or EnquiryMailer()
    with session_scope(shard) as db, website_scope(website_id):
        website = db.get(Website, website_id)
        message = db.get(Message, message_id)
        if website is None or message is None:
            logger.warning(f"Enquiry delivery skipped, message {message_id} not found")
            return False
        sent = mailer.deliver(message, website)
        db.commit()
        return sent


VERIFICATION_TEMPLATE = """\
Welcome to PropertyWebBuilder!

Your website {subdomain} is ready. Confirm your email address to unlock it:

{verification_url}

This link expires on {expires_at}.
"""


def send_verification_email(website: Website, transport: Optional[Callable[[EmailMessage], None]] = None) -> bool:
    """Email the owner the link that unlocks a freshly provisioned website."""
    if not website.owner_email or not website.email_verification_token:
        logger.warning(f"Website {website.id} has no owner email or verification token")
        return False

    base_url = primary_url(website) or ""
    email = EmailMessage()
    email["Subject"] = "Verify your email to activate your website"
    email["From"] = settings.MAIL_FROM
    email["To"] = website.owner_email
    email.set_content(VERIFICATION_TEMPLATE.format(
        subdomain=website.subdomain,
        verification_url=f"{base_url}/signup/verify_email?token={website.email_verification_token}",
        expires_at=website.email_verification_token_expires_at.strftime("%Y-%m-%d")
        if website.email_verification_token_expires_at else "",
    ))

    try:
        (transport or send_via_smtp)(email)
    except Exception as e:
        logger.error(f"Verification email for website {website.id} failed: {e}", exc_info=True)
        return False

    logger.info(f"Verification email sent for website {website.id} to {website.owner_email}")
    return True


def deliver_verification(website_id: int, transport: Optional[Callable[[EmailMessage], None]] = None) -> bool:
    """Background task entry point for the verification email."""
    with session_scope() as db:
        website = db.get(Website, website_id)
        if website is None:
            logger.warning(f"Verification email skipped, website {website_id} not found")
            return False
        return send_verification_email(website, transport=transport)
