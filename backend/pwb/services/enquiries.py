"""
Contact-form enquiries: contact reuse, message creation, delivery address.
"""

import logging
from typing import Optional, Tuple

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import func
from sqlalchemy.orm import Session

from pwb.core.i18n import translate
from pwb.core.tenant import for_website
from pwb.models.contact import Contact, Message
from pwb.models.prop import Prop
from pwb.models.website import Website

logger = logging.getLogger(__name__)


def valid_email(email: str) -> bool:
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def find_prop(db: Session, website: Website, id_or_slug) -> Optional[Prop]:
    """Look up a listing by numeric id or slug within the website."""
    if id_or_slug is None or str(id_or_slug).strip() == "":
        return None
    value = str(id_or_slug).strip()
    query = for_website(db, Prop, website.id)
    if value.isdigit():
        prop = query.filter(Prop.id == int(value)).first()
        if prop is not None:
            return prop
    return query.filter(Prop.slug == value).first()


def delivery_address(website: Website, prop: Optional[Prop] = None) -> Optional[str]:
    agency = website.agency
    candidates = []
    if agency is not None:
        if prop is not None:
            candidates.append(agency.email_for_property_contact_form)
        candidates.append(agency.email_for_general_contact_form)
        candidates.append(agency.email_primary)
    candidates.append(website.email_for_general_contact_form)
    return next((c for c in candidates if c), None)


class EnquiryService:
    """Records enquiries submitted to one website."""

    def __init__(self, db: Session, website: Website):
        self.db = db
        self.website = website

    def find_or_create_contact(self, name: Optional[str], email: Optional[str], phone: Optional[str]) -> Contact:
        contact = None
        if email:
            contact = (
                for_website(self.db, Contact, self.website.id)
                .filter(func.lower(Contact.primary_email) == email.lower())
                .first()
            )

        if contact is None:
            contact = Contact(
                website_id=self.website.id,
                first_name=name,
                primary_email=email,
                primary_phone_number=phone,
            )
            self.db.add(contact)
            self.db.flush()
            logger.info(f"Created contact {contact.id} for website {self.website.id}")
        elif phone and not contact.primary_phone_number:
            contact.primary_phone_number = phone

        return contact

    def create_enquiry(self, name: Optional[str], email: Optional[str], phone: Optional[str],
                       content: Optional[str], property_ref=None, locale: str = "en",
                       origin_ip: Optional[str] = None, user_agent: Optional[str] = None,
                       host: Optional[str] = None, url: Optional[str] = None) -> Tuple[Contact, Message]:
        email = (email or "").strip() or None
        if email and not valid_email(email):
            raise ValueError(translate("invalid_email", locale))

        prop = find_prop(self.db, self.website, property_ref)
        contact = self.find_or_create_contact(name, email, phone)

        if prop is not None:
            title = translate("property_enquiry_title", locale, property=prop.title or prop.reference or prop.id)
        else:
            title = translate("general_enquiry_title", locale)

        message = Message(
            website_id=self.website.id,
            contact_id=contact.id,
            prop_id=prop.id if prop else None,
            title=title,
            content=content,
            origin_email=email,
            delivery_email=delivery_address(self.website, prop),
            origin_ip=origin_ip,
            user_agent=user_agent,
            locale=locale,
            host=host,
            url=url,
        )
        self.db.add(message)
        self.db.commit()
        self.db.refresh(contact)
        self.db.refresh(message)

        logger.info(
            f"Enquiry {message.id} received on website {self.website.id} "
            f"(contact {contact.id}, property {message.prop_id})"
        )
        return contact, message

    def inbox(self, unread_only: bool = False):
        query = for_website(self.db, Message, self.website.id)
        if unread_only:
            query = query.filter(Message.read.is_(False))
        return query.order_by(Message.created_at.desc(), Message.id.desc()).all()

    def mark_read(self, message: Message, read: bool = True) -> Message:
        message.read = read
        self.db.commit()
        self.db.refresh(message)
        return message
