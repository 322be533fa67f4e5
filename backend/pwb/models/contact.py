"""Contact and enquiry message models."""

from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, Float, JSON, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from pwb.core.database import Base
from pwb.core.tenant import TenantScoped


class Contact(TenantScoped, Base):
    """A person who got in touch with a website."""

    __tablename__ = "contacts"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, index=True)
    last_name = Column(String, index=True)
    primary_email = Column(String, index=True)
    primary_phone_number = Column(String, index=True)
    other_phone_number = Column(String)
    details = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    messages = relationship("Message", back_populates="contact")

    @property
    def display_name(self) -> str:
        names = " ".join(n for n in (self.first_name, self.last_name) if n)
        return names or self.primary_email or ""


class Message(TenantScoped, Base):
    """An enquiry submitted through a contact form."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String)
    content = Column(Text)
    origin_email = Column(String)
    delivery_email = Column(String)
    origin_ip = Column(String)
    user_agent = Column(String)
    locale = Column(String)
    host = Column(String)
    url = Column(String)
    latitude = Column(Float)
    longitude = Column(Float)
    contact_id = Column(Integer, ForeignKey("contacts.id"), index=True)
    prop_id = Column(Integer, ForeignKey("props.id"), index=True)

    read = Column(Boolean, default=False, nullable=False)
    delivery_success = Column(Boolean, default=False, nullable=False)
    delivered_at = Column(DateTime)
    delivery_error = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    contact = relationship("Contact", back_populates="messages")
    prop = relationship("Prop")
