"""Contact form and inbox schemas."""

from pydantic import BaseModel
from typing import Optional, Union
from datetime import datetime


class EnquiryFields(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    message: Optional[str] = None
    property_id: Optional[Union[int, str]] = None


class EnquiryCreate(BaseModel):
    """Body of ``POST /api/public/enquiries``."""
    enquiry: EnquiryFields
    locale: Optional[str] = None


class MessageResponse(BaseModel):
    id: int
    title: Optional[str] = None
    content: Optional[str] = None
    origin_email: Optional[str] = None
    delivery_email: Optional[str] = None
    locale: Optional[str] = None
    host: Optional[str] = None
    contact_id: Optional[int] = None
    prop_id: Optional[int] = None
    read: bool
    delivery_success: bool
    delivered_at: Optional[datetime] = None
    delivery_error: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class MessageUpdate(BaseModel):
    read: bool = True
