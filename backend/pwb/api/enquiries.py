"""Contact form submissions and the site-admin inbox."""

import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from pwb.core.database import get_current_shard, get_db
from pwb.core.i18n import get_locale, normalize_locale, translate
from pwb.core.security import require_website_admin
from pwb.core.tenant import for_website
from pwb.middleware.tenant import get_current_website, request_host
from pwb.models.contact import Message
from pwb.models.user import User
from pwb.models.website import Website
from pwb.schemas.enquiry import EnquiryCreate, MessageResponse, MessageUpdate
from pwb.services.enquiries import EnquiryService
from pwb.services.mailer import deliver_enquiry

logger = logging.getLogger(__name__)

router = APIRouter()
admin_router = APIRouter()


@router.post("/enquiries", status_code=status.HTTP_201_CREATED)
async def create_enquiry(
    payload: EnquiryCreate,
    request: Request,
    background_tasks: BackgroundTasks,
    website: Website = Depends(get_current_website),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    """
    Record a general or property enquiry and email it to the agency.

    Delivery happens after the response is sent; failures are kept on the
    message rather than reported to the visitor.
    """
    locale = normalize_locale(payload.locale) or locale
    fields = payload.enquiry
    service = EnquiryService(db, website)

    try:
        contact, message = service.create_enquiry(
            name=fields.name,
            email=fields.email,
            phone=fields.phone,
            content=fields.message,
            property_ref=fields.property_id,
            locale=locale,
            origin_ip=request.client.host if request.client else None,
            user_agent=request.headers.get("user-agent"),
            host=request_host(request),
            url=str(request.url),
        )
    except ValueError as e:
        logger.info(f"Rejected enquiry on website {website.id}: {e}")
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))

    if message.delivery_email:
        background_tasks.add_task(deliver_enquiry, message.id, website.id, get_current_shard())
    else:
        logger.warning(f"Website {website.id} has no contact address, enquiry {message.id} not emailed")

    return {"success": True, "data": {"contact_id": contact.id, "message_id": message.id}}


@admin_router.get("/messages", response_model=List[MessageResponse])
async def list_messages(
    unread: bool = False,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
):
    return EnquiryService(db, website).inbox(unread_only=unread)


@admin_router.patch("/messages/{message_id}", response_model=MessageResponse)
async def update_message(
    message_id: int,
    payload: MessageUpdate,
    website: Website = Depends(get_current_website),
    user: User = Depends(require_website_admin),
    db: Session = Depends(get_db),
    locale: str = Depends(get_locale),
):
    message = for_website(db, Message, website.id).filter(Message.id == message_id).first()
    if message is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=translate("message_not_found", locale))
    return EnquiryService(db, website).mark_read(message, payload.read)
