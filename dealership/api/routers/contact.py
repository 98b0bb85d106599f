from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_admin
from dealership.core.config import settings
from dealership.core.logging import get_logger
from dealership.core.rate_limiter import rate_limit
from dealership.db.operations import commit_async, rollback_async
from dealership.db.session_async import get_async_db
from dealership.schemas.contact import ContactInfo, ContactMessageCreate, ContactMessageRead
from dealership.schemas.pagination import Page
from dealership.services import contact_service, email_service

router = APIRouter(prefix="/contact", tags=["contact"])

logger = get_logger("dealership.contact")

contact_rate_limit = rate_limit(
    settings.RATE_LIMIT_CONTACT_PER_WINDOW,
    settings.RATE_LIMIT_CONTACT_WINDOW_SECONDS,
    scope="contact",
)


# --- Público ---
@router.get("/info", response_model=ContactInfo)
async def contact_info():
    return ContactInfo(support_email=settings.SUPPORT_EMAIL, support_phone=settings.SUPPORT_PHONE)


@router.post(
    "",
    response_model=ContactMessageRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(contact_rate_limit)],
)
async def submit_message(payload: ContactMessageCreate, db: AsyncSession = Depends(get_async_db)):
    try:
        message = await contact_service.create_message(db, payload)
        await commit_async(db)
    except Exception:
        await rollback_async(db)
        raise
    email_service.send_contact_acknowledgement(message)
    email_service.send_contact_notification(message)
    logger.info("Contact message received", extra={"message_id": str(message.id), "email": message.email})
    return message


# --- Admin ---
@router.get(
    "/messages",
    response_model=Page[ContactMessageRead],
    dependencies=[Depends(get_current_admin)],
)
async def admin_list(
    unread_only: bool = Query(False),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_db),
):
    items, total = await contact_service.list_messages(
        db, unread_only=unread_only, skip=(page - 1) * page_size, limit=page_size
    )
    return Page.build([ContactMessageRead.model_validate(m) for m in items], total, page, page_size)


@router.patch(
    "/messages/{message_id}/read",
    response_model=ContactMessageRead,
    dependencies=[Depends(get_current_admin)],
)
async def admin_mark_read(
    message_id: UUID,
    is_read: bool = Query(True),
    db: AsyncSession = Depends(get_async_db),
):
    message = await contact_service.get_message(db, message_id)
    message = await contact_service.mark_read(db, message, is_read)
    await commit_async(db)
    return message


@router.delete(
    "/messages/{message_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_admin)],
)
async def admin_delete(message_id: UUID, db: AsyncSession = Depends(get_async_db)):
    message = await contact_service.get_message(db, message_id)
    await contact_service.delete_message(db, message)
    await commit_async(db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
