from __future__ import annotations

import uuid
from typing import Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.db.operations import flush_async, refresh_async
from dealership.models.contact import ContactMessage
from dealership.schemas.contact import ContactMessageCreate
from dealership.services.exceptions import ResourceNotFoundError


async def create_message(db: AsyncSession, payload: ContactMessageCreate) -> ContactMessage:
    message = ContactMessage(
        name=payload.name.strip(),
        email=payload.email.lower(),
        subject=payload.subject.strip(),
        message=payload.message.strip(),
    )
    db.add(message)
    await flush_async(db, message)
    await refresh_async(db, message)
    return message


async def list_messages(
    db: AsyncSession,
    *,
    unread_only: bool = False,
    skip: int = 0,
    limit: int = 50,
) -> tuple[Sequence[ContactMessage], int]:
    conditions = [ContactMessage.is_read.is_(False)] if unread_only else []
    total = await db.scalar(select(func.count(ContactMessage.id)).where(*conditions))
    stmt = (
        select(ContactMessage)
        .where(*conditions)
        .order_by(ContactMessage.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    result = await db.execute(stmt)
    return result.scalars().all(), int(total or 0)


async def count_unread(db: AsyncSession) -> int:
    return int(await db.scalar(select(func.count(ContactMessage.id)).where(ContactMessage.is_read.is_(False))) or 0)


async def get_message(db: AsyncSession, message_id: uuid.UUID) -> ContactMessage:
    message = await db.get(ContactMessage, message_id)
    if not message:
        raise ResourceNotFoundError("Message not found")
    return message


async def mark_read(db: AsyncSession, message: ContactMessage, is_read: bool = True) -> ContactMessage:
    message.is_read = is_read
    await flush_async(db, message)
    return message


async def delete_message(db: AsyncSession, message: ContactMessage) -> None:
    await db.delete(message)
    await flush_async(db)
