# dealership/models/contact.py
import uuid
from datetime import datetime, timedelta

from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import String, Boolean, DateTime, func, Text

from dealership.db.session import Base
from dealership.db.types import GUID, as_aware, utcnow
from dealership.domain.enums import MessagePriority


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id: Mapped[uuid.UUID] = mapped_column(GUID(), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    subject: Mapped[str] = mapped_column(String(200), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    @property
    def priority(self) -> MessagePriority:
        age = utcnow() - as_aware(self.created_at)
        if age > timedelta(days=7):
            return MessagePriority.low
        if age > timedelta(days=3):
            return MessagePriority.medium
        return MessagePriority.high
