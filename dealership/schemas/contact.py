# dealership/schemas/contact.py
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from dealership.domain.enums import MessagePriority


class ContactMessageCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    subject: str = Field(..., min_length=3, max_length=200)
    message: str = Field(..., min_length=10, max_length=5000)


class ContactMessageRead(BaseModel):
    id: UUID
    name: str
    email: EmailStr
    subject: str
    message: str
    is_read: bool
    priority: MessagePriority
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ContactInfo(BaseModel):
    support_email: str
    support_phone: str
