# schoolms/schemas/notification.py
from typing import List, Optional
from pydantic import BaseModel, EmailStr, Field


class EmailSendRequest(BaseModel):
    recipients: List[EmailStr] = Field(..., min_length=1, max_length=100)
    subject: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1)
    title: Optional[str] = Field(default=None, max_length=200)


class EmailRecipientResult(BaseModel):
    email: str
    sent: bool
