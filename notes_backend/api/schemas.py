from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

STATUS_OK = "OK"


# Pydantic models for serialization and validation

class Credentials(BaseModel):
    username: str = Field(..., max_length=64, description="User's username")
    password: str = Field(..., max_length=256)


class RegisterOut(BaseModel):
    status: str = STATUS_OK
    id: int


class TokenOut(BaseModel):
    status: str = STATUS_OK
    token: str


class NoteCreate(BaseModel):
    title: str = Field(..., max_length=255)
    content: str = Field(default="", description="Note content")


# PUBLIC_INTERFACE
class NoteUpdate(BaseModel):
    """Partial update: a field left as None is not touched."""
    title: Optional[str] = Field(None, max_length=255)
    content: Optional[str] = Field(None)


class NoteSummary(BaseModel):
    id: int
    title: str
    content: str
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NoteOut(NoteSummary):
    user_id: int


class ErrorOut(BaseModel):
    status: str = "Error"
    error: str


class NoteCreatedOut(BaseModel):
    status: str = STATUS_OK
    user_id: int = Field(..., alias="userId")
    note_id: int = Field(..., alias="noteId")


class NoteListOut(BaseModel):
    status: str = STATUS_OK
    user_id: int = Field(..., alias="userID")
    notes: List[NoteSummary]


class NoteDetailOut(BaseModel):
    status: str = STATUS_OK
    user_id: int = Field(..., alias="userID")
    note: NoteOut


class NoteChangedOut(BaseModel):
    status: str = STATUS_OK
    user_id: int = Field(..., alias="userID")
    note_id: int = Field(..., alias="noteID")
