"""
Validated models for threads, messages and application records.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

VALID_ROLES = ['user', 'assistant', 'system', 'tool']


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _non_empty(value: str, name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f'{name} cannot be empty')
    return value


class Thread(BaseModel):
    model_config = ConfigDict(extra='forbid')

    id: str
    resource_id: str
    title: str = ''
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator('id')
    @classmethod
    def id_must_not_be_empty(cls, v):
        return _non_empty(v, 'id')

    @field_validator('resource_id')
    @classmethod
    def resource_id_must_not_be_empty(cls, v):
        return _non_empty(v, 'resource_id')


class MessagePart(BaseModel):
    """
    One piece of message content.

    ``text`` parts carry text; ``retrieved_documents`` parts carry the
    documents a retrieval step handed to the model. Other part types may
    carry arbitrary extra fields, which are stored as given.
    """
    model_config = ConfigDict(extra='allow')

    type: str = 'text'
    text: Optional[str] = None
    documents: Optional[List[Dict[str, Any]]] = None

    @model_validator(mode='after')
    def payload_matches_type(self):
        if self.type == 'text' and self.text is None:
            raise ValueError("text parts require 'text'")
        if self.type == 'retrieved_documents' and self.documents is None:
            raise ValueError("retrieved_documents parts require 'documents'")
        return self


class Message(BaseModel):
    model_config = ConfigDict(extra='forbid')

    id: str
    thread_id: str
    role: str
    type: str = 'text'
    content: List[MessagePart]
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)

    @field_validator('id')
    @classmethod
    def id_must_not_be_empty(cls, v):
        return _non_empty(v, 'id')

    @field_validator('thread_id')
    @classmethod
    def thread_id_must_not_be_empty(cls, v):
        return _non_empty(v, 'thread_id')

    @field_validator('role')
    @classmethod
    def role_must_be_valid(cls, v):
        if v not in VALID_ROLES:
            raise ValueError(f'role must be one of: {VALID_ROLES}')
        return v

    @property
    def text(self) -> str:
        """Concatenated text of all text parts."""
        return "".join(part.text or '' for part in self.content if part.type == 'text')


class AppRecord(BaseModel):
    """Free-form application data such as user preferences or agent memory."""
    model_config = ConfigDict(extra='forbid')

    id: str
    type: str
    data: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    expires_at: Optional[datetime] = None

    @field_validator('id')
    @classmethod
    def id_must_not_be_empty(cls, v):
        return _non_empty(v, 'id')

    @field_validator('type')
    @classmethod
    def type_must_not_be_empty(cls, v):
        return _non_empty(v, 'type')

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        now = now or _utcnow()
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now
