"""Pydantic models for API request/response serialization.

These models mirror the registry dataclasses and provide JSON serialization
for the FastAPI endpoints. Content hashes travel as 64-character hex strings.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from creg.registry.models import ContentRecord, ContentUpdateRecord, Currency


class ContentRegistrationRequest(BaseModel):
    hash: str = Field(..., description="Hex-encoded 32-byte content hash")
    title: str
    description: str = ""
    category: str
    tags: list[str] = Field(default_factory=list)
    price: int = 0
    royalty_rate: int = 0
    currency: str = Currency.STX.value


class ContentUpdateRequest(BaseModel):
    title: str
    description: str = ""


class AuthorityRequest(BaseModel):
    authority: str


class ConfigValueRequest(BaseModel):
    value: int


class ContentResponse(BaseModel):
    """Mirrors creg.registry.models.ContentRecord."""

    id: int
    hash: str
    title: str
    description: str = ""
    creator: str
    category: str
    tags: list[str] = Field(default_factory=list)
    price: int = 0
    royalty_rate: int = 0
    currency: str
    status: bool = True
    registered_at: int = 0

    @classmethod
    def from_record(cls, content_id: int, record: ContentRecord) -> "ContentResponse":
        return cls(
            id=content_id,
            hash=record.hash_hex,
            title=record.title,
            description=record.description,
            creator=record.creator,
            category=record.category,
            tags=list(record.tags),
            price=record.price,
            royalty_rate=record.royalty_rate,
            currency=record.currency.value,
            status=record.status,
            registered_at=record.registered_at,
        )


class ContentUpdateResponse(BaseModel):
    """Mirrors creg.registry.models.ContentUpdateRecord."""

    updated_title: str
    updated_description: str
    updated_at: int
    updated_by: str

    @classmethod
    def from_update(cls, update: ContentUpdateRecord) -> "ContentUpdateResponse":
        return cls(
            updated_title=update.updated_title,
            updated_description=update.updated_description,
            updated_at=update.updated_at,
            updated_by=update.updated_by,
        )


class RegistrationResponse(BaseModel):
    id: int


class CountResponse(BaseModel):
    count: int


class OwnershipResponse(BaseModel):
    hash: str
    identity: str
    verified: bool


class ConfigResponse(BaseModel):
    authority: Optional[str] = None
    max_contents: int
    registration_fee: int
    next_content_id: int
