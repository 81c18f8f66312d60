"""Pydantic models for the contact address service."""

from datetime import datetime, timezone
from typing import Any, Generic, List, Optional, TypeVar, Union
from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

from contact_address_service.config.settings import settings

T = TypeVar("T")

FIELD_MAX_LENGTH = settings.address_field_max_length
POSTAL_CODE_MAX_LENGTH = settings.postal_code_max_length


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRecord(BaseModel):
    """Stored user; the token identifies the caller on each request."""

    username: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=100)
    token: Optional[str] = Field(default=None, max_length=100)


class ContactRecord(BaseModel):
    """Stored contact, owned by exactly one user."""

    id: int
    username: str = Field(..., description="Owner of the contact")
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)


class AddressRecord(BaseModel):
    """Stored address record.

    Textual fields are optional and unbounded in storage; the request
    models enforce presence and length whenever the API writes them, so a
    lowered limit never makes older documents unreadable.
    """

    id: int = Field(..., description="Store-assigned identifier")
    contact_id: int = Field(..., description="Contact owning this address")
    street: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None
    created_at: datetime = Field(
        default_factory=utcnow,
        description="Timestamp when record was created"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        description="Timestamp when record was last updated"
    )


class AddressFields(BaseModel):
    """The five textual address fields, all required and non-empty."""

    model_config = ConfigDict(extra="ignore")

    street: str = Field(..., min_length=1, max_length=FIELD_MAX_LENGTH)
    city: str = Field(..., min_length=1, max_length=FIELD_MAX_LENGTH)
    province: str = Field(..., min_length=1, max_length=FIELD_MAX_LENGTH)
    country: str = Field(..., min_length=1, max_length=FIELD_MAX_LENGTH)
    postal_code: str = Field(..., min_length=1, max_length=POSTAL_CODE_MAX_LENGTH)

    @field_validator('street', 'city', 'province', 'country', 'postal_code', mode='before')
    @classmethod
    def strip_whitespace(cls, v: Any) -> Any:
        # Stripped before the length constraints run, so blank strings are rejected.
        if isinstance(v, str):
            return v.strip()
        return v

    def address_values(self) -> dict:
        """Return only the five textual fields, ready for the repository."""
        return self.model_dump(include={'street', 'city', 'province', 'country', 'postal_code'})


class CreateAddressRequest(AddressFields):
    """Request model for creating an address under a contact."""

    contact_id: PositiveInt


class UpdateAddressRequest(AddressFields):
    """Request model for overwriting every field of an existing address."""

    id: PositiveInt = Field(..., description="Address being updated")
    contact_id: PositiveInt


class GetAddressRequest(BaseModel):
    contact_id: PositiveInt
    address_id: PositiveInt


class RemoveAddressRequest(BaseModel):
    contact_id: PositiveInt
    address_id: PositiveInt


class ListAddressRequest(BaseModel):
    contact_id: PositiveInt


class AddressResponse(BaseModel):
    """Public projection of an address; no contact_id, no timestamps."""

    id: int
    street: Optional[str] = None
    city: Optional[str] = None
    province: Optional[str] = None
    country: Optional[str] = None
    postal_code: Optional[str] = None


class WebResponse(BaseModel, Generic[T]):
    """Success envelope wrapping a single entity or a list."""

    data: T


class ErrorResponse(BaseModel):
    """Failure envelope: field errors for validation, a message otherwise."""

    errors: Union[str, List[Any]] = Field(..., description="Error message or list of field errors")


class HealthCheckResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str = Field(..., description="Service status")
    redis_connected: bool = Field(..., description="Redis connection status")
    timestamp: datetime = Field(default_factory=utcnow)
