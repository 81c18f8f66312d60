"""Data models for the contact address service."""

from .schemas import (
    UserRecord,
    ContactRecord,
    AddressRecord,
    CreateAddressRequest,
    UpdateAddressRequest,
    GetAddressRequest,
    RemoveAddressRequest,
    ListAddressRequest,
    AddressResponse,
    WebResponse,
    ErrorResponse,
    HealthCheckResponse,
)

__all__ = [
    "UserRecord",
    "ContactRecord",
    "AddressRecord",
    "CreateAddressRequest",
    "UpdateAddressRequest",
    "GetAddressRequest",
    "RemoveAddressRequest",
    "ListAddressRequest",
    "AddressResponse",
    "WebResponse",
    "ErrorResponse",
    "HealthCheckResponse",
]
