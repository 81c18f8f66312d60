"""FastAPI dependencies wiring repositories, services and the caller."""

from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from contact_address_service.config.logging import LoggingService
from contact_address_service.models.schemas import UserRecord
from contact_address_service.repositories.base import AddressRepository, ContactRepository, UserRepository
from contact_address_service.repositories.redis_repository import (
    RedisAddressRepository,
    RedisContactRepository,
    RedisUserRepository,
)
from contact_address_service.services.address_service import AddressService
from contact_address_service.services.contact_service import ContactService
from contact_address_service.services.validation_service import ValidationService

logging_service = LoggingService(__name__)


def get_address_repository() -> AddressRepository:
    return RedisAddressRepository()


def get_contact_repository() -> ContactRepository:
    return RedisContactRepository()


def get_user_repository() -> UserRepository:
    return RedisUserRepository()


def get_validation_service() -> ValidationService:
    return ValidationService()


def get_contact_service(
    repository: ContactRepository = Depends(get_contact_repository)
) -> ContactService:
    return ContactService(repository)


def get_address_service(
    repository: AddressRepository = Depends(get_address_repository),
    contact_service: ContactService = Depends(get_contact_service),
    validation_service: ValidationService = Depends(get_validation_service)
) -> AddressService:
    """Get AddressService instance backed by the Redis repositories."""
    return AddressService(repository, contact_service, validation_service)


async def get_current_user(
    authorization: Optional[str] = Header(default=None),
    users: UserRepository = Depends(get_user_repository)
) -> UserRecord:
    """Resolve the caller from the token in the Authorization header."""
    token = (authorization or "").strip()
    if token.lower().startswith("bearer "):
        token = token[len("bearer "):].strip()

    user = await users.get_by_token(token) if token else None
    if user is None:
        logging_service.log_operation(
            "warning",
            "Rejected request with missing or unknown token",
            operation="authenticate"
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user
