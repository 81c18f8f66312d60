"""Address service: addresses nested under contacts owned by the caller."""

import logging
from typing import Any, List

from pydantic import ValidationError
from redis.exceptions import ConnectionError

from contact_address_service.config.logging import LoggingService
from contact_address_service.exceptions import NotFoundError
from contact_address_service.models.schemas import (
    AddressRecord,
    AddressResponse,
    CreateAddressRequest,
    GetAddressRequest,
    ListAddressRequest,
    RemoveAddressRequest,
    UpdateAddressRequest,
    UserRecord,
)
from contact_address_service.repositories.base import AddressRepository
from contact_address_service.services.contact_service import ContactService
from contact_address_service.services.validation_service import ValidationService

logger = logging.getLogger(__name__)
logging_service = LoggingService(__name__)


class AddressService:
    """Validate, check ownership, touch the store, map the result.

    Every operation confirms that the contact belongs to the caller, and
    operations on a single address also confirm that the address belongs
    to that contact, before anything is read back or written.
    """

    def __init__(self, repository: AddressRepository, contact_service: ContactService,
                 validation_service: ValidationService):
        """Initialize service with its collaborators.

        Args:
            repository: AddressRepository implementation
            contact_service: Guard confirming contact ownership
            validation_service: Builds typed requests from raw input
        """
        self.repository = repository
        self.contact_service = contact_service
        self.validation_service = validation_service

    async def create(self, user: UserRecord, request: Any) -> AddressResponse:
        """Create an address under one of the caller's contacts.

        Raises:
            ValidationError: If any field is missing, empty or too long
            NotFoundError: If the contact is missing or not owned by the caller
            ConnectionError: If Redis is unavailable
        """
        try:
            create_request = self.validation_service.validate(CreateAddressRequest, request)
            await self.contact_service.check_contact_must_exist(user.username, create_request.contact_id)

            address = await self.repository.create(
                create_request.contact_id, create_request.address_values()
            )
        except (ValidationError, NotFoundError) as e:
            self._log_rejected("create", user, e)
            raise
        except ConnectionError as e:
            logging_service.log_error(
                "Redis unavailable during create operation", e,
                operation="create", username=user.username
            )
            raise

        logging_service.log_crud_operation(
            "create", success=True,
            username=user.username, contact_id=address.contact_id, address_id=address.id
        )
        return self.to_address_response(address)

    async def get(self, user: UserRecord, request: Any) -> AddressResponse:
        try:
            get_request = self.validation_service.validate(GetAddressRequest, request)
            await self.contact_service.check_contact_must_exist(user.username, get_request.contact_id)

            address = await self.check_address_must_exist(get_request.address_id, get_request.contact_id)
        except (ValidationError, NotFoundError) as e:
            self._log_rejected("read", user, e)
            raise
        except ConnectionError as e:
            logging_service.log_error(
                "Redis unavailable during read operation", e,
                operation="read", username=user.username
            )
            raise

        logging_service.log_crud_operation(
            "read", success=True,
            username=user.username, contact_id=address.contact_id, address_id=address.id
        )
        return self.to_address_response(address)

    async def update(self, user: UserRecord, request: Any) -> AddressResponse:
        """Overwrite all five fields of an existing address.

        Raises:
            ValidationError: If any field is missing, empty or too long
            NotFoundError: If the contact or the address is not found
            ConnectionError: If Redis is unavailable
        """
        logger.debug(
            "AddressService.update called",
            extra={"username": user.username, "operation": "update"}
        )
        try:
            update_request = self.validation_service.validate(UpdateAddressRequest, request)
            await self.contact_service.check_contact_must_exist(user.username, update_request.contact_id)

            address = await self.check_address_must_exist(update_request.id, update_request.contact_id)
            updated = await self.repository.update(address.id, update_request.address_values())
            if updated is None:
                # Removed between the existence check and the write.
                raise NotFoundError("Address is not found")
        except (ValidationError, NotFoundError) as e:
            self._log_rejected("update", user, e)
            raise
        except ConnectionError as e:
            logging_service.log_error(
                "Redis unavailable during update operation", e,
                operation="update", username=user.username
            )
            raise

        logging_service.log_crud_operation(
            "update", success=True,
            username=user.username, contact_id=updated.contact_id, address_id=updated.id
        )
        return self.to_address_response(updated)

    async def remove(self, user: UserRecord, request: Any) -> AddressResponse:
        """Delete an address, returning its last-known values."""
        try:
            remove_request = self.validation_service.validate(RemoveAddressRequest, request)
            await self.contact_service.check_contact_must_exist(user.username, remove_request.contact_id)

            address = await self.check_address_must_exist(remove_request.address_id, remove_request.contact_id)
            deleted = await self.repository.delete(address.id)
            if deleted is None:
                raise NotFoundError("Address is not found")
        except (ValidationError, NotFoundError) as e:
            self._log_rejected("delete", user, e)
            raise
        except ConnectionError as e:
            logging_service.log_error(
                "Redis unavailable during delete operation", e,
                operation="delete", username=user.username
            )
            raise

        logging_service.log_crud_operation(
            "delete", success=True,
            username=user.username, contact_id=deleted.contact_id, address_id=deleted.id
        )
        return self.to_address_response(deleted)

    async def list(self, user: UserRecord, request: Any) -> List[AddressResponse]:
        try:
            list_request = self.validation_service.validate(ListAddressRequest, request)
            await self.contact_service.check_contact_must_exist(user.username, list_request.contact_id)

            addresses = await self.repository.find_many(list_request.contact_id)
        except (ValidationError, NotFoundError) as e:
            self._log_rejected("list", user, e)
            raise
        except ConnectionError as e:
            logging_service.log_error(
                "Redis unavailable during list operation", e,
                operation="list", username=user.username
            )
            raise

        logging_service.log_crud_operation(
            "list", success=True,
            username=user.username, contact_id=list_request.contact_id, count=len(addresses)
        )
        return [self.to_address_response(address) for address in addresses]

    def to_address_response(self, address: AddressRecord) -> AddressResponse:
        return AddressResponse(
            id=address.id,
            street=address.street,
            city=address.city,
            province=address.province,
            country=address.country,
            postal_code=address.postal_code,
        )

    async def check_address_must_exist(self, address_id: int, contact_id: int) -> AddressRecord:
        """Return the address only if it belongs to ``contact_id``.

        Raises:
            NotFoundError: If no such address exists under that contact
        """
        address = await self.repository.find_first(address_id, contact_id)
        if address is None:
            raise NotFoundError("Address is not found")
        return address

    def _log_rejected(self, operation: str, user: UserRecord, error: Exception) -> None:
        logging_service.log_crud_operation(
            operation,
            success=False,
            username=user.username,
            reason=type(error).__name__
        )
