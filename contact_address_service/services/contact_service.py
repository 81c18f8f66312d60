"""Ownership guard for the contacts addresses are nested under."""

from contact_address_service.config.logging import LoggingService
from contact_address_service.exceptions import NotFoundError
from contact_address_service.models.schemas import ContactRecord
from contact_address_service.repositories.base import ContactRepository

logging_service = LoggingService(__name__)


class ContactService:

    def __init__(self, repository: ContactRepository):
        self.repository = repository

    async def check_contact_must_exist(self, username: str, contact_id: int) -> ContactRecord:
        """Return the contact if it exists and belongs to ``username``.

        Raises:
            NotFoundError: If the contact is missing or owned by someone else
        """
        contact = await self.repository.find_first(username, contact_id)
        if contact is None:
            logging_service.log_operation(
                "warning",
                "Contact not found for user",
                username=username,
                contact_id=contact_id,
                operation="check_contact"
            )
            raise NotFoundError("Contact is not found")
        return contact
