"""Abstract repository interfaces for users, contacts and addresses."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from contact_address_service.models.schemas import AddressRecord, ContactRecord, UserRecord


class AddressRepository(ABC):
    """Abstract repository interface for address operations."""

    @abstractmethod
    async def create(self, contact_id: int, fields: Dict[str, Optional[str]]) -> AddressRecord:
        """Persist a new address under a contact.

        Args:
            contact_id: Contact the address belongs to
            fields: Textual address fields (street, city, province, country, postal_code)

        Returns:
            Created AddressRecord with its store-assigned id
        """
        pass

    @abstractmethod
    async def find_first(self, address_id: int, contact_id: int) -> Optional[AddressRecord]:
        """Get an address matching both its id and its contact.

        Returns:
            AddressRecord if found under that contact, None otherwise
        """
        pass

    @abstractmethod
    async def find_many(self, contact_id: int) -> List[AddressRecord]:
        """List every address of a contact in insertion order."""
        pass

    @abstractmethod
    async def update(self, address_id: int, fields: Dict[str, Optional[str]]) -> Optional[AddressRecord]:
        """Overwrite the textual fields of an address.

        Returns:
            Updated AddressRecord if found, None otherwise
        """
        pass

    @abstractmethod
    async def delete(self, address_id: int) -> Optional[AddressRecord]:
        """Delete an address.

        Returns:
            The deleted AddressRecord with its last-known values, None if not found
        """
        pass


class ContactRepository(ABC):
    """Abstract repository interface for the contacts addresses hang from."""

    @abstractmethod
    async def find_first(self, username: str, contact_id: int) -> Optional[ContactRecord]:
        """Get a contact by id, only if it is owned by ``username``."""
        pass

    @abstractmethod
    async def create(self, username: str, first_name: str, last_name: Optional[str] = None,
                     email: Optional[str] = None, phone: Optional[str] = None) -> ContactRecord:
        pass


class UserRepository(ABC):
    """Abstract repository interface for resolving callers."""

    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[UserRecord]:
        pass

    @abstractmethod
    async def create(self, record: UserRecord) -> UserRecord:
        """Store a user and index its token.

        Raises:
            ValueError: If the username already exists
        """
        pass
