"""Shared fixtures and in-memory repository fakes."""

from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from contact_address_service.api import dependencies
from contact_address_service.api.app import create_app
from contact_address_service.models.schemas import AddressRecord, ContactRecord, UserRecord, utcnow
from contact_address_service.repositories.base import AddressRepository, ContactRepository, UserRepository
from contact_address_service.services.address_service import AddressService
from contact_address_service.services.contact_service import ContactService
from contact_address_service.services.validation_service import ValidationService


class InMemoryAddressRepository(AddressRepository):

    def __init__(self):
        self.records: Dict[int, AddressRecord] = {}
        self._next_id = 0

    async def create(self, contact_id, fields):
        self._next_id += 1
        record = AddressRecord(id=self._next_id, contact_id=contact_id, **fields)
        self.records[record.id] = record
        return record

    async def find_first(self, address_id, contact_id):
        record = self.records.get(address_id)
        if record is None or record.contact_id != contact_id:
            return None
        return record

    async def find_many(self, contact_id) -> List[AddressRecord]:
        return [r for r in self.records.values() if r.contact_id == contact_id]

    async def update(self, address_id, fields):
        record = self.records.get(address_id)
        if record is None:
            return None
        updated = record.model_copy(update={**fields, "updated_at": utcnow()})
        self.records[address_id] = updated
        return updated

    async def delete(self, address_id):
        return self.records.pop(address_id, None)


class InMemoryContactRepository(ContactRepository):

    def __init__(self):
        self.records: Dict[int, ContactRecord] = {}

    async def find_first(self, username, contact_id):
        record = self.records.get(contact_id)
        if record is None or record.username != username:
            return None
        return record

    async def create(self, username, first_name, last_name=None, email=None, phone=None):
        record = ContactRecord(
            id=len(self.records) + 1,
            username=username,
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone
        )
        self.records[record.id] = record
        return record


class InMemoryUserRepository(UserRepository):

    def __init__(self):
        self.records: Dict[str, UserRecord] = {}

    async def get_by_token(self, token) -> Optional[UserRecord]:
        for record in self.records.values():
            if record.token == token:
                return record
        return None

    async def create(self, record):
        if record.username in self.records:
            raise ValueError(f"User {record.username} already exists")
        self.records[record.username] = record
        return record


def seed_contact(contacts: InMemoryContactRepository, username: str, first_name: str = "test") -> ContactRecord:
    record = ContactRecord(id=len(contacts.records) + 1, username=username, first_name=first_name)
    contacts.records[record.id] = record
    return record


@pytest.fixture
def user() -> UserRecord:
    return UserRecord(username="test", name="test", token="test")


@pytest.fixture
def other_user() -> UserRecord:
    return UserRecord(username="other", name="other", token="other-token")


@pytest.fixture
def address_repository() -> InMemoryAddressRepository:
    return InMemoryAddressRepository()


@pytest.fixture
def contact_repository(user, other_user) -> InMemoryContactRepository:
    contacts = InMemoryContactRepository()
    seed_contact(contacts, user.username)
    seed_contact(contacts, user.username, first_name="second")
    seed_contact(contacts, other_user.username, first_name="foreign")
    return contacts


@pytest.fixture
def user_repository(user, other_user) -> InMemoryUserRepository:
    users = InMemoryUserRepository()
    users.records[user.username] = user
    users.records[other_user.username] = other_user
    return users


@pytest.fixture
def address_service(address_repository, contact_repository) -> AddressService:
    return AddressService(address_repository, ContactService(contact_repository), ValidationService())


@pytest.fixture
def client(address_repository, contact_repository, user_repository) -> TestClient:
    """TestClient over the real app with the Redis repositories swapped out."""
    app = create_app()
    app.dependency_overrides[dependencies.get_address_repository] = lambda: address_repository
    app.dependency_overrides[dependencies.get_contact_repository] = lambda: contact_repository
    app.dependency_overrides[dependencies.get_user_repository] = lambda: user_repository
    return TestClient(app)
