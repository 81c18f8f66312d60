"""Repository layer for data access."""

from contact_address_service.repositories.base import AddressRepository, ContactRepository, UserRepository
from contact_address_service.repositories.redis_repository import (
    RedisAddressRepository,
    RedisContactRepository,
    RedisUserRepository,
)
from contact_address_service.repositories.connection import redis_manager, get_redis_client

__all__ = [
    "AddressRepository",
    "ContactRepository",
    "UserRepository",
    "RedisAddressRepository",
    "RedisContactRepository",
    "RedisUserRepository",
    "redis_manager",
    "get_redis_client"
]
