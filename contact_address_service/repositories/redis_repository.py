"""Redis implementations of the repository interfaces.

Layout:
    address:seq                 -> counter for address ids
    address:{id}                -> AddressRecord JSON
    contact:{id}:addresses      -> sorted set of address ids, scored by id
    contact:seq                 -> counter for contact ids
    contact:{id}                -> ContactRecord JSON
    user:{username}             -> UserRecord JSON
    user_token:{token}          -> username
"""

import json
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from redis.asyncio import Redis
from redis.exceptions import ConnectionError, TimeoutError, RedisError

from contact_address_service.models.schemas import AddressRecord, ContactRecord, UserRecord, utcnow
from contact_address_service.repositories.base import AddressRepository, ContactRepository, UserRepository
from contact_address_service.repositories.connection import get_redis_client

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


class RedisRepository:
    """Shared client access, decoding and error translation."""

    async def _get_redis_client(self) -> Redis:
        try:
            return await get_redis_client()
        except (ConnectionError, TimeoutError) as e:
            logger.error("Redis connection error", extra={"error": str(e), "operation": "get_client"})
            raise ConnectionError("Redis service unavailable") from e

    @contextmanager
    def _store_errors(self, operation: str, **fields) -> Iterator[None]:
        """Log store failures; connection problems surface as a uniform ConnectionError."""
        try:
            yield
        except (ConnectionError, TimeoutError) as e:
            logger.error(
                f"Redis connection error during {operation} operation",
                extra={"error": str(e), "operation": operation, **fields}
            )
            raise ConnectionError("Redis service unavailable") from e
        except RedisError as e:
            logger.error(
                f"Redis error during {operation} operation",
                extra={"error": str(e), "operation": operation, **fields}
            )
            raise

    @staticmethod
    def _decode(model: Type[M], data: Optional[str], **fields) -> Optional[M]:
        if data is None:
            return None
        try:
            return model(**json.loads(data))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.error(
                "Failed to parse stored JSON data",
                extra={"error": str(e), "model": model.__name__, **fields}
            )
            raise ValueError("Corrupted data in storage") from e


class RedisAddressRepository(RedisRepository, AddressRepository):
    """Addresses stored as JSON documents with a per-contact index."""

    def __init__(self):
        self._key_prefix = "address:"

    def _make_key(self, address_id: int) -> str:
        return f"{self._key_prefix}{address_id}"

    @staticmethod
    def _index_key(contact_id: int) -> str:
        return f"contact:{contact_id}:addresses"

    async def create(self, contact_id: int, fields: Dict[str, Optional[str]]) -> AddressRecord:
        with self._store_errors("create", contact_id=contact_id):
            redis_client = await self._get_redis_client()
            address_id = await redis_client.incr(f"{self._key_prefix}seq")
            record = AddressRecord(id=address_id, contact_id=contact_id, **fields)

            async with redis_client.pipeline(transaction=True) as pipe:
                pipe.set(self._make_key(address_id), record.model_dump_json())
                pipe.zadd(self._index_key(contact_id), {str(address_id): address_id})
                await pipe.execute()

        logger.info(
            "Address record created",
            extra={"address_id": address_id, "contact_id": contact_id, "operation": "create"}
        )
        return record

    async def _get(self, redis_client: Redis, address_id: int) -> Optional[AddressRecord]:
        data = await redis_client.get(self._make_key(address_id))
        return self._decode(AddressRecord, data, address_id=address_id)

    async def find_first(self, address_id: int, contact_id: int) -> Optional[AddressRecord]:
        with self._store_errors("get", address_id=address_id, contact_id=contact_id):
            redis_client = await self._get_redis_client()
            record = await self._get(redis_client, address_id)

        if record is None or record.contact_id != contact_id:
            logger.debug(
                "Address not found for contact",
                extra={"address_id": address_id, "contact_id": contact_id, "operation": "get"}
            )
            return None
        return record

    async def find_many(self, contact_id: int) -> List[AddressRecord]:
        with self._store_errors("list", contact_id=contact_id):
            redis_client = await self._get_redis_client()
            address_ids = await redis_client.zrange(self._index_key(contact_id), 0, -1)
            if not address_ids:
                return []
            documents = await redis_client.mget([self._make_key(i) for i in address_ids])

        # An id can outlive its document only if a delete raced this read.
        records = [
            self._decode(AddressRecord, data, contact_id=contact_id)
            for data in documents
            if data is not None
        ]
        logger.debug(
            "Address records listed",
            extra={"contact_id": contact_id, "count": len(records), "operation": "list"}
        )
        return records

    async def update(self, address_id: int, fields: Dict[str, Optional[str]]) -> Optional[AddressRecord]:
        with self._store_errors("update", address_id=address_id):
            redis_client = await self._get_redis_client()
            existing = await self._get(redis_client, address_id)
            if existing is None:
                logger.debug(
                    "Address not found for update",
                    extra={"address_id": address_id, "operation": "update"}
                )
                return None

            updated = existing.model_copy(update={**fields, "updated_at": utcnow()})
            # XX: only overwrite a document that still exists, so a concurrent delete wins.
            written = await redis_client.set(self._make_key(address_id), updated.model_dump_json(), xx=True)
            if not written:
                logger.debug(
                    "Address deleted before update was written",
                    extra={"address_id": address_id, "operation": "update"}
                )
                return None

        logger.info(
            "Address record updated",
            extra={"address_id": address_id, "contact_id": updated.contact_id, "operation": "update"}
        )
        return updated

    async def delete(self, address_id: int) -> Optional[AddressRecord]:
        with self._store_errors("delete", address_id=address_id):
            redis_client = await self._get_redis_client()
            existing = await self._get(redis_client, address_id)
            if existing is None:
                logger.debug(
                    "Address not found for deletion",
                    extra={"address_id": address_id, "operation": "delete"}
                )
                return None

            async with redis_client.pipeline(transaction=True) as pipe:
                pipe.delete(self._make_key(address_id))
                pipe.zrem(self._index_key(existing.contact_id), str(address_id))
                await pipe.execute()

        logger.info(
            "Address record deleted",
            extra={"address_id": address_id, "contact_id": existing.contact_id, "operation": "delete"}
        )
        return existing


class RedisContactRepository(RedisRepository, ContactRepository):
    """Contacts stored as JSON documents keyed by id."""

    def __init__(self):
        self._key_prefix = "contact:"

    def _make_key(self, contact_id: int) -> str:
        return f"{self._key_prefix}{contact_id}"

    async def find_first(self, username: str, contact_id: int) -> Optional[ContactRecord]:
        with self._store_errors("get_contact", contact_id=contact_id, username=username):
            redis_client = await self._get_redis_client()
            data = await redis_client.get(self._make_key(contact_id))

        record = self._decode(ContactRecord, data, contact_id=contact_id)
        if record is None or record.username != username:
            return None
        return record

    async def create(self, username: str, first_name: str, last_name: Optional[str] = None,
                     email: Optional[str] = None, phone: Optional[str] = None) -> ContactRecord:
        with self._store_errors("create_contact", username=username):
            redis_client = await self._get_redis_client()
            contact_id = await redis_client.incr(f"{self._key_prefix}seq")
            record = ContactRecord(
                id=contact_id,
                username=username,
                first_name=first_name,
                last_name=last_name,
                email=email,
                phone=phone
            )
            await redis_client.set(self._make_key(contact_id), record.model_dump_json())

        logger.info(
            "Contact record created",
            extra={"contact_id": contact_id, "username": username, "operation": "create_contact"}
        )
        return record


class RedisUserRepository(RedisRepository, UserRepository):
    """Users keyed by username, with a secondary token -> username index."""

    def __init__(self):
        self._key_prefix = "user:"

    def _make_key(self, username: str) -> str:
        return f"{self._key_prefix}{username}"

    def _token_key(self, token: str) -> str:
        return f"user_token:{token}"

    async def get_by_token(self, token: str) -> Optional[UserRecord]:
        with self._store_errors("get_user"):
            redis_client = await self._get_redis_client()
            username = await redis_client.get(self._token_key(token))
            if username is None:
                return None
            data = await redis_client.get(self._make_key(username))

        record = self._decode(UserRecord, data, username=username)
        # A stale index entry must not authenticate after the token was rotated.
        if record is None or record.token != token:
            return None
        return record

    async def create(self, record: UserRecord) -> UserRecord:
        with self._store_errors("create_user", username=record.username):
            redis_client = await self._get_redis_client()
            created = await redis_client.set(
                self._make_key(record.username), record.model_dump_json(), nx=True
            )
            if not created:
                logger.warning(
                    "Attempted to create duplicate user",
                    extra={"username": record.username, "operation": "create_user"}
                )
                raise ValueError(f"User {record.username} already exists")
            if record.token:
                await redis_client.set(self._token_key(record.token), record.username)

        logger.info(
            "User record created",
            extra={"username": record.username, "operation": "create_user"}
        )
        return record
