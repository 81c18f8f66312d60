"""Unit tests for Redis connection handling and repositories."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError, TimeoutError, RedisError

from contact_address_service.models.schemas import AddressRecord, ContactRecord, UserRecord
from contact_address_service.repositories.connection import RedisConnectionManager
from contact_address_service.repositories.redis_repository import (
    RedisAddressRepository,
    RedisContactRepository,
    RedisUserRepository,
)

FIELDS = {
    "street": "street test",
    "city": "city test",
    "province": "province test",
    "country": "country test",
    "postal_code": "1111",
}


def mock_redis_client():
    """AsyncMock Redis client whose pipeline() works as an async context manager."""
    client = AsyncMock()
    pipe = MagicMock()
    pipe.__aenter__.return_value = pipe
    pipe.execute = AsyncMock(return_value=[True, 1])
    client.pipeline = MagicMock(return_value=pipe)
    return client, pipe


class TestRedisConnectionManager:

    @pytest.fixture
    def connection_manager(self):
        return RedisConnectionManager()

    @pytest.mark.asyncio
    async def test_initialize_success(self, connection_manager):
        with patch('contact_address_service.repositories.connection.ConnectionPool') as mock_pool_class, \
             patch('contact_address_service.repositories.connection.Redis') as mock_redis_class:
            mock_redis = AsyncMock()
            mock_redis.ping.return_value = True
            mock_redis_class.return_value = mock_redis

            await connection_manager.initialize()

            assert connection_manager.is_connected
            mock_pool_class.assert_called_once()
            mock_redis.ping.assert_called_once()

    @pytest.mark.asyncio
    async def test_initialize_without_ping_answer_fails(self, connection_manager):
        with patch('contact_address_service.repositories.connection.ConnectionPool'), \
             patch('contact_address_service.repositories.connection.Redis') as mock_redis_class:
            mock_redis = AsyncMock()
            mock_redis.ping.side_effect = ConnectionError("refused")
            mock_redis_class.return_value = mock_redis

            with pytest.raises(ConnectionError):
                await connection_manager.initialize()

            assert not connection_manager.is_connected

    @pytest.mark.asyncio
    async def test_get_client_initializes_once(self, connection_manager):
        with patch('contact_address_service.repositories.connection.ConnectionPool') as mock_pool_class, \
             patch('contact_address_service.repositories.connection.Redis') as mock_redis_class:
            mock_redis = AsyncMock()
            mock_redis.ping.return_value = True
            mock_redis_class.return_value = mock_redis

            first = await connection_manager.get_client()
            second = await connection_manager.get_client()

            assert first is second is mock_redis
            mock_pool_class.assert_called_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [ConnectionError("lost"), TimeoutError("slow"), RedisError("boom")])
    async def test_health_check_failure_marks_disconnected(self, connection_manager, error):
        mock_redis = AsyncMock()
        mock_redis.ping.side_effect = error
        connection_manager._client = mock_redis
        connection_manager._is_connected = True

        assert await connection_manager.health_check() is False
        assert not connection_manager.is_connected

    @pytest.mark.asyncio
    async def test_health_check_without_client(self, connection_manager):
        assert await connection_manager.health_check() is False

    @pytest.mark.asyncio
    async def test_close_connection(self, connection_manager):
        mock_redis = AsyncMock()
        mock_pool = AsyncMock()
        connection_manager._client = mock_redis
        connection_manager._pool = mock_pool
        connection_manager._is_connected = True

        await connection_manager.close()

        mock_redis.aclose.assert_called_once()
        mock_pool.aclose.assert_called_once()
        assert not connection_manager.is_connected
        assert connection_manager._client is None
        assert connection_manager._pool is None


class TestRedisAddressRepository:

    @pytest.fixture
    def repository(self):
        return RedisAddressRepository()

    @pytest.fixture
    def stored(self):
        return AddressRecord(id=7, contact_id=1, **FIELDS)

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_indexes(self, repository):
        client, pipe = mock_redis_client()
        client.incr.return_value = 7

        with patch.object(repository, '_get_redis_client', return_value=client):
            record = await repository.create(1, FIELDS)

        assert record.id == 7
        assert record.contact_id == 1
        assert record.model_dump(include=set(FIELDS)) == FIELDS
        client.incr.assert_called_once_with("address:seq")
        client.pipeline.assert_called_once_with(transaction=True)
        key, document = pipe.set.call_args[0]
        assert key == "address:7"
        assert json.loads(document)["street"] == "street test"
        pipe.zadd.assert_called_once_with("contact:1:addresses", {"7": 7})
        pipe.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_find_first_matches_contact(self, repository, stored):
        client, _ = mock_redis_client()
        client.get.return_value = stored.model_dump_json()

        with patch.object(repository, '_get_redis_client', return_value=client):
            assert await repository.find_first(7, 1) == stored
            assert await repository.find_first(7, 2) is None

        client.get.assert_called_with("address:7")

    @pytest.mark.asyncio
    async def test_find_first_missing(self, repository):
        client, _ = mock_redis_client()
        client.get.return_value = None

        with patch.object(repository, '_get_redis_client', return_value=client):
            assert await repository.find_first(7, 1) is None

    @pytest.mark.asyncio
    async def test_find_first_corrupted_document(self, repository):
        client, _ = mock_redis_client()
        client.get.return_value = "{not json"

        with patch.object(repository, '_get_redis_client', return_value=client):
            with pytest.raises(ValueError, match="Corrupted data in storage"):
                await repository.find_first(7, 1)

    @pytest.mark.asyncio
    async def test_find_many_in_index_order(self, repository):
        first = AddressRecord(id=2, contact_id=1, street="first")
        second = AddressRecord(id=5, contact_id=1, street="second")
        client, _ = mock_redis_client()
        client.zrange.return_value = ["2", "5", "9"]
        client.mget.return_value = [first.model_dump_json(), second.model_dump_json(), None]

        with patch.object(repository, '_get_redis_client', return_value=client):
            records = await repository.find_many(1)

        assert records == [first, second]
        client.zrange.assert_called_once_with("contact:1:addresses", 0, -1)
        client.mget.assert_called_once_with(["address:2", "address:5", "address:9"])

    @pytest.mark.asyncio
    async def test_find_many_empty(self, repository):
        client, _ = mock_redis_client()
        client.zrange.return_value = []

        with patch.object(repository, '_get_redis_client', return_value=client):
            assert await repository.find_many(1) == []

        client.mget.assert_not_called()

    @pytest.mark.asyncio
    async def test_update_overwrites_fields_and_keeps_created_at(self, repository, stored):
        client, _ = mock_redis_client()
        client.get.return_value = stored.model_dump_json()
        new_fields = dict(FIELDS, street="street updated", postal_code="2222")

        with patch.object(repository, '_get_redis_client', return_value=client):
            updated = await repository.update(7, new_fields)

        assert updated.street == "street updated"
        assert updated.postal_code == "2222"
        assert updated.created_at == stored.created_at
        assert updated.updated_at >= stored.updated_at
        key, document = client.set.call_args[0]
        assert key == "address:7"
        assert json.loads(document)["postal_code"] == "2222"
        assert client.set.call_args.kwargs == {"xx": True}

    @pytest.mark.asyncio
    async def test_update_does_not_recreate_address_deleted_after_read(self, repository, stored):
        client, _ = mock_redis_client()
        client.get.return_value = stored.model_dump_json()
        # SET XX answers None when the key is gone by the time the write lands.
        client.set.return_value = None

        with patch.object(repository, '_get_redis_client', return_value=client):
            assert await repository.update(7, dict(FIELDS, street="street updated")) is None

        client.set.assert_called_once()
        assert client.set.call_args.kwargs == {"xx": True}

    @pytest.mark.asyncio
    async def test_stored_fields_longer_than_request_limits_still_decode(self, repository):
        # Documents written under an earlier, larger limit.
        legacy = AddressRecord(id=7, contact_id=1, **dict(FIELDS, postal_code="1" * 40, street="s" * 400))
        client, _ = mock_redis_client()
        client.get.return_value = legacy.model_dump_json()

        with patch.object(repository, '_get_redis_client', return_value=client):
            record = await repository.find_first(7, 1)

        assert record.postal_code == "1" * 40
        assert record.street == "s" * 400

    @pytest.mark.asyncio
    async def test_update_missing(self, repository):
        client, _ = mock_redis_client()
        client.get.return_value = None

        with patch.object(repository, '_get_redis_client', return_value=client):
            assert await repository.update(7, FIELDS) is None

        client.set.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_removes_document_and_index(self, repository, stored):
        client, pipe = mock_redis_client()
        client.get.return_value = stored.model_dump_json()

        with patch.object(repository, '_get_redis_client', return_value=client):
            deleted = await repository.delete(7)

        assert deleted == stored
        pipe.delete.assert_called_once_with("address:7")
        pipe.zrem.assert_called_once_with("contact:1:addresses", "7")
        pipe.execute.assert_called_once()

    @pytest.mark.asyncio
    async def test_delete_missing(self, repository):
        client, pipe = mock_redis_client()
        client.get.return_value = None

        with patch.object(repository, '_get_redis_client', return_value=client):
            assert await repository.delete(7) is None

        pipe.execute.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [ConnectionError("down"), TimeoutError("slow")])
    async def test_connection_errors_are_normalized(self, repository, error):
        client, _ = mock_redis_client()
        client.get.side_effect = error

        with patch.object(repository, '_get_redis_client', return_value=client):
            with pytest.raises(ConnectionError, match="Redis service unavailable"):
                await repository.find_first(7, 1)

    @pytest.mark.asyncio
    async def test_other_redis_errors_propagate(self, repository):
        client, _ = mock_redis_client()
        client.zrange.side_effect = RedisError("WRONGTYPE")

        with patch.object(repository, '_get_redis_client', return_value=client):
            with pytest.raises(RedisError, match="WRONGTYPE"):
                await repository.find_many(1)


class TestRedisContactRepository:

    @pytest.mark.asyncio
    async def test_find_first_checks_owner(self):
        repository = RedisContactRepository()
        client, _ = mock_redis_client()
        client.get.return_value = ContactRecord(id=3, username="test", first_name="t").model_dump_json()

        with patch.object(repository, '_get_redis_client', return_value=client):
            assert (await repository.find_first("test", 3)).id == 3
            assert await repository.find_first("other", 3) is None

        client.get.assert_called_with("contact:3")

    @pytest.mark.asyncio
    async def test_create(self):
        repository = RedisContactRepository()
        client, _ = mock_redis_client()
        client.incr.return_value = 4

        with patch.object(repository, '_get_redis_client', return_value=client):
            contact = await repository.create("test", "first", email="a@b.c")

        assert contact.id == 4
        assert contact.username == "test"
        client.set.assert_called_once_with("contact:4", contact.model_dump_json())


class TestRedisUserRepository:

    @pytest.mark.asyncio
    async def test_get_by_token(self):
        repository = RedisUserRepository()
        user = UserRecord(username="test", name="test", token="secret")
        client, _ = mock_redis_client()
        client.get.side_effect = ["test", user.model_dump_json()]

        with patch.object(repository, '_get_redis_client', return_value=client):
            assert await repository.get_by_token("secret") == user

        assert [c.args[0] for c in client.get.call_args_list] == ["user_token:secret", "user:test"]

    @pytest.mark.asyncio
    async def test_get_by_unknown_token(self):
        repository = RedisUserRepository()
        client, _ = mock_redis_client()
        client.get.return_value = None

        with patch.object(repository, '_get_redis_client', return_value=client):
            assert await repository.get_by_token("nope") is None

    @pytest.mark.asyncio
    async def test_stale_token_index_is_rejected(self):
        repository = RedisUserRepository()
        rotated = UserRecord(username="test", name="test", token="new")
        client, _ = mock_redis_client()
        client.get.side_effect = ["test", rotated.model_dump_json()]

        with patch.object(repository, '_get_redis_client', return_value=client):
            assert await repository.get_by_token("old") is None

    @pytest.mark.asyncio
    async def test_create_duplicate_username(self):
        repository = RedisUserRepository()
        client, _ = mock_redis_client()
        client.set.return_value = None

        with patch.object(repository, '_get_redis_client', return_value=client):
            with pytest.raises(ValueError, match="already exists"):
                await repository.create(UserRecord(username="test", name="test", token="t"))

    @pytest.mark.asyncio
    async def test_token_index_does_not_collide_with_usernames(self):
        repository = RedisUserRepository()
        client, _ = mock_redis_client()
        client.set.return_value = True

        with patch.object(repository, '_get_redis_client', return_value=client):
            await repository.create(UserRecord(username="token:abc", name="test", token="abc"))

        keys = [c.args[0] for c in client.set.call_args_list]
        assert keys == ["user:token:abc", "user_token:abc"]
