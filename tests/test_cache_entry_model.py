"""Tagged results of CacheEntryModel and failure handling."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from bson.errors import InvalidDocument
from pymongo.errors import AutoReconnect, OperationFailure

from tagcache import CacheErrorKind, CleaningMode, MongoCacheBackend
from tagcache.backend.modules.cache.models.cache_entry_model import CacheEntryModel
from tagcache.shared.modules.cache.exceptions import CacheBackendConfigurationError


class TestResults:
    def test_not_found_is_distinct_from_failure(self, entry_model):
        result = entry_model.load("missing")
        assert not result
        assert result.is_not_found
        assert result.error_kind == CacheErrorKind.NOT_FOUND

    def test_expired_entry_is_not_found(self, entry_model, clock):
        entry_model.save("key", b"data", lifetime=1)
        clock.advance(2)
        assert entry_model.load("key").error_kind == CacheErrorKind.NOT_FOUND

    def test_success_carries_value(self, entry_model):
        assert entry_model.save("key", b"data", ["a"], lifetime=None)
        result = entry_model.load("key")
        assert result.ok
        assert result.value == b"data"

    def test_clean_reports_removed_count(self, entry_model):
        entry_model.save("a", b"1", ["x"])
        entry_model.save("b", b"2", ["x"])
        entry_model.save("c", b"3", ["y"])
        assert entry_model.clean(CleaningMode.MATCHING_TAG, ["x"]).value == 2

    def test_clean_without_tags_touches_nothing(self):
        collection = MagicMock()
        model = CacheEntryModel(collection)
        assert model.clean(CleaningMode.MATCHING_ANY_TAG, []).value == 0
        collection.delete_many.assert_not_called()

    def test_touch_infinite_entry_is_not_found(self, entry_model):
        entry_model.save("key", b"data", lifetime=None)
        assert entry_model.touch("key", 10).is_not_found

    def test_ensure_indexes(self, entry_model, collection):
        entry_model.ensure_indexes()
        assert collection.indexes == [
            ([("t", 1)], {"background": True}),
            ([("e", 1)], {"background": True, "expireAfterSeconds": 0}),
        ]


class TestStoreFailures:
    @pytest.fixture
    def broken_collection(self):
        collection = MagicMock()
        error = AutoReconnect("connection refused")
        for method in ("replace_one", "update_one", "delete_one", "delete_many",
                       "find_one", "find", "distinct"):
            getattr(collection, method).side_effect = error
        return collection

    @pytest.fixture
    def broken_backend(self, broken_collection, client_for):
        return MongoCacheBackend({"ensure_index": False}, client=client_for(broken_collection))

    def test_model_reports_transport_errors(self, broken_collection):
        model = CacheEntryModel(broken_collection)
        for result in (
            model.save("key", b"data"),
            model.load("key"),
            model.test("key"),
            model.touch("key", 10),
            model.remove("key"),
            model.get_metadata("key"),
            model.clean(),
            model.get_ids(),
            model.get_tags(),
        ):
            assert not result
            assert result.error_kind == CacheErrorKind.TRANSPORT
            assert "connection refused" in result.error_message

    def test_backend_never_raises(self, broken_backend):
        assert broken_backend.save("key", b"data") is False
        assert broken_backend.load("key") is None
        assert broken_backend.test("key") is None
        assert broken_backend.touch("key", 10) is False
        assert broken_backend.remove("key") is False
        assert broken_backend.clean(CleaningMode.OLD) is False
        assert broken_backend.get_ids() == []
        assert broken_backend.get_tags() == []
        assert broken_backend.get_ids_matching_tags(["a"]) == []
        assert broken_backend.get_ids_not_matching_tags(["a"]) == []
        assert broken_backend.get_ids_matching_any_tags(["a"]) == []
        assert broken_backend.get_metadatas("key") is None

    def test_tagged_results_on_backend(self, broken_backend, backend):
        assert broken_backend.load_result("key").error_kind == CacheErrorKind.TRANSPORT
        assert backend.load_result("key").error_kind == CacheErrorKind.NOT_FOUND
        assert broken_backend.save_result("key", b"x").error_kind == CacheErrorKind.TRANSPORT
        assert backend.remove_result("key").is_not_found

    def test_unacknowledged_write(self):
        collection = MagicMock()
        collection.replace_one.return_value = SimpleNamespace(acknowledged=False)
        result = CacheEntryModel(collection).save("key", b"data")
        assert result.error_kind == CacheErrorKind.WRITE_NOT_ACKNOWLEDGED

    def test_unencodable_document_is_invalid_value(self):
        collection = MagicMock()
        collection.replace_one.side_effect = InvalidDocument("cannot encode object")
        collection.find.side_effect = UnicodeEncodeError("utf-8", "\udcff", 0, 1, "surrogates not allowed")
        model = CacheEntryModel(collection)
        result = model.save("key", b"data")
        assert result.error_kind == CacheErrorKind.INVALID_VALUE
        assert "cannot encode object" in result.error_message
        assert model.get_ids().error_kind == CacheErrorKind.INVALID_VALUE

    def test_invalid_tag_never_reaches_the_store(self):
        collection = MagicMock()
        result = CacheEntryModel(collection).save("key", b"data", [1])
        assert result.error_kind == CacheErrorKind.INVALID_VALUE
        collection.replace_one.assert_not_called()


class TestConstruction:
    def test_index_failure_raises(self, client_for):
        collection = MagicMock()
        collection.create_index.side_effect = OperationFailure("not authorized")
        client = client_for(collection)
        with pytest.raises(CacheBackendConfigurationError):
            MongoCacheBackend({"ensure_index": True}, client=client)
        client.close.assert_not_called()

    def test_invalid_options_raise(self, client_for):
        with pytest.raises(CacheBackendConfigurationError):
            MongoCacheBackend({"lifetime": -5}, client=client_for(MagicMock()))
        with pytest.raises(CacheBackendConfigurationError):
            MongoCacheBackend({"dbname": ""}, client=client_for(MagicMock()))

    def test_indexes_created_on_construction(self, collection, client_for):
        MongoCacheBackend({}, client=client_for(collection))
        assert len(collection.indexes) == 2

    def test_selects_database_and_collection(self, client_for, collection):
        client = client_for(collection)
        MongoCacheBackend({"dbname": "db1", "collection": "c1", "ensure_index": False}, client=client)
        client.__getitem__.assert_called_with("db1")
        client.__getitem__.return_value.__getitem__.assert_called_with("c1")

    def test_borrowed_client_is_not_closed(self, client_for, collection):
        client = client_for(collection)
        with MongoCacheBackend({"ensure_index": False}, client=client):
            pass
        client.close.assert_not_called()


class TestOwnedClient:
    @pytest.fixture
    def mongo_client(self, collection):
        with patch(
            "tagcache.backend.modules.cache.services.mongo_cache_backend.MongoClient"
        ) as client_class:
            client = client_class.return_value
            client.__getitem__.return_value.__getitem__.return_value = collection
            yield client_class

    def test_created_with_configured_server(self, mongo_client):
        MongoCacheBackend({"server": "mongodb://cache:27017", "ensure_index": False})
        mongo_client.assert_called_once_with("mongodb://cache:27017", tz_aware=True)

    def test_close_closes_owned_client(self, mongo_client):
        backend = MongoCacheBackend({"ensure_index": False})
        backend.close()
        mongo_client.return_value.close.assert_called_once_with()
        backend.close()
        mongo_client.return_value.close.assert_called_once_with()

    def test_context_exit_closes_owned_client(self, mongo_client):
        with MongoCacheBackend({"ensure_index": False}) as backend:
            assert backend.save("key", b"data")
        mongo_client.return_value.close.assert_called_once_with()

    def test_index_failure_closes_owned_client(self, mongo_client):
        broken = MagicMock()
        broken.create_index.side_effect = OperationFailure("not authorized")
        mongo_client.return_value.__getitem__.return_value.__getitem__.return_value = broken
        with pytest.raises(CacheBackendConfigurationError):
            MongoCacheBackend({"ensure_index": True})
        mongo_client.return_value.close.assert_called_once_with()
