import pytest

from vibecheck.models.event import EventKind
from vibecheck.services.local_storage import (
    EventLogStore,
    FileKeyValueStorage,
    MemoryKeyValueStorage,
    StorageError,
    create_storage,
)
from vibecheck.services.tracking_service import TrackingService

from conftest import EVENT_LOG_KEY, fixed_environment


def test_file_storage_get_set_remove(tmp_path):
    storage = FileKeyValueStorage(str(tmp_path / "store"))

    assert storage.get_item("vibecheck_user") is None

    storage.set_item("vibecheck_user", '{"name": "Alex"}')
    assert storage.get_item("vibecheck_user") == '{"name": "Alex"}'
    assert (tmp_path / "store" / "vibecheck_user.json").exists()

    storage.remove_item("vibecheck_user")
    assert storage.get_item("vibecheck_user") is None
    storage.remove_item("vibecheck_user")


def test_file_storage_leaves_no_temp_files(tmp_path):
    storage = FileKeyValueStorage(str(tmp_path))

    storage.set_item("k", "one")
    storage.set_item("k", "two")

    assert [p.name for p in tmp_path.iterdir()] == ["k.json"]
    assert storage.get_item("k") == "two"


def test_file_storage_rejects_path_like_keys(tmp_path):
    storage = FileKeyValueStorage(str(tmp_path))

    with pytest.raises(StorageError):
        storage.set_item("../escape", "x")


def test_file_storage_write_failure_is_storage_error(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file in the way")
    storage = FileKeyValueStorage(str(blocker))

    with pytest.raises(StorageError):
        storage.set_item("k", "v")


def test_event_log_persists_across_service_instances(tmp_path, user):
    directory = str(tmp_path / "store")
    first = TrackingService(
        EventLogStore(FileKeyValueStorage(directory), EVENT_LOG_KEY),
        environment=fixed_environment,
    )
    first.record_event(EventKind.SIGN_UP, user)

    second = TrackingService(
        EventLogStore(FileKeyValueStorage(directory), EVENT_LOG_KEY),
        environment=fixed_environment,
    )
    second.record_event(EventKind.LOGIN, user)

    actions = [r.action for r in second.store.get()]
    assert actions == [EventKind.SIGN_UP, EventKind.LOGIN]


def test_event_log_store_empty_and_corrupted():
    storage = MemoryKeyValueStorage()
    store = EventLogStore(storage, EVENT_LOG_KEY)

    assert store.get() == []
    assert store.raw() == "[]"

    storage.set_item(EVENT_LOG_KEY, '{"not": "a list"}')
    with pytest.raises(StorageError):
        store.get()


def test_create_storage_picks_backend(tmp_path):
    assert isinstance(create_storage(None), MemoryKeyValueStorage)
    assert isinstance(create_storage(str(tmp_path)), FileKeyValueStorage)


def test_file_storage_undecodable_bytes_are_storage_error(tmp_path, transport, user):
    (tmp_path / f"{EVENT_LOG_KEY}.json").write_bytes(b"\xff\xfe[]")
    storage = FileKeyValueStorage(str(tmp_path))

    with pytest.raises(StorageError):
        storage.get_item(EVENT_LOG_KEY)

    tracker = TrackingService(EventLogStore(storage, EVENT_LOG_KEY), transport, environment=fixed_environment)
    record = tracker.record_event(EventKind.LOGIN, user)

    assert transport.sent == [record]
    assert (tmp_path / f"{EVENT_LOG_KEY}.json").read_bytes() == b"\xff\xfe[]"


def test_event_log_store_unserializable_record_is_storage_error(tracker, user):
    storage = MemoryKeyValueStorage()
    store = EventLogStore(storage, EVENT_LOG_KEY)
    record = tracker.record_event(EventKind.FEEDBACK, user)
    broken = record.model_copy(update={"details": "lone \ud800"})

    with pytest.raises(StorageError):
        store.set([broken])

    assert storage.get_item(EVENT_LOG_KEY) is None
