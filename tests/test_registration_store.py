import pytest

from app.services.erp.registration_store import (
    InMemoryRegistrationStore,
    JsonFileRegistrationStore,
    RegistrationStoreError,
)


def test_in_memory_store_lists_by_user():
    store = InMemoryRegistrationStore()
    first = store.add(111735, {"result": "Success"}, {"DepotID": 3})
    store.add(42, {}, {})

    assert [r.id for r in store.list_by_user(111735)] == [first.id]
    assert first.id.split("-")[1] == "111735"
    assert len(store.list_all()) == 2

    assert store.delete(first.id) is True
    assert store.delete(first.id) is False
    assert store.list_by_user(111735) == []


def test_json_file_store_persists_across_instances(tmp_path):
    path = tmp_path / "data" / "registered-containers.json"
    record = JsonFileRegistrationStore(str(path)).add(111735, {"result": "Success"}, {"SoXe": "51C-123"})

    reopened = JsonFileRegistrationStore(str(path))

    [loaded] = reopened.list_by_user(111735)
    assert loaded.id == record.id
    assert loaded.gate_out_data == {"SoXe": "51C-123"}
    assert loaded.registered_at == record.registered_at
    assert reopened.delete(record.id) is True
    assert JsonFileRegistrationStore(str(path)).list_all() == []


def test_json_file_store_missing_file_is_empty(tmp_path):
    assert JsonFileRegistrationStore(str(tmp_path / "none.json")).list_all() == []


@pytest.mark.parametrize(
    "content",
    ['[{"id": "1-1-abc", "user_id": 1', '{"records": []}', '[{"id": "1-1-abc"}]'],
)
def test_json_file_store_refuses_to_overwrite_unreadable_file(tmp_path, content):
    path = tmp_path / "registered-containers.json"
    path.write_text(content, encoding="utf-8")
    store = JsonFileRegistrationStore(str(path))

    with pytest.raises(RegistrationStoreError):
        store.list_all()
    with pytest.raises(RegistrationStoreError):
        store.add(3, {}, {})

    assert path.read_text(encoding="utf-8") == content


def test_json_file_store_keeps_every_record(tmp_path):
    path = tmp_path / "registered-containers.json"
    store = JsonFileRegistrationStore(str(path))
    for user_id in (1, 2, 3):
        store.add(user_id, {}, {})

    assert [r.user_id for r in JsonFileRegistrationStore(str(path)).list_all()] == [1, 2, 3]
