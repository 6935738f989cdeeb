# File: tests/test_storage.py
import pytest

from seo_scout.errors import PersistenceError
from seo_scout.storage import AuditStore


@pytest.fixture()
def store(tmp_path):
    s = AuditStore(f"sqlite:///{tmp_path / 'audits.db'}")
    yield s
    s.close()


def test_save_and_get(store):
    record_id = store.save("https://a.com/", {"title": "A", "h1_tags": ["x"]})
    row = store.get(record_id)
    assert row["site_url"] == "https://a.com/"
    assert row["audit_data"] == {"title": "A", "h1_tags": ["x"]}
    assert row["view_option"] is None
    assert row["created_at"]


def test_list_newest_first_and_filtered(store):
    first = store.save("https://a.com/", {"n": 1})
    second = store.save("https://b.com/", {"n": 2})
    third = store.save("https://a.com/", {"n": 3})

    assert [r["id"] for r in store.list_audits()] == [third, second, first]
    assert [r["id"] for r in store.list_audits("https://a.com/")] == [third, first]
    assert len(store.list_audits(limit=1)) == 1


def test_delete(store):
    record_id = store.save("https://a.com/", {})
    assert store.delete(record_id) is True
    assert store.get(record_id) is None
    assert store.delete(record_id) is False


def test_update_view_option(store):
    record_id = store.save("https://a.com/", {})
    row = store.update_view_option(record_id, "compact")
    assert row["view_option"] == "compact"
    assert store.get(record_id)["view_option"] == "compact"
    assert store.update_view_option(record_id + 100, "x") is None


def test_unusable_database_raises_persistence_error(tmp_path):
    with pytest.raises(PersistenceError):
        AuditStore(f"sqlite:///{tmp_path / 'missing' / 'dir' / 'audits.db'}")
