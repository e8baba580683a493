import pytest

from mealbattle.app.services.document_store import deep_merge


def test_set_and_get_round_trip(store):
    store.set("general", "data", {"currentBattle": "2024-01-01"})
    assert store.get("general", "data") == {"currentBattle": "2024-01-01"}
    assert store.get("general", "missing") is None


def test_exists(store):
    assert not store.exists("points", "u1")
    store.set("points", "u1", {"points": 10})
    assert store.exists("points", "u1")


def test_set_without_merge_replaces(store):
    store.set("points", "u1", {"points": 10, "badge": "gold"})
    store.set("points", "u1", {"points": 20})
    assert store.get("points", "u1") == {"points": 20}


def test_set_with_merge_merges_nested_maps(store):
    store.set("battles", "general", {"dates": {"2024-01-01": {"status": "ended"}}})
    store.set("battles", "general", {"dates": {"2024-01-08": {"status": "active"}}}, merge=True)
    assert store.get("battles", "general") == {
        "dates": {"2024-01-01": {"status": "ended"}, "2024-01-08": {"status": "active"}}
    }


def test_update_uses_dotted_paths(store):
    store.set("battles", "general", {"dates": {"2024-01-01": {"status": "active", "voted": []}}})
    store.update("battles", "general", {"dates.2024-01-01.status": "ended"})
    assert store.get("battles", "general")["dates"]["2024-01-01"] == {"status": "ended", "voted": []}


def test_update_missing_document_raises(store):
    with pytest.raises(LookupError):
        store.update("general", "data", {"isAnnounceDate": "2024-01-08"})


def test_delete(store):
    store.set("users/u1/daily_summary", "2024-01-01", {"calories": 100})
    assert store.delete("users/u1/daily_summary", "2024-01-01") is True
    assert store.delete("users/u1/daily_summary", "2024-01-01") is False
    assert store.get("users/u1/daily_summary", "2024-01-01") is None


def test_nested_collections_are_separate(store):
    store.set("users/u1/daily_summary", "2024-01-01", {"calories": 100})
    store.set("users/u2/daily_summary", "2024-01-01", {"calories": 200})
    assert store.get("users/u1/daily_summary", "2024-01-01") == {"calories": 100}
    assert store.list_ids("users/u2/daily_summary") == ["2024-01-01"]


def test_find_ignores_case_when_asked(store):
    store.set("ingredients", "ing-2", {"name": "broccoli"})
    store.set("ingredients", "ing-1", {"name": "Chicken Breast"})
    assert store.find("ingredients", "name", "chicken breast") == []
    assert store.find("ingredients", "name", "chicken breast", ignore_case=True) == [
        ("ing-1", {"name": "Chicken Breast"})
    ]
    assert store.list_ids("ingredients") == ["ing-1", "ing-2"]


def test_transaction_read_modify_write(store):
    def add_ten(current):
        data = dict(current or {})
        data["points"] = data.get("points", 0) + 10
        return data

    assert store.transaction("points", "u1", add_ten) == {"points": 10}
    assert store.transaction("points", "u1", add_ten) == {"points": 20}
    assert store.get("points", "u1") == {"points": 20}


def test_returned_documents_are_copies(store):
    store.set("general", "data", {"nested": {"a": 1}})
    fetched = store.get("general", "data")
    fetched["nested"]["a"] = 99
    assert store.get("general", "data") == {"nested": {"a": 1}}


def test_deep_merge_replaces_non_mappings():
    assert deep_merge({"a": {"b": 1}, "c": [1]}, {"a": {"d": 2}, "c": [2]}) == {"a": {"b": 1, "d": 2}, "c": [2]}
