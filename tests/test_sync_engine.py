"""
Tests for SyncEngine using the deterministic FakeNotesApi.

These tests validate the offline-first contract:

    • pull writes every remote page, in order, and never raises
    • create/update/delete fall back to local persistence when the
      service fails, and never raise
    • local-only notes never trigger remote update/delete calls
    • tombstones stay retrievable but disappear from pages
    • push_pending reconciles dirty notes and tombstones on request
"""

import asyncio

from notesync.identifiers import LocalNoteId, RemoteNoteId, parse_note_id
from notesync.sync import SyncEngine
from tests.fixtures.fake_notes_api import millis_at


def run(coro):
    return asyncio.run(coro)


# =====================================================================
# pull
# =====================================================================


def test_pull_two_full_pages_stores_all_notes_newest_first(engine, fake_api, store) -> None:
    for i in range(20):
        fake_api.seed(f"note {i}", "body", updated_at=100 + i)

    report = run(engine.pull(""))

    assert fake_api.call_names() == ["list_notes", "list_notes"]
    assert [args[0] for _, args in fake_api.calls] == [1, 2]
    assert report.complete is True
    assert report.pages_fetched == 2
    assert report.notes_upserted == 20

    records = store.page("", 1, 100)
    assert len(records) == 20
    updated = [r["updated_at"] for r in records]
    assert updated == sorted(updated, reverse=True)
    assert records[0]["title"] == "note 19"
    assert all(not r["dirty"] and not r["deleted"] for r in records)


def test_pull_maps_remote_fields_to_record(engine, fake_api, store) -> None:
    note = fake_api.seed("Title", "Body text", updated_at=5)

    run(engine.pull(""))

    assert store.lookup(str(note["id"])) == {
        "id": str(note["id"]),
        "title": "Title",
        "content": "Body text",
        "created_at": millis_at(5),
        "updated_at": millis_at(5),
        "dirty": False,
        "deleted": False,
    }


def test_pull_with_query_uses_filter_endpoint(engine, fake_api, store) -> None:
    fake_api.seed("Groceries", "milk")
    fake_api.seed("Work", "report")

    run(engine.pull("milk"))

    assert fake_api.call_names() == ["filter_notes"]
    assert [r["title"] for r in store.page("", 1, 10)] == ["Groceries"]


def test_pull_failure_keeps_earlier_pages_and_does_not_raise(engine, fake_api, store) -> None:
    for i in range(25):
        fake_api.seed(f"note {i}", "body")
    fake_api.fail_pages.add(2)

    report = run(engine.pull(""))

    assert report.complete is False
    assert report.pages_fetched == 1
    assert len(report.failures) == 1
    assert len(store.page("", 1, 100)) == 10


def test_pull_stops_on_empty_page_even_if_service_claims_more(fake_api, store) -> None:
    """A `next` link that never goes away must not keep the pull running."""

    class EndlessNextApi(type(fake_api)):
        async def list_notes(self, page, page_size):
            result = await super().list_notes(page, page_size)
            result["has_next"] = True
            return result

    api = EndlessNextApi()
    for i in range(3):
        api.seed(f"note {i}", "body")

    report = run(SyncEngine(api, store, page_size=2).pull(""))

    assert report.complete is True
    assert report.pages_fetched == 3
    assert api.call_names() == ["list_notes"] * 3
    assert len(store.page("", 1, 100)) == 3


def test_pull_while_offline_is_silent(engine, fake_api, store) -> None:
    fake_api.offline = True

    report = run(engine.pull("anything"))

    assert report.complete is False
    assert store.page("", 1, 10) == []


def test_pull_overwrites_unpushed_local_edit(engine, fake_api, store) -> None:
    note = fake_api.seed("remote title", "remote body")
    run(engine.pull(""))

    fake_api.offline = True
    run(engine.update(str(note["id"]), "local title", "local body"))
    assert store.lookup(str(note["id"]))["dirty"] is True

    fake_api.offline = False
    run(engine.pull(""))

    # Last pull wins: the unpushed local edit is gone.
    stored = store.lookup(str(note["id"]))
    assert stored["title"] == "remote title"
    assert stored["dirty"] is False


def test_pull_never_removes_local_only_notes(engine, fake_api, store) -> None:
    fake_api.offline = True
    local_id = run(engine.create("A", "x"))

    assert isinstance(parse_note_id(local_id), LocalNoteId)
    assert store.lookup(local_id)["dirty"] is True

    fake_api.offline = False
    fake_api.seed("A remote", "x")
    run(engine.pull("A"))

    assert store.lookup(local_id) is not None
    assert {r["title"] for r in store.page("A", 1, 10)} == {"A", "A remote"}


# =====================================================================
# create
# =====================================================================


def test_create_online_returns_remote_id_and_clean_record(engine, fake_api, store) -> None:
    note_id = run(engine.create("A", "x"))

    assert parse_note_id(note_id) == RemoteNoteId(1)
    stored = store.lookup(note_id)
    assert stored["title"] == "A"
    assert stored["content"] == "x"
    assert stored["dirty"] is False


def test_create_offline_returns_local_id_and_dirty_record(engine, fake_api, store) -> None:
    fake_api.offline = True

    note_id = run(engine.create("A", "x"))

    assert isinstance(parse_note_id(note_id), LocalNoteId)
    stored = store.lookup(note_id)
    assert stored["title"] == "A"
    assert stored["content"] == "x"
    assert stored["dirty"] is True
    assert stored["deleted"] is False
    assert stored["created_at"] == stored["updated_at"]


def test_offline_creates_get_distinct_ids(engine, fake_api) -> None:
    fake_api.offline = True

    first = run(engine.create("A", "x"))
    second = run(engine.create("A", "x"))

    assert first != second


# =====================================================================
# update
# =====================================================================


def test_update_local_only_note_never_calls_remote(engine, fake_api, store) -> None:
    fake_api.offline = True
    local_id = run(engine.create("A", "x"))
    created_at = store.lookup(local_id)["created_at"]
    fake_api.offline = False
    fake_api.calls.clear()

    run(engine.update(local_id, "B", "y"))

    assert fake_api.calls == []
    stored = store.lookup(local_id)
    assert stored["title"] == "B"
    assert stored["content"] == "y"
    assert stored["dirty"] is True
    assert stored["created_at"] == created_at
    assert stored["updated_at"] >= created_at


def test_update_remote_note_online_stores_clean_result(engine, fake_api, store) -> None:
    note_id = run(engine.create("A", "x"))

    run(engine.update(note_id, "B", "y"))

    assert fake_api.call_names() == ["create_note", "update_note"]
    stored = store.lookup(note_id)
    assert stored["title"] == "B"
    assert stored["dirty"] is False


def test_update_remote_note_offline_keeps_dirty_edit(engine, fake_api, store) -> None:
    note = fake_api.seed("A", "x", updated_at=1)
    run(engine.pull(""))
    note_id = str(note["id"])
    original_created = store.lookup(note_id)["created_at"]

    fake_api.offline = True
    run(engine.update(note_id, "B", "y"))

    stored = store.lookup(note_id)
    assert stored["title"] == "B"
    assert stored["content"] == "y"
    assert stored["dirty"] is True
    assert stored["created_at"] == original_created
    assert stored["updated_at"] > original_created


def test_update_remote_not_found_falls_back_to_local_edit(engine, fake_api, store) -> None:
    run(engine.update("99", "ghost", "body"))

    assert fake_api.call_names() == ["update_note"]
    stored = store.lookup("99")
    assert stored["title"] == "ghost"
    assert stored["dirty"] is True


# =====================================================================
# delete
# =====================================================================


def test_delete_online_removes_note(engine, fake_api, store) -> None:
    note_id = run(engine.create("A", "x"))

    run(engine.delete(note_id))

    assert store.lookup(note_id) is None
    assert store.page("", 1, 10) == []
    assert fake_api.notes == {}


def test_delete_offline_leaves_tombstone(engine, fake_api, store) -> None:
    note_id = run(engine.create("A", "x"))
    fake_api.offline = True

    run(engine.delete(note_id))

    stored = store.lookup(note_id)
    assert stored is not None
    assert stored["deleted"] is True
    assert store.page("", 1, 10) == []


def test_delete_local_only_note_tombstones_without_remote_call(engine, fake_api, store) -> None:
    fake_api.offline = True
    local_id = run(engine.create("A", "x"))
    fake_api.offline = False
    fake_api.calls.clear()

    run(engine.delete(local_id))

    assert fake_api.calls == []
    assert store.lookup(local_id)["deleted"] is True
    assert store.lookup(local_id)["dirty"] is True


# =====================================================================
# push_pending
# =====================================================================


def test_push_pending_creates_local_notes_and_replaces_their_ids(engine, fake_api, store) -> None:
    fake_api.offline = True
    local_id = run(engine.create("A", "x"))
    fake_api.offline = False

    report = run(engine.push_pending())

    assert report.notes_pushed == 1
    assert report.complete is True
    assert store.lookup(local_id) is None
    records = store.page("", 1, 10)
    assert len(records) == 1
    assert isinstance(parse_note_id(records[0]["id"]), RemoteNoteId)
    assert records[0]["title"] == "A"
    assert records[0]["dirty"] is False


def test_push_pending_updates_dirty_remote_notes(engine, fake_api, store) -> None:
    note_id = run(engine.create("A", "x"))
    fake_api.offline = True
    run(engine.update(note_id, "B", "y"))
    fake_api.offline = False

    run(engine.push_pending())

    assert fake_api.notes[int(note_id)]["title"] == "B"
    assert store.lookup(note_id)["dirty"] is False


def test_push_pending_clears_tombstones(engine, fake_api, store) -> None:
    remote_id = run(engine.create("remote", "x"))
    fake_api.offline = True
    local_id = run(engine.create("local", "x"))
    run(engine.delete(remote_id))
    run(engine.delete(local_id))
    fake_api.offline = False
    fake_api.calls.clear()

    report = run(engine.push_pending())

    assert report.notes_removed == 2
    assert fake_api.call_names() == ["delete_note"]
    assert store.lookup(remote_id) is None
    assert store.lookup(local_id) is None


def test_push_pending_treats_missing_remote_note_as_deleted(engine, fake_api, store, make_record) -> None:
    store.upsert(make_record("5", deleted=True))

    report = run(engine.push_pending())

    assert report.notes_removed == 1
    assert store.lookup("5") is None


def test_push_pending_offline_leaves_everything_pending(engine, fake_api, store) -> None:
    fake_api.offline = True
    local_id = run(engine.create("A", "x"))

    report = run(engine.push_pending())

    assert report.complete is False
    assert report.failures[0]["id"] == local_id
    assert store.lookup(local_id)["dirty"] is True


def test_other_operations_never_push_pending_notes(engine, fake_api, store) -> None:
    fake_api.offline = True
    run(engine.create("A", "x"))
    fake_api.offline = False
    fake_api.calls.clear()

    run(engine.pull(""))
    run(engine.create("B", "y"))

    assert fake_api.call_names() == ["list_notes", "create_note"]
    assert len(store.pending()) == 1


# =====================================================================
# reads / logout
# =====================================================================


def test_lookup_and_page_pass_through_to_store(engine, store, make_record) -> None:
    store.upsert(make_record("1", title="alpha"))

    assert engine.lookup("1")["title"] == "alpha"
    assert [r["id"] for r in engine.page("alp")] == ["1"]


def test_logout_clears_store(engine, store, make_record) -> None:
    store.upsert(make_record("1"))

    engine.logout()

    assert store.lookup("1") is None
