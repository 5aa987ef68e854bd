"""
Tests for NoteStore: API-first writes, local state only after success.
"""
import json

import pytest

from stickyboard.errors import NotFound, ServerError, ValidationError
from stickyboard.fields import DEFAULT_POSITION, PALETTE, Position
from stickyboard.store import NoteStore, encode_patch


def make_note(note_id, body="", user_id=None):
    return {
        "id": note_id,
        "body": json.dumps(body),
        "colors": json.dumps(PALETTE[0].to_dict()),
        "position": '{"x": 10, "y": 10}',
        "user_id": user_id,
    }


@pytest.fixture
def store(fake_api):
    fake_api.notes = [make_note("1", "first", "u1"), make_note("2", "second", "u2")]
    fake_api._next_id = 3
    return NoteStore(fake_api)


def test_list_parses_and_keeps_order(store):
    notes = store.list()
    assert [n.id for n in notes] == ["1", "2"]
    assert notes[0].body == "first"
    assert notes[0].colors == PALETTE[0]
    assert notes[0].position == Position(10, 10)


def test_list_filtered_by_user(store):
    notes = store.list(user_id="u2")
    assert [n.id for n in notes] == ["2"]


def test_create_appends_blank_note(store, fake_api):
    store.list()
    note = store.create()
    assert note.body == ""
    assert note.position == DEFAULT_POSITION
    assert note.colors in PALETTE
    assert store.notes[-1] is note


def test_create_then_list_round_trip(store):
    created = store.create(colors=PALETTE[2])
    notes = store.list()
    found = [n for n in notes if n.id == created.id]
    assert len(found) == 1
    assert found[0].body == ""
    assert found[0].position == DEFAULT_POSITION
    assert found[0].colors == PALETTE[2]


def test_create_failure_leaves_list_unchanged(store, fake_api):
    store.list()
    fake_api.fail_with = ServerError("nope")
    with pytest.raises(ServerError):
        store.create()
    assert len(store.notes) == 2


def test_update_body_and_position(store, fake_api):
    store.list()
    note = store.update("1", {"body": "edited", "position": {"x": 33, "y": 44}})
    assert note.body == "edited"
    assert note.position == Position(33, 44)
    assert store.get("1").body == "edited"
    _, _, fields = fake_api.calls[-1]
    assert fields == {"body": '"edited"', "position": '{"x": 33, "y": 44}'}


def test_update_failure_keeps_local_state(store, fake_api):
    store.list()
    fake_api.fail_with = ServerError("db down")
    with pytest.raises(ServerError):
        store.update("1", {"body": "edited"})
    assert store.get("1").body == "first"


def test_update_unknown_note(store):
    store.list()
    with pytest.raises(NotFound):
        store.update("99", {"body": "x"})


def test_remove_deletes_remote_then_local(store, fake_api):
    store.list()
    store.remove("1")
    assert [n.id for n in store.notes] == ["2"]
    assert [n["id"] for n in fake_api.notes] == ["2"]


def test_remove_failure_leaves_list_unchanged(store, fake_api):
    store.list()
    fake_api.fail_with = ServerError("boom")
    with pytest.raises(ServerError):
        store.remove("1")
    assert [n.id for n in store.notes] == ["1", "2"]


def test_move_local_does_not_call_api(store, fake_api):
    store.list()
    calls = len(fake_api.calls)
    store.move_local("2", Position(-4, 8))
    assert store.get("2").position == Position(0, 8)
    assert len(fake_api.calls) == calls


def test_encode_patch_validation():
    with pytest.raises(ValidationError):
        encode_patch({})
    with pytest.raises(ValidationError):
        encode_patch({"title": "x"})
    with pytest.raises(ValidationError):
        encode_patch({"position": "nowhere"})
    with pytest.raises(ValidationError):
        encode_patch({"colors": 5})
    fields = encode_patch({"colors": PALETTE[1]})
    assert json.loads(fields["colors"])["id"] == PALETTE[1].id


def test_list_survives_non_string_body(fake_api):
    fake_api.notes = [dict(make_note("1"), body=5), dict(make_note("2"), body=None)]
    notes = NoteStore(fake_api).list()
    assert [n.body for n in notes] == ["5", ""]
