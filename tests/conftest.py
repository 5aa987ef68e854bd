"""Shared fixtures: in-memory storage for the Flask app, fake API and drag surface."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Make app.py importable without installing the project
sys.path.insert(0, str(Path(__file__).parent.parent))

from stickyboard import storage  # noqa: E402
from stickyboard.errors import Conflict, NotFound  # noqa: E402
from stickyboard.fields import Position  # noqa: E402

STORAGE_FUNCTIONS = (
    "create_user",
    "get_user_credentials",
    "get_user",
    "list_users",
    "update_user",
    "delete_user",
    "list_notes",
    "get_note",
    "create_note",
    "update_note",
    "delete_note",
)


def _now():
    return datetime.now(timezone.utc).isoformat()


class MemoryStorage:
    """Same call signatures as stickyboard.storage, kept in dicts."""

    def __init__(self):
        self.users = {}
        self.notes = {}
        self._next_user = 1
        self._next_note = 1

    def create_user(self, email, password_hash, user_name=None, role="user"):
        if any(u["email"] == email for u in self.users.values()):
            raise Conflict("Email already registered")
        user = {
            "id": str(self._next_user),
            "email": email,
            "user_name": user_name,
            "role": role,
            "created_at": _now(),
            "password_hash": password_hash,
        }
        self._next_user += 1
        self.users[user["id"]] = user
        return self._public(user)

    @staticmethod
    def _public(user):
        return {k: v for k, v in user.items() if k != "password_hash"}

    def get_user_credentials(self, email):
        for user in self.users.values():
            if user["email"] == email:
                return dict(user)
        return None

    def get_user(self, user_id):
        user = self.users.get(str(user_id))
        return self._public(user) if user else None

    def list_users(self):
        return [self._public(u) for u in self.users.values()]

    def update_user(self, user_id, fields):
        user = self.users.get(str(user_id))
        if user is None:
            return None
        email = fields.get("email")
        if email and any(u["email"] == email and u is not user for u in self.users.values()):
            raise Conflict("Email already registered")
        user.update(fields)
        return self._public(user)

    def delete_user(self, user_id):
        if self.users.pop(str(user_id), None) is None:
            return False
        self.notes = {k: n for k, n in self.notes.items() if n["user_id"] != str(user_id)}
        return True

    def list_notes(self, user_id=None):
        return [
            dict(n) for n in self.notes.values()
            if user_id is None or n["user_id"] == str(user_id)
        ]

    def _visible(self, note_id, user_id):
        note = self.notes.get(str(note_id))
        if note is None or (user_id is not None and note["user_id"] != str(user_id)):
            return None
        return note

    def get_note(self, note_id, user_id=None):
        note = self._visible(note_id, user_id)
        return dict(note) if note else None

    def create_note(self, body, colors, position, user_id=None):
        ts = _now()
        note = {
            "id": str(self._next_note),
            "body": body,
            "colors": colors,
            "position": position,
            "user_id": str(user_id) if user_id is not None else None,
            "created_at": ts,
            "updated_at": ts,
        }
        self._next_note += 1
        self.notes[note["id"]] = note
        return dict(note)

    def update_note(self, note_id, fields, user_id=None):
        note = self._visible(note_id, user_id)
        if note is None:
            return None
        note.update(fields)
        note["updated_at"] = _now()
        return dict(note)

    def delete_note(self, note_id, user_id=None):
        if self._visible(note_id, user_id) is None:
            return False
        del self.notes[str(note_id)]
        return True


@pytest.fixture
def memory_storage(monkeypatch):
    fake = MemoryStorage()
    for name in STORAGE_FUNCTIONS:
        monkeypatch.setattr(storage, name, getattr(fake, name))
    return fake


@pytest.fixture
def flask_app(memory_storage):
    from app import app

    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture
def auth_headers():
    from app import create_token

    def make(user_id="1", role="user"):
        return {"Authorization": f"Bearer {create_token(user_id, role)}"}

    return make


class FakeApi:
    """Stands in for NotesApi; set ``fail_with`` to make the next call raise."""

    def __init__(self, notes=None, users=None, role="user"):
        self.notes = [dict(n) for n in (notes or [])]
        self.role = role
        self.users = list(users or [])
        self.calls = []
        self.fail_with = None
        self._next_id = len(self.notes) + 1

    def _check(self, name, *args):
        self.calls.append((name,) + args)
        if self.fail_with is not None:
            raise self.fail_with

    def _find(self, note_id):
        for note in self.notes:
            if note["id"] == note_id:
                return note
        raise NotFound("Note not found")

    def me(self):
        self.calls.append(("me",))
        return {"id": "1", "role": self.role}

    def list_notes(self, scope=None):
        self._check("list_notes", scope)
        return [dict(n) for n in self.notes]

    def create_note(self, fields):
        self._check("create_note", fields)
        note = dict(fields, id=str(self._next_id), created_at=_now(), updated_at=_now())
        self._next_id += 1
        self.notes.append(note)
        return dict(note)

    def update_note(self, note_id, fields):
        self._check("update_note", note_id, fields)
        note = self._find(note_id)
        note.update(fields)
        return dict(note)

    def delete_note(self, note_id):
        self._check("delete_note", note_id)
        self.notes.remove(self._find(note_id))
        return {"message": "Note deleted successfully"}

    def list_users(self):
        self._check("list_users")
        return list(self.users)


@pytest.fixture
def fake_api():
    return FakeApi()


class FakeSurface:
    """Records what the drag controller does to a card."""

    def __init__(self, x=0, y=0):
        self.position = Position(x, y)
        self.raised = 0
        self.handlers = None

    def offset(self):
        return self.position

    def move_to(self, position):
        self.position = position

    def bring_to_front(self):
        self.raised += 1

    def bind_document(self, on_move, on_release):
        self.handlers = (on_move, on_release)

    def unbind_document(self):
        self.handlers = None


@pytest.fixture
def surface():
    return FakeSurface(x=100, y=50)
