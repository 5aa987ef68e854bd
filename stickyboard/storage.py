"""PostgreSQL access for users and notes (schema lives in migrations/)."""
from contextlib import contextmanager

import psycopg2
import psycopg2.extras

from . import config
from .errors import Conflict

USER_COLUMNS = "id, email, user_name, role, created_at"
NOTE_COLUMNS = "id, body, colors, position, user_id, created_at, updated_at"


def get_db():
    return psycopg2.connect(
        host=config.DATABASE_HOST,
        port=config.DATABASE_PORT,
        user=config.DATABASE_USER,
        password=config.DATABASE_PASSWORD,
        dbname=config.DATABASE_NAME,
    )


@contextmanager
def cursor():
    conn = get_db()
    cur = conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
    try:
        yield cur
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cur.close()
        conn.close()


def _serialize(row):
    if row is None:
        return None
    data = dict(row)
    for key in ("id", "user_id"):
        if data.get(key) is not None:
            data[key] = str(data[key])
    for key in ("created_at", "updated_at"):
        if data.get(key) is not None:
            data[key] = data[key].isoformat()
    return data


# ---- Users ----


def create_user(email, password_hash, user_name=None, role="user"):
    try:
        with cursor() as cur:
            cur.execute(
                f"INSERT INTO users (email, password_hash, user_name, role) "
                f"VALUES (%s, %s, %s, %s) RETURNING {USER_COLUMNS}",
                (email, password_hash, user_name, role),
            )
            return _serialize(cur.fetchone())
    except psycopg2.IntegrityError:
        raise Conflict("Email already registered")


def get_user_credentials(email):
    with cursor() as cur:
        cur.execute(
            f"SELECT {USER_COLUMNS}, password_hash FROM users WHERE email = %s",
            (email,),
        )
        return _serialize(cur.fetchone())


def get_user(user_id):
    with cursor() as cur:
        cur.execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = %s", (user_id,))
        return _serialize(cur.fetchone())


def list_users():
    with cursor() as cur:
        cur.execute(f"SELECT {USER_COLUMNS} FROM users ORDER BY created_at, id")
        return [_serialize(u) for u in cur.fetchall()]


def update_user(user_id, fields):
    """Apply ``fields`` (subset of email/user_name/role/password_hash); None if no such user."""
    assignments = [f"{name} = %s" for name in fields]
    try:
        with cursor() as cur:
            cur.execute(
                f"UPDATE users SET {', '.join(assignments)} WHERE id = %s RETURNING {USER_COLUMNS}",
                list(fields.values()) + [user_id],
            )
            return _serialize(cur.fetchone())
    except psycopg2.IntegrityError:
        raise Conflict("Email already registered")


def delete_user(user_id):
    with cursor() as cur:
        cur.execute("DELETE FROM users WHERE id = %s", (user_id,))
        return cur.rowcount > 0


# ---- Notes ----


def list_notes(user_id=None):
    with cursor() as cur:
        if user_id is None:
            cur.execute(f"SELECT {NOTE_COLUMNS} FROM notes ORDER BY created_at, id")
        else:
            cur.execute(
                f"SELECT {NOTE_COLUMNS} FROM notes WHERE user_id = %s ORDER BY created_at, id",
                (user_id,),
            )
        return [_serialize(n) for n in cur.fetchall()]


def get_note(note_id, user_id=None):
    """Fetch a note; with ``user_id`` only that user's note is visible."""
    with cursor() as cur:
        if user_id is None:
            cur.execute(f"SELECT {NOTE_COLUMNS} FROM notes WHERE id = %s", (note_id,))
        else:
            cur.execute(
                f"SELECT {NOTE_COLUMNS} FROM notes WHERE id = %s AND user_id = %s",
                (note_id, user_id),
            )
        return _serialize(cur.fetchone())


def create_note(body, colors, position, user_id=None):
    with cursor() as cur:
        cur.execute(
            f"INSERT INTO notes (body, colors, position, user_id) "
            f"VALUES (%s, %s, %s, %s) RETURNING {NOTE_COLUMNS}",
            (body, colors, position, user_id),
        )
        return _serialize(cur.fetchone())


def update_note(note_id, fields, user_id=None):
    """Apply ``fields`` (subset of body/colors/position); None if no such note."""
    assignments = [f"{name} = %s" for name in fields]
    values = list(fields.values())
    where = "id = %s"
    values.append(note_id)
    if user_id is not None:
        where += " AND user_id = %s"
        values.append(user_id)
    with cursor() as cur:
        cur.execute(
            f"UPDATE notes SET {', '.join(assignments)}, updated_at = CURRENT_TIMESTAMP "
            f"WHERE {where} RETURNING {NOTE_COLUMNS}",
            values,
        )
        return _serialize(cur.fetchone())


def delete_note(note_id, user_id=None):
    with cursor() as cur:
        if user_id is None:
            cur.execute("DELETE FROM notes WHERE id = %s", (note_id,))
        else:
            cur.execute(
                "DELETE FROM notes WHERE id = %s AND user_id = %s", (note_id, user_id)
            )
        return cur.rowcount > 0
