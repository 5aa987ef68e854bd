import json
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt as pyjwt
import psycopg2
from flask import Flask, jsonify, request
from werkzeug.security import check_password_hash, generate_password_hash

from stickyboard import config, storage
from stickyboard.errors import NotesError, ValidationError
from stickyboard.fields import DEFAULT_POSITION, encode_body, encode_colors, encode_position, random_colors

config.configure_logging()

app = Flask(__name__)
app.logger.setLevel(config.LOG_LEVEL)

NOTE_FIELDS = ("body", "colors", "position")
USER_ROLES = ("user", "admin")


def create_token(user_id, role):
    payload = {
        "user_id": user_id,
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(days=config.TOKEN_EXPIRY_DAYS),
    }
    return pyjwt.encode(payload, config.SECRET_KEY, algorithm="HS256")


def require_auth(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401
        token = auth_header[7:]
        try:
            payload = pyjwt.decode(token, config.SECRET_KEY, algorithms=["HS256"])
            request.user_id = str(payload["user_id"])
            request.user_role = payload.get("role", "user")
        except pyjwt.ExpiredSignatureError:
            return jsonify({"error": "Token expired"}), 401
        except (pyjwt.InvalidTokenError, KeyError):
            return jsonify({"error": "Invalid token"}), 401
        return f(*args, **kwargs)

    return decorated


def require_role(*roles):
    """Reject callers whose role is not one of ``roles``. Use below require_auth."""

    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            if getattr(request, "user_role", None) not in roles:
                return jsonify({"error": "Access forbidden"}), 403
            return f(*args, **kwargs)

        return decorated

    return decorator


def is_admin():
    return getattr(request, "user_role", None) == "admin"


def owner_scope():
    """Admins see every note; everyone else only their own."""
    return None if is_admin() else request.user_id


def validate_note_fields(data, required=False):
    if not isinstance(data, dict):
        raise ValidationError("JSON body required")
    fields = {}
    for name in NOTE_FIELDS:
        if name not in data:
            continue
        value = data[name]
        if not isinstance(value, str):
            raise ValidationError(f"{name} must be a JSON-encoded string")
        if name in ("colors", "position"):
            try:
                decoded = json.loads(value)
            except ValueError:
                raise ValidationError(f"{name} is not valid JSON")
            if not isinstance(decoded, dict):
                raise ValidationError(f"{name} must encode an object")
        fields[name] = value
    if required and not fields:
        raise ValidationError("Nothing to update")
    return fields


def validate_user_fields(data):
    if not isinstance(data, dict):
        raise ValidationError("JSON body required")
    fields = {}
    if "email" in data:
        email = (data["email"] or "").strip().lower() if isinstance(data["email"], str) else ""
        if not email:
            raise ValidationError("email must be a non-empty string")
        fields["email"] = email
    if "user_name" in data:
        name = data["user_name"]
        if name is not None and not isinstance(name, str):
            raise ValidationError("user_name must be a string")
        fields["user_name"] = (name or "").strip() or None
    if "role" in data:
        if data["role"] not in USER_ROLES:
            raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")
        fields["role"] = data["role"]
    if "password" in data:
        password = data["password"]
        if not isinstance(password, str) or len(password) < 8:
            raise ValidationError("Password must be at least 8 characters")
        fields["password_hash"] = generate_password_hash(password)
    if not fields:
        raise ValidationError("Nothing to update")
    return fields


@app.errorhandler(NotesError)
def handle_notes_error(e):
    return jsonify(e.to_dict()), e.status


@app.errorhandler(psycopg2.Error)
def handle_db_error(e):
    app.logger.exception("Database error")
    return jsonify({"error": "Server error"}), 500


@app.route("/health")
def health():
    return jsonify({"message": "OK"})


# ---- Auth ----


@app.route("/api/auth/register", methods=["POST"])
def register():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    user_name = (data.get("user_name") or "").strip() or None
    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400
    if len(password) < 8:
        return jsonify({"error": "Password must be at least 8 characters"}), 400

    user = storage.create_user(email, generate_password_hash(password), user_name)
    app.logger.info("Registered user %s", user["id"])
    token = create_token(user["id"], user["role"])
    return jsonify({"token": token, "email": user["email"], "role": user["role"]}), 201


@app.route("/api/auth/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    email = (data.get("email") or "").strip().lower()
    password = data.get("password") or ""
    if not email or not password:
        return jsonify({"error": "Email and password are required"}), 400

    user = storage.get_user_credentials(email)
    if not user or not check_password_hash(user["password_hash"], password):
        return jsonify({"error": "Invalid email or password"}), 401

    token = create_token(user["id"], user["role"])
    return jsonify({"token": token, "email": user["email"], "role": user["role"]})


@app.route("/api/auth/me", methods=["GET"])
@require_auth
def get_me():
    user = storage.get_user(request.user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user)


# ---- Notes ----


@app.route("/api/notes", methods=["GET"])
@require_auth
def list_notes():
    if request.args.get("scope") == "all":
        if not is_admin():
            return jsonify({"error": "Access forbidden"}), 403
        return jsonify(storage.list_notes())
    return jsonify(storage.list_notes(request.user_id))


@app.route("/api/notes/<int:note_id>", methods=["GET"])
@require_auth
def get_note(note_id):
    note = storage.get_note(note_id, owner_scope())
    if not note:
        return jsonify({"error": "Note not found"}), 404
    return jsonify(note)


@app.route("/api/notes", methods=["POST"])
@require_auth
def create_note():
    fields = validate_note_fields(request.get_json(silent=True) or {})
    note = storage.create_note(
        fields.get("body", encode_body("")),
        fields.get("colors") or encode_colors(random_colors()),
        fields.get("position") or encode_position(DEFAULT_POSITION),
        request.user_id,
    )
    return jsonify(note), 201


@app.route("/api/notes/<int:note_id>", methods=["PUT"])
@require_auth
def update_note(note_id):
    fields = validate_note_fields(request.get_json(silent=True), required=True)
    note = storage.update_note(note_id, fields, owner_scope())
    if not note:
        return jsonify({"error": "Note not found"}), 404
    return jsonify(note)


@app.route("/api/notes/<int:note_id>", methods=["DELETE"])
@require_auth
def delete_note(note_id):
    if not storage.delete_note(note_id, owner_scope()):
        return jsonify({"error": "Note not found"}), 404
    return jsonify({"message": "Note deleted successfully"})


# ---- Users ----


@app.route("/api/users", methods=["GET"])
@require_auth
@require_role("admin")
def list_users():
    return jsonify(storage.list_users())


@app.route("/api/users/<int:user_id>", methods=["GET"])
@require_auth
@require_role("admin")
def get_user(user_id):
    user = storage.get_user(user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user)


@app.route("/api/users/<int:user_id>", methods=["PUT"])
@require_auth
@require_role("admin")
def update_user(user_id):
    fields = validate_user_fields(request.get_json(silent=True))
    user = storage.update_user(user_id, fields)
    if not user:
        return jsonify({"error": "User not found"}), 404
    app.logger.info("Updated user %s (%s)", user_id, ", ".join(sorted(fields)))
    return jsonify(user)


@app.route("/api/users/<int:user_id>", methods=["DELETE"])
@require_auth
@require_role("admin")
def delete_user(user_id):
    if str(user_id) == request.user_id:
        return jsonify({"error": "Cannot delete your own account"}), 400
    if not storage.delete_user(user_id):
        return jsonify({"error": "User not found"}), 404
    app.logger.info("Deleted user %s", user_id)
    return jsonify({"message": "User deleted successfully"})


if __name__ == "__main__":
    app.run()
