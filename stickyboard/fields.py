"""
Note field codec.

Notes keep ``body``, ``colors`` and ``position`` as JSON-encoded strings.
Everything here decodes them with a safe fallback and encodes them back for
writes. ``body`` is sometimes stored double-encoded (``'"\\"first\\""'``);
decoding unwraps exactly one level and keeps whatever is left.
"""
import json
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .errors import ParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Position:
    x: float = 0
    y: float = 0

    def clamped(self) -> "Position":
        return Position(x=max(0, self.x), y=max(0, self.y))

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


@dataclass(frozen=True)
class Colors:
    id: str
    color_header: str
    color_body: str
    color_text: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "id": self.id,
            "colorHeader": self.color_header,
            "colorBody": self.color_body,
            "colorText": self.color_text,
        }


DEFAULT_POSITION = Position(x=10, y=10)

PALETTE: List[Colors] = [
    Colors("color-yellow", "#FFEFBE", "#FFF5DF", "#18181A"),
    Colors("color-green", "#AFDA9F", "#BCDEAF", "#18181A"),
    Colors("color-pink", "#FED0FD", "#FEE5FD", "#18181A"),
    Colors("color-purple", "#9BD1DE", "#A6DCE9", "#18181A"),
]


@dataclass
class ParsedNote:
    id: str
    body: str
    colors: Optional[Colors]
    position: Optional[Position]
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    user_id: Optional[str] = None

    @property
    def color_id(self) -> str:
        return self.colors.id if self.colors else "unknown"


def decode(value: Any) -> Any:
    """Decode one level of JSON, raising ParseError on malformed input."""
    if not isinstance(value, str):
        raise ParseError(f"expected a JSON string, got {type(value).__name__}")
    try:
        return json.loads(value)
    except ValueError as e:
        raise ParseError(str(e)) from e


def safe_json_parse(value: Any, fallback: Any = None) -> Any:
    try:
        return decode(value)
    except ParseError:
        return fallback


def body_parser(value: str) -> Any:
    """Decode a body for editing; the raw value is kept if it is not JSON."""
    try:
        return decode(value)
    except ParseError:
        return value


def _to_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value)


def clean_body(raw: Any) -> str:
    """
    Unwrap one level of JSON string-encoding and trim.

    >>> clean_body('"hello"')
    'hello'
    >>> clean_body("plain")
    'plain'
    """
    text = _to_text(raw).strip()
    try:
        parsed = decode(text)
    except ParseError:
        return text
    return _to_text(parsed).strip()


def parse_colors(value: Any) -> Optional[Colors]:
    data = safe_json_parse(value) if isinstance(value, str) else value
    if not isinstance(data, dict):
        return None
    return Colors(
        id=str(data.get("id") or "unknown"),
        color_header=str(data.get("colorHeader") or ""),
        color_body=str(data.get("colorBody") or ""),
        color_text=str(data.get("colorText") or ""),
    )


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_position(value: Any) -> Optional[Position]:
    data = safe_json_parse(value) if isinstance(value, str) else value
    if not isinstance(data, dict):
        return None
    x, y = data.get("x"), data.get("y")
    if not (_is_number(x) and _is_number(y)):
        return None
    return Position(x=x, y=y).clamped()


def _pick(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def parse_note(raw: Dict[str, Any]) -> ParsedNote:
    """Normalize a note as returned by the API. Never raises on bad fields."""
    note_id = _pick(raw, "id", "_id")
    user_id = _pick(raw, "user_id", "userId")
    colors = parse_colors(raw.get("colors"))
    position = parse_position(raw.get("position"))
    if colors is None or position is None:
        logger.debug("Note %s has unreadable colors or position", note_id)
    return ParsedNote(
        id=str(note_id) if note_id is not None else "",
        body=clean_body(raw.get("body")),
        colors=colors,
        position=position,
        created_at=_pick(raw, "created_at", "createdAt"),
        updated_at=_pick(raw, "updated_at", "updatedAt"),
        user_id=str(user_id) if user_id is not None else None,
    )


def encode_body(text: str) -> str:
    return json.dumps(text)


def encode_colors(colors: Colors) -> str:
    return json.dumps(colors.to_dict())


def encode_position(position: Position) -> str:
    return json.dumps(position.clamped().to_dict())


def random_colors(rng: Optional[random.Random] = None) -> Colors:
    return (rng or random).choice(PALETTE)
