"""
In-memory note list kept in sync with the REST API.

The store is the only owner of the local note list. Writes go to the API
first and touch local state only once the API accepted them; the one
exception is ``move_local``, used while a card is being dragged.
"""
import logging
import random
from dataclasses import replace
from typing import Any, Dict, List, Optional

from .errors import NotFound, NotesError, ValidationError
from .fields import (
    DEFAULT_POSITION,
    Colors,
    ParsedNote,
    Position,
    encode_body,
    encode_colors,
    encode_position,
    parse_colors,
    parse_note,
    parse_position,
    random_colors,
)

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("body", "colors", "position")


class NoteStore:
    def __init__(self, api, rng: Optional[random.Random] = None):
        self.api = api
        self.rng = rng
        self._notes: List[ParsedNote] = []

    @property
    def notes(self) -> List[ParsedNote]:
        return list(self._notes)

    def _index(self, note_id: str) -> int:
        for i, note in enumerate(self._notes):
            if note.id == note_id:
                return i
        raise NotFound("Note not found")

    def get(self, note_id: str) -> ParsedNote:
        return self._notes[self._index(note_id)]

    def list(self, user_id: Optional[str] = None) -> List[ParsedNote]:
        """Reload the note list from the API, in the order the API returns it."""
        try:
            raw_notes = self.api.list_notes()
        except NotesError as e:
            logger.error("Failed to load notes: %s", e)
            raise
        notes = [parse_note(raw) for raw in raw_notes]
        if user_id is not None:
            notes = [n for n in notes if n.user_id == str(user_id)]
        self._notes = notes
        return self.notes

    def create(self, colors: Optional[Colors] = None) -> ParsedNote:
        fields = {
            "body": encode_body(""),
            "colors": encode_colors(colors or random_colors(self.rng)),
            "position": encode_position(DEFAULT_POSITION),
        }
        try:
            raw = self.api.create_note(fields)
        except NotesError as e:
            logger.error("Failed to create note: %s", e)
            raise
        note = parse_note(raw)
        self._notes.append(note)
        return note

    def update(self, note_id: str, patch: Dict[str, Any]) -> ParsedNote:
        """Persist a partial update; local state changes only on success."""
        index = self._index(note_id)
        fields = encode_patch(patch)
        try:
            raw = self.api.update_note(note_id, fields)
        except NotesError as e:
            logger.error("Failed to update note %s: %s", note_id, e)
            raise
        note = parse_note(raw)
        self._notes[index] = note
        return note

    def remove(self, note_id: str) -> None:
        index = self._index(note_id)
        try:
            self.api.delete_note(note_id)
        except NotesError as e:
            logger.error("Failed to delete note %s: %s", note_id, e)
            raise
        del self._notes[index]

    def move_local(self, note_id: str, position: Position) -> ParsedNote:
        index = self._index(note_id)
        note = replace(self._notes[index], position=position.clamped())
        self._notes[index] = note
        return note


def encode_patch(patch: Dict[str, Any]) -> Dict[str, str]:
    """Turn a patch of Python values into the API's string-encoded fields."""
    unknown = set(patch) - set(UPDATABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Cannot update: {', '.join(sorted(unknown))}")
    if not patch:
        raise ValidationError("Nothing to update")

    fields = {}
    if "body" in patch:
        fields["body"] = encode_body(patch["body"] or "")
    if "colors" in patch:
        colors = patch["colors"]
        if not isinstance(colors, Colors):
            colors = parse_colors(colors)
        if colors is None:
            raise ValidationError("Invalid colors")
        fields["colors"] = encode_colors(colors)
    if "position" in patch:
        position = patch["position"]
        if not isinstance(position, Position):
            position = parse_position(position)
        if position is None:
            raise ValidationError("Invalid position")
        fields["position"] = encode_position(position)
    return fields
