"""
Drag-to-reposition for note cards.

``new_offset`` is the pure position tracker. ``DragController`` runs the
Idle -> Dragging -> Idle gesture over a ``DragSurface`` and persists the
final position once, on release.
"""
import logging
from enum import Enum
from typing import Callable, Optional, Protocol

from .errors import NotesError
from .fields import Position

logger = logging.getLogger(__name__)


def new_offset(offset: Position, delta: Optional[Position] = None) -> Position:
    """Move ``offset`` against ``delta`` and clamp both coordinates at zero."""
    if delta is None:
        delta = Position(0, 0)
    return Position(x=max(0, offset.x - delta.x), y=max(0, offset.y - delta.y))


class DragSurface(Protocol):
    """What the controller needs from whatever renders the card."""

    def offset(self) -> Position:
        ...

    def move_to(self, position: Position) -> None:
        ...

    def bring_to_front(self) -> None:
        ...

    def bind_document(
        self,
        on_move: Callable[[float, float], None],
        on_release: Callable[[], None],
    ) -> None:
        ...

    def unbind_document(self) -> None:
        ...


class DragState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


class DragController:
    """
    Tracks one drag gesture at a time for a single note card.

    Moves are applied to the surface and to the store's local copy only.
    The store's ``update`` is called once per gesture, when the pointer is
    released; handlers are bound at the document level so a release outside
    the card still ends the drag.
    """

    def __init__(self, note_id: str, surface: DragSurface, store):
        self.note_id = note_id
        self.surface = surface
        self.store = store
        self.state = DragState.IDLE
        self._cursor = Position(0, 0)
        self._origin = Position(0, 0)

    @property
    def dragging(self) -> bool:
        return self.state is DragState.DRAGGING

    def pointer_down(self, client_x: float, client_y: float) -> None:
        if self.dragging:
            return
        self._cursor = Position(client_x, client_y)
        self._origin = self.surface.offset()
        self.state = DragState.DRAGGING
        self.surface.bring_to_front()
        self.surface.bind_document(self.pointer_move, self.pointer_up)

    def pointer_move(self, client_x: float, client_y: float) -> Optional[Position]:
        if not self.dragging:
            return None
        delta = Position(self._cursor.x - client_x, self._cursor.y - client_y)
        self._cursor = Position(client_x, client_y)
        position = new_offset(self.surface.offset(), delta)
        self.surface.move_to(position)
        try:
            self.store.move_local(self.note_id, position)
        except NotesError:
            # The note is gone; end the gesture without persisting
            self._end()
            raise
        return position

    def _end(self) -> None:
        self.surface.unbind_document()
        self.state = DragState.IDLE

    def pointer_up(self):
        """End the gesture and persist the dropped position."""
        if not self.dragging:
            return None
        self._end()
        position = new_offset(self.surface.offset())
        logger.debug("Note %s dropped at (%s, %s)", self.note_id, position.x, position.y)
        try:
            return self.store.update(self.note_id, {"position": position})
        except NotesError:
            # Put the card back where the last successful drop left it
            self.surface.move_to(self._origin)
            self.store.move_local(self.note_id, self._origin)
            raise
