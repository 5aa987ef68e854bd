"""
Dashboard statistics over the note and user lists.

Every function here is a pure derivation and recomputes from its inputs on
each call. ``DashboardView`` is the only stateful piece: it fetches notes and
users concurrently and keeps a separate loading/error state for each.
"""
import logging
import re
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

from .errors import NotesError
from .fields import ParsedNote, parse_note

logger = logging.getLogger(__name__)

TREND_DAYS = 7
RECENT_LIMIT = 6

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class User:
    id: str
    email: str = ""
    role: str = "user"
    user_name: Optional[str] = None
    created_at: Optional[str] = None


@dataclass
class DashboardStats:
    total: int = 0
    with_body: int = 0
    empty_body: int = 0
    created_today: int = 0
    created_this_week: int = 0
    updated_today: int = 0
    colors_count: Dict[str, int] = field(default_factory=dict)
    top_color: Optional[str] = None


@dataclass
class UserRow:
    user: User
    initials: str
    note_count: int


@dataclass
class DashboardSummary:
    stats: DashboardStats
    trend: List[tuple]
    notes_by_user: Dict[str, int]
    users: List[UserRow]
    recent_created: List[ParsedNote]
    recent_updated: List[ParsedNote]


def parse_user(raw: Dict[str, Any]) -> User:
    user_id = raw.get("id", raw.get("_id"))
    return User(
        id=str(user_id) if user_id is not None else "",
        email=raw.get("email") or "",
        role=raw.get("role") or "user",
        user_name=raw.get("user_name") or raw.get("userName"),
        created_at=raw.get("created_at") or raw.get("createdAt"),
    )


# ---- Time helpers ----


def local_now(now: Optional[datetime] = None) -> datetime:
    if now is None:
        return datetime.now().astimezone()
    if now.tzinfo is None:
        return now.astimezone()
    return now


def _midnight(day: date, now: Optional[datetime]) -> datetime:
    # Without an explicit zone, resolve the offset for that day, not for today
    if now is None or now.tzinfo is None:
        return datetime.combine(day, time.min).astimezone()
    return datetime.combine(day, time.min, tzinfo=now.tzinfo)


def start_of_today(now: Optional[datetime] = None) -> datetime:
    return _midnight(local_now(now).date(), now)


def start_of_week_monday(now: Optional[datetime] = None) -> datetime:
    """Midnight of the most recent Monday; a Sunday goes back six days."""
    today = local_now(now).date()
    return _midnight(today - timedelta(days=today.weekday()), now)


def parse_timestamp(value: Any, tz=None) -> Optional[datetime]:
    """Parse an ISO timestamp into ``tz``; None when missing or unparsable."""
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            ts = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=tz) if tz is not None else ts.astimezone()
    return ts.astimezone(tz) if tz is not None else ts


# ---- Derivations ----


def initials_from_email(email: Optional[str]) -> str:
    s = (email or "").strip()
    if not s:
        return "GU"
    left = s.split("@")[0]
    parts = [p for p in re.split(r"[._\- ]+", left) if p]
    a = parts[0][0] if parts else (left[:1] or "G")
    b = parts[1][0] if len(parts) > 1 else (left[1:2] or "U")
    return f"{a}{b}".upper()


def filter_notes(notes: Iterable[ParsedNote], search: str = "") -> List[ParsedNote]:
    q = (search or "").strip().lower()
    if not q:
        return list(notes)
    return [
        n for n in notes
        if q in (n.body or "").lower() or q in (n.colors.id if n.colors else "").lower()
    ]


def filter_users(users: Iterable[User], search: str = "") -> List[User]:
    q = (search or "").strip().lower()
    if not q:
        return list(users)
    return [u for u in users if q in (u.email or "").lower() or q in (u.role or "").lower()]


def top_key(counts: Dict[str, int]) -> Optional[str]:
    """Key with the highest count; ties go to the first key in the mapping."""
    best, best_count = None, -1
    for key, count in counts.items():
        if count > best_count:
            best, best_count = key, count
    return best


def compute_stats(notes: Iterable[ParsedNote], now: Optional[datetime] = None) -> DashboardStats:
    today = start_of_today(now)
    week_start = start_of_week_monday(now)
    tz = local_now(now).tzinfo

    stats = DashboardStats()
    for note in notes:
        stats.total += 1
        if note.body:
            stats.with_body += 1
        else:
            stats.empty_body += 1

        key = note.color_id
        stats.colors_count[key] = stats.colors_count.get(key, 0) + 1

        created = parse_timestamp(note.created_at, tz)
        updated = parse_timestamp(note.updated_at, tz)
        if created is not None:
            if created >= today:
                stats.created_today += 1
            if created >= week_start:
                stats.created_this_week += 1
        if updated is not None and updated >= today:
            stats.updated_today += 1

    stats.top_color = top_key(stats.colors_count)
    return stats


def created_trend(
    notes: Iterable[ParsedNote], now: Optional[datetime] = None, days: int = TREND_DAYS
) -> List[tuple]:
    """
    Daily creation counts for the trailing ``days`` days as ``(date, count)``
    pairs, oldest first and ending today.
    """
    now = local_now(now)
    today: date = now.date()
    counts = [0] * days
    for note in notes:
        created = parse_timestamp(note.created_at, now.tzinfo)
        if created is None:
            continue
        diff = (today - created.date()).days
        if 0 <= diff < days:
            counts[days - 1 - diff] += 1
    return [(today - timedelta(days=days - 1 - i), counts[i]) for i in range(days)]


def notes_count_by_user(notes: Iterable[ParsedNote]) -> Dict[str, int]:
    return dict(Counter(n.user_id for n in notes if n.user_id))


def _recent(notes: Iterable[ParsedNote], attr: str, limit: int) -> List[ParsedNote]:
    def sort_key(note):
        return parse_timestamp(getattr(note, attr), timezone.utc) or _EPOCH

    return sorted(notes, key=sort_key, reverse=True)[:limit]


def recent_created(notes: Iterable[ParsedNote], limit: int = RECENT_LIMIT) -> List[ParsedNote]:
    return _recent(notes, "created_at", limit)


def recent_updated(notes: Iterable[ParsedNote], limit: int = RECENT_LIMIT) -> List[ParsedNote]:
    return _recent(notes, "updated_at", limit)


def build_dashboard(
    notes: List[ParsedNote],
    users: List[User],
    search: str = "",
    now: Optional[datetime] = None,
) -> DashboardSummary:
    """
    Headline stats, recent lists and user rows follow ``search``; trend and
    per-user counts always cover every note.
    """
    filtered = filter_notes(notes, search)
    by_user = notes_count_by_user(notes)
    return DashboardSummary(
        stats=compute_stats(filtered, now),
        trend=created_trend(notes, now),
        notes_by_user=by_user,
        users=[
            UserRow(user=u, initials=initials_from_email(u.email), note_count=by_user.get(u.id, 0))
            for u in filter_users(users, search)
        ],
        recent_created=recent_created(filtered),
        recent_updated=recent_updated(filtered),
    )


# ---- View state ----


def _as_records(payload: Any) -> List[Dict[str, Any]]:
    """Anything but a list of objects counts as an empty result."""
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


@dataclass
class FetchState:
    loading: bool = True
    error: Optional[str] = None
    data: List[Any] = field(default_factory=list)


class DashboardView:
    """
    Loads notes and users side by side.

    Each fetch owns its ``FetchState``; a failure in one leaves the other
    untouched. After ``close()`` late results are dropped. Admins see every
    note; other roles see their own. Without a ``role`` the caller is asked
    for it through ``api.me()``.
    """

    def __init__(self, api, role: Optional[str] = None):
        self.api = api
        self.role = role
        self.notes_state = FetchState()
        self.users_state = FetchState()
        self.search = ""
        self._mounted = True
        self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="dashboard")
        self._futures = []

    @property
    def mounted(self) -> bool:
        return self._mounted

    def load(self, wait: bool = True) -> "DashboardView":
        self.notes_state = FetchState()
        self.users_state = FetchState()
        self._futures = [
            self._executor.submit(self._fetch, self.notes_state, self._fetch_notes, "notes"),
            self._executor.submit(self._fetch, self.users_state, self._fetch_users, "users"),
        ]
        if wait:
            self.wait()
        return self

    def wait(self, timeout: Optional[float] = None) -> None:
        for future in self._futures:
            future.result(timeout=timeout)

    def _caller_role(self) -> str:
        if self.role is None:
            me = self.api.me()
            self.role = (me.get("role") if isinstance(me, dict) else None) or "user"
        return self.role

    def _fetch_notes(self):
        scope = "all" if self._caller_role() == "admin" else None
        return [parse_note(raw) for raw in _as_records(self.api.list_notes(scope=scope))]

    def _fetch_users(self):
        return [parse_user(raw) for raw in _as_records(self.api.list_users())]

    def _fetch(self, state: FetchState, loader, label: str) -> None:
        try:
            data = loader()
        except NotesError as e:
            if self._mounted:
                logger.warning("Failed to load %s: %s", label, e)
                state.error = e.message or f"Failed to load {label}"
                state.loading = False
            return
        except Exception:
            if self._mounted:
                logger.exception("Unexpected failure loading %s", label)
                state.error = f"Failed to load {label}"
                state.loading = False
            return
        if not self._mounted:
            logger.debug("Discarding %s loaded after close", label)
            return
        state.data = data
        state.loading = False

    def summary(self, now: Optional[datetime] = None) -> DashboardSummary:
        return build_dashboard(self.notes_state.data, self.users_state.data, self.search, now)

    def close(self) -> None:
        self._mounted = False
        self._executor.shutdown(wait=False)
