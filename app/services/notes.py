# app/services/notes.py
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from app.core.errors import DuplicateError, NoResultsError, NotFoundError, PageOutOfRangeError, ValidationError
from app.models.note import Category, Note
from app.services.files import UploadedFile, clean_files, delete_files, find_file
from app.utils.dates import EPOCH, end_of_day, parse_date, start_of_day, utcnow
from app.utils.ids import parse_id

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_SIZE = 15
MAX_SIZE = 100


@dataclass
class NotePage:
    pages: int
    total: int
    notes: List[Note]


def _to_int(value: Optional[str], default: int) -> int:
    # non-numeric, zero or negative input falls back to the default
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return parsed if parsed >= 1 else default


def _to_date(value: Optional[str]) -> Optional[datetime]:
    if value is None or not str(value).strip():
        return None
    try:
        return parse_date(str(value))
    except ValueError:
        raise ValidationError(f"Invalid date: {value}")


def date_bounds(from_date: Optional[str], to_date: Optional[str], now: Optional[datetime] = None):
    """[start of fromDate (or epoch), end of toDate (or end of today)]."""
    start = _to_date(from_date)
    end = _to_date(to_date)
    return (
        start_of_day(start or EPOCH),
        end_of_day(end or now or utcnow()),
    )


def note_filters(owner_id: int, search: Optional[str], start: datetime, end: datetime) -> list:
    filters = [
        Note.user_id == owner_id,
        Note.updated_at >= start,
        Note.updated_at <= end,
    ]
    if search:
        filters.append(Note.title.icontains(search, autoescape=True))
    return filters


def list_notes(
    db: Session,
    owner_id: int,
    page: Optional[str] = None,
    size: Optional[str] = None,
    from_date: Optional[str] = None,
    to_date: Optional[str] = None,
    search: Optional[str] = None,
    now: Optional[datetime] = None,
) -> NotePage:
    """
    Offset pagination over the owner's notes.

    The count and the page are two queries over the same predicate list.
    Raises NoResultsError when nothing matches and PageOutOfRangeError when
    `page` is past the last page.
    """
    page_no = _to_int(page, DEFAULT_PAGE)
    page_size = min(_to_int(size, DEFAULT_SIZE), MAX_SIZE)
    start, end = date_bounds(from_date, to_date, now)
    filters = note_filters(owner_id, search or "", start, end)

    total = db.scalar(select(func.count()).select_from(Note).where(*filters))
    if not total:
        raise NoResultsError("No notes found")

    pages = math.ceil(total / page_size)
    if page_no > pages:
        raise PageOutOfRangeError("Page not found")

    q = (
        select(Note)
        .where(*filters)
        .options(selectinload(Note.categories))
        .order_by(Note.updated_at.desc(), Note.id.desc())
        .offset((page_no - 1) * page_size)
        .limit(page_size)
    )
    notes = db.execute(q).scalars().all()
    return NotePage(pages=pages, total=total, notes=list(notes))


def get_note(db: Session, owner_id: int, note_id) -> Note:
    nid = parse_id(note_id, "Note not found")
    note = db.scalar(
        select(Note)
        .where(Note.id == nid, Note.user_id == owner_id)
        .options(selectinload(Note.categories))
    )
    if not note:
        raise NotFoundError("Note not found")
    return note


def split_categories(raw: Optional[str]) -> Optional[List[str]]:
    """'work, urgent,,work' -> ['work', 'urgent']; None means 'not sent'."""
    if raw is None:
        return None
    names: List[str] = []
    for name in raw.split(","):
        name = name.strip()
        if name and name not in names:
            names.append(name)
    return names


def resolve_categories(db: Session, owner_id: int, names: Iterable[str]) -> List[Category]:
    names = list(names)
    if not names:
        return []
    existing = {
        c.name: c
        for c in db.execute(
            select(Category).where(Category.user_id == owner_id, Category.name.in_(names))
        ).scalars()
    }
    result = []
    for name in names:
        cat = existing.get(name)
        if cat is None:
            cat = Category(user_id=owner_id, name=name)
            db.add(cat)
        result.append(cat)
    return result


def _required(title, content, deadline) -> datetime:
    if not title or not content or not deadline:
        raise ValidationError("All fields are required")
    try:
        return parse_date(deadline)
    except ValueError:
        raise ValidationError("Invalid deadline")


def _discard(db: Session, storage, files: List[dict]) -> None:
    db.rollback()
    delete_files(storage, files)


def create_note(
    db: Session,
    storage,
    owner_id: int,
    title: Optional[str],
    content: Optional[str],
    deadline: Optional[str],
    uploads: Optional[List[UploadedFile]] = None,
    categories: Optional[List[str]] = None,
) -> Note:
    files = clean_files(uploads)
    try:
        due = _required(title, content, deadline)
        note = Note(user_id=owner_id, title=title, content=content, deadline=due, files=files)
        note.categories = resolve_categories(db, owner_id, categories or [])
        db.add(note)
        db.commit()
    except IntegrityError:
        # a concurrent request created the same category first
        _discard(db, storage, files)
        raise DuplicateError("Duplicate category")
    except Exception:
        _discard(db, storage, files)
        raise

    db.refresh(note)
    logger.info("note %s created by user %s", note.id, owner_id)
    return note


def update_note(
    db: Session,
    storage,
    owner_id: int,
    note_id,
    title: Optional[str],
    content: Optional[str],
    deadline: Optional[str],
    uploads: Optional[List[UploadedFile]] = None,
    categories: Optional[List[str]] = None,
) -> Note:
    files = clean_files(uploads)
    try:
        due = _required(title, content, deadline)
        note = get_note(db, owner_id, note_id)

        previous = list(note.files or [])
        if files:
            note.files = files
        note.title = title
        note.content = content
        note.deadline = due
        note.updated_at = utcnow()
        if categories is not None:
            note.categories = resolve_categories(db, owner_id, categories)
        db.commit()
    except IntegrityError:
        _discard(db, storage, files)
        raise DuplicateError("Duplicate category")
    except Exception:
        _discard(db, storage, files)
        raise

    db.refresh(note)
    # new files supersede the previous ones once the row points at them
    if files:
        delete_files(storage, previous)
    return note


def get_note_file(db: Session, storage, owner_id: int, note_id, filename: str):
    """Return (manifest entry, blob bytes) for one attachment of the owner's note."""
    note = get_note(db, owner_id, note_id)
    entry = find_file(note.files, filename)
    if entry is None:
        raise NotFoundError("File not found")
    return entry, storage.download(entry["path"])


def remove_note(db: Session, storage, note: Note) -> None:
    """Files, then category links, then the row. Caller commits."""
    delete_files(storage, note.files)
    note.categories.clear()
    db.flush()
    db.delete(note)


def delete_note(db: Session, storage, owner_id: int, note_id) -> int:
    note = get_note(db, owner_id, note_id)
    nid = note.id
    remove_note(db, storage, note)
    db.commit()
    logger.info("note %s deleted by user %s", nid, owner_id)
    return nid
