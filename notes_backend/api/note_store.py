"""
Note persistence with per-owner access control.

Every operation takes the authenticated user id as an explicit argument.
Get/update/delete first look up the note's owner by id alone, so a
missing note (NotFound) and someone else's note (AccessDenied) stay
distinguishable; the final statement still filters on the owner.
"""
import logging
from enum import Enum
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from notes_backend.api.errors import AccessDenied, NotFound, StorageError
from notes_backend.api.schemas import NoteSummary, NoteUpdate
from notes_database.models import Note, utcnow

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10
DEFAULT_OFFSET = 0
# Largest value a LIMIT/OFFSET clause accepts (BIGINT).
MAX_SQL_INT = 2**63 - 1
# Note ids live in an INTEGER column.
MAX_NOTE_ID = 2**31 - 1


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOrder":
        """Anything other than "desc" sorts ascending."""
        return cls.DESC if value == cls.DESC.value else cls.ASC


def parse_page_param(value: Optional[str], default: int) -> int:
    """Query-string int; missing, non-numeric, negative or oversized values give `default`."""
    if value is None:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if 0 <= parsed <= MAX_SQL_INT else default


# PUBLIC_INTERFACE
class NoteStore:
    """Note CRUD scoped to the requesting user, bound to one DB session."""

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, op: str, e: SQLAlchemyError) -> StorageError:
        self.db.rollback()
        logger.error("%s failed: %s", op, e)
        return StorageError(op, e)

    def _check_owner(self, user_id: int, note_id: int, op: str) -> None:
        if not 0 < note_id <= MAX_NOTE_ID:
            raise NotFound("note not found")
        try:
            owner_id = self.db.execute(
                select(Note.user_id).where(Note.id == note_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._fail(op, e) from e
        if owner_id is None:
            raise NotFound("note not found")
        if owner_id != user_id:
            logger.warning("%s denied: note %s is not owned by user %s", op, note_id, user_id)
            raise AccessDenied()

    # PUBLIC_INTERFACE
    def create(self, user_id: int, title: str, content: str) -> int:
        """Inserts a note owned by `user_id` and returns its id."""
        note = Note(user_id=user_id, title=title, content=content)
        try:
            self.db.add(note)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("notes.create", e) from e
        return note.id

    # PUBLIC_INTERFACE
    def list(
        self,
        user_id: int,
        limit: int = DEFAULT_LIMIT,
        offset: int = DEFAULT_OFFSET,
        sort: SortOrder = SortOrder.ASC,
    ) -> List[NoteSummary]:
        """Returns one page of the user's notes ordered by creation time."""
        if sort == SortOrder.DESC:
            order = (Note.created_at.desc(), Note.id.desc())
        else:
            order = (Note.created_at.asc(), Note.id.asc())
        stmt = (
            select(Note)
            .where(Note.user_id == user_id)
            .order_by(*order)
            .limit(limit)
            .offset(offset)
            .execution_options(populate_existing=True)
        )
        try:
            rows = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError as e:
            raise self._fail("notes.list", e) from e
        return [NoteSummary.model_validate(row) for row in rows]

    # PUBLIC_INTERFACE
    def get(self, user_id: int, note_id: int) -> Note:
        """Returns the note, or raises NotFound / AccessDenied."""
        self._check_owner(user_id, note_id, "notes.get")
        try:
            note = self.db.execute(
                select(Note)
                .where(Note.id == note_id, Note.user_id == user_id)
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise self._fail("notes.get", e) from e
        if note is None:
            raise NotFound("note not found")
        return note

    # PUBLIC_INTERFACE
    def update(self, user_id: int, note_id: int, fields: NoteUpdate) -> None:
        """
        Applies the fields that are set and always refreshes updated_at,
        so an empty update still bumps the timestamp.
        """
        self._check_owner(user_id, note_id, "notes.update")

        values = {"updated_at": utcnow()}
        if fields.title is not None:
            values["title"] = fields.title
        if fields.content is not None:
            values["content"] = fields.content

        stmt = (
            update(Note)
            .where(Note.id == note_id, Note.user_id == user_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        try:
            self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("notes.update", e) from e

    # PUBLIC_INTERFACE
    def delete(self, user_id: int, note_id: int) -> None:
        """Removes the note, or raises NotFound / AccessDenied."""
        self._check_owner(user_id, note_id, "notes.delete")
        stmt = (
            delete(Note)
            .where(Note.id == note_id, Note.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("notes.delete", e) from e
        if result.rowcount == 0:
            raise NotFound("note not found")
