"""
Course catalog service: courses, videos, notes and quizzes.

Replacing a course's whole video or note list is a staged write: the new
rows are inserted under a fresh revision id, the course's revision pointer
is flipped to it, and only then are the old rows deleted. Readers filter by
the pointer, so they see either the old list or the new one.
"""

import logging
from typing import Any, Dict, List, Type, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from models.course_models import (
    Course, CourseUpdate, Note, NoteUpdate, Quiz, Video, VideoUpdate,
)
from utils.exceptions import NotFoundError, StorageError, TechLearnError, ValidationError
from utils.file_storage import generate_uuid, utc_now_iso
from utils.repository import Repository

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# table -> the course column holding that table's current revision
REVISION_POINTERS = {
    "videos": "video_revision",
    "notes": "note_revision",
}


def validate_model(model_cls: Type[ModelT], data: Dict[str, Any]) -> ModelT:
    """Validate a payload, reporting the first problem as a ValidationError"""
    try:
        return model_cls.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ()))
        raise ValidationError(
            f"Invalid {field or 'payload'}: {first.get('msg')}",
            error_code="INVALID_FIELD",
            context={"field": field},
        ) from e


def current_revision_rows(rows: List[Dict[str, Any]], course_row: Dict[str, Any], table: str = "videos") -> List[Dict[str, Any]]:
    """Rows belonging to the course's current revision of `table`"""
    revision = course_row.get(REVISION_POINTERS[table])
    return [row for row in rows if row.get("revision") == revision]


class CourseService:
    """CRUD over the catalog tables"""

    def __init__(self, repository: Repository):
        self.repository = repository

    # ── Courses ──

    def _course_row(self, course_id: str) -> Dict[str, Any]:
        row = self.repository.get("courses", {"id": course_id})
        if not row:
            raise NotFoundError("Course not found", error_code="COURSE_NOT_FOUND", context={"course_id": course_id})
        return row

    def list_courses(self, featured_only: bool = False) -> List[Course]:
        filters = {"featured": True} if featured_only else None
        rows = self.repository.select("courses", filters, order_by="created_at", descending=True)
        return [Course.from_row(row) for row in rows]

    def get_course(self, course_id: str) -> Course:
        return Course.from_row(self._course_row(course_id))

    def add_course(self, data: Dict[str, Any]) -> Course:
        # Missing enrolled_count, rating and featured take the model defaults
        payload = {k: v for k, v in data.items() if v is not None}
        course = validate_model(Course, payload)

        now = utc_now_iso()
        row = course.to_row()
        row.pop("id", None)
        row.update({"created_at": now, "updated_at": now})
        created = self.repository.insert("courses", row)
        logger.info(f"Created course '{course.title}' ({created.get('id')})")
        return Course.from_row(created)

    def update_course(self, course_id: str, updates: Dict[str, Any]) -> Course:
        self._course_row(course_id)
        changes = validate_model(CourseUpdate, updates).model_dump(mode="json", exclude_unset=True)
        changes["updated_at"] = utc_now_iso()
        rows = self.repository.update("courses", changes, {"id": course_id})
        return Course.from_row(rows[0])

    def delete_course(self, course_id: str) -> bool:
        """Delete a course and everything hanging off it; children go first"""
        self._course_row(course_id)
        for table in ("videos", "notes", "quizzes"):
            removed = self.repository.delete(table, {"course_id": course_id})
            logger.info(f"Deleted {removed} {table} of course {course_id}")
        self.repository.delete("courses", {"id": course_id})
        return True

    # ── Videos and notes ──

    def _list_children(self, table: str, model_cls, course_id: str):
        course_row = self._course_row(course_id)
        rows = self.repository.select(table, {"course_id": course_id}, order_by="order_num")
        return [model_cls.from_row(row) for row in current_revision_rows(rows, course_row, table)]

    def _add_child(self, table: str, model_cls, course_id: str, data: Dict[str, Any]):
        course_row = self._course_row(course_id)
        payload = {k: v for k, v in data.items() if v is not None}
        payload.pop("courseId", None)
        payload["course_id"] = course_id
        payload["revision"] = course_row.get(REVISION_POINTERS[table])
        if "order" not in payload and "order_num" not in payload:
            existing = self._list_children(table, model_cls, course_id)
            payload["order_num"] = max((item.order_num for item in existing), default=0) + 1

        item = validate_model(model_cls, payload)
        row = item.to_row()
        row.pop("id", None)
        created = self.repository.insert(table, row)
        return model_cls.from_row(created)

    def _update_child(self, table: str, model_cls, update_cls, item_id: str, updates: Dict[str, Any]):
        if not self.repository.get(table, {"id": item_id}):
            raise NotFoundError(f"{table[:-1].capitalize()} not found", error_code=f"{table[:-1].upper()}_NOT_FOUND")
        changes = validate_model(update_cls, updates).model_dump(mode="json", exclude_unset=True)
        if table == "videos":
            changes["updated_at"] = utc_now_iso()
        rows = self.repository.update(table, changes, {"id": item_id})
        return model_cls.from_row(rows[0])

    def _delete_child(self, table: str, item_id: str) -> bool:
        if not self.repository.delete(table, {"id": item_id}):
            raise NotFoundError(f"{table[:-1].capitalize()} not found", error_code=f"{table[:-1].upper()}_NOT_FOUND")
        return True

    def _replace_children(self, table: str, model_cls, course_id: str, items: List[Dict[str, Any]]):
        """Staged replacement of a course's whole video or note list"""
        self._course_row(course_id)
        revision = generate_uuid()

        rows = []
        for position, data in enumerate(items, start=1):
            payload = {k: v for k, v in data.items() if v is not None and k != "id"}
            payload.pop("courseId", None)
            payload["course_id"] = course_id
            payload["revision"] = revision
            if "order" not in payload and "order_num" not in payload:
                payload["order_num"] = position
            rows.append(validate_model(model_cls, payload).to_row())

        try:
            self.repository.insert_many(table, rows)
        except TechLearnError:
            logger.error(f"Staging new {table} for course {course_id} failed; discarding revision {revision}")
            self.repository.delete(table, {"course_id": course_id, "revision": revision})
            raise

        self.repository.update(
            "courses",
            {REVISION_POINTERS[table]: revision, "updated_at": utc_now_iso()},
            {"id": course_id},
        )

        # Old rows are invisible from here on; failing to delete them only leaves garbage
        for row in self.repository.select(table, {"course_id": course_id}):
            if row.get("revision") != revision:
                try:
                    self.repository.delete(table, {"id": row["id"]})
                except StorageError as e:
                    logger.error(f"Could not delete stale {table[:-1]} {row['id']}: {e.message}")

        return self._list_children(table, model_cls, course_id)

    def get_course_videos(self, course_id: str) -> List[Video]:
        return self._list_children("videos", Video, course_id)

    def get_video(self, video_id: str) -> Video:
        row = self.repository.get("videos", {"id": video_id})
        if not row:
            raise NotFoundError("Video not found", error_code="VIDEO_NOT_FOUND", context={"video_id": video_id})
        return Video.from_row(row)

    def add_video(self, course_id: str, data: Dict[str, Any]) -> Video:
        return self._add_child("videos", Video, course_id, data)

    def update_video(self, video_id: str, updates: Dict[str, Any]) -> Video:
        return self._update_child("videos", Video, VideoUpdate, video_id, updates)

    def delete_video(self, video_id: str) -> bool:
        return self._delete_child("videos", video_id)

    def replace_course_videos(self, course_id: str, videos: List[Dict[str, Any]]) -> List[Video]:
        return self._replace_children("videos", Video, course_id, videos)

    def get_course_notes(self, course_id: str) -> List[Note]:
        return self._list_children("notes", Note, course_id)

    def add_note(self, course_id: str, data: Dict[str, Any]) -> Note:
        return self._add_child("notes", Note, course_id, data)

    def update_note(self, note_id: str, updates: Dict[str, Any]) -> Note:
        return self._update_child("notes", Note, NoteUpdate, note_id, updates)

    def delete_note(self, note_id: str) -> Note:
        """Delete a note and return it, so an uploaded file can be removed too"""
        row = self.repository.get("notes", {"id": note_id})
        if not row:
            raise NotFoundError("Note not found", error_code="NOTE_NOT_FOUND")
        self._delete_child("notes", note_id)
        return Note.from_row(row)

    def replace_course_notes(self, course_id: str, notes: List[Dict[str, Any]]) -> List[Note]:
        return self._replace_children("notes", Note, course_id, notes)

    # ── Quizzes ──

    def get_course_quizzes(self, course_id: str) -> List[Quiz]:
        self._course_row(course_id)
        rows = self.repository.select("quizzes", {"course_id": course_id}, order_by="order_num")
        return [Quiz.from_row(row) for row in rows]

    def get_quiz(self, quiz_id: str) -> Quiz:
        row = self.repository.get("quizzes", {"id": quiz_id})
        if not row:
            raise NotFoundError("Quiz not found", error_code="QUIZ_NOT_FOUND", context={"quiz_id": quiz_id})
        return Quiz.from_row(row)
