"""
Course generation: filling in course details from a title, and bulk-populating
the catalog with synthetic courses.
"""

import asyncio
import logging
import random
import re
import time
from typing import Any, Callable, Dict, List, Optional, Set

from models.course_models import (
    Course, GeneratedCourse, GeneratedCourseDetails, Note, Video,
)
from prompts.course_prompts import (
    build_course_details_prompt, build_course_details_text_prompt, build_course_metadata_prompt,
)
from services import content_templates, media_catalog
from services.course_service import validate_model
from utils.batching import run_bounded
from utils.exceptions import TechLearnError, ValidationError
from utils.file_storage import PipelineRunLog, utc_now_iso
from utils.repository import Repository
from utils.settings import Settings

logger = logging.getLogger(__name__)

MIN_POPULATE_COUNT = 1
MAX_POPULATE_COUNT = 15

ProgressCallback = Callable[[int], None]


def parse_course_details_text(text: str, title: str) -> Optional[Dict[str, Any]]:
    """Parse 'key: value' lines. Returns None unless a description and category were found."""
    details: Dict[str, Any] = {"videos": []}
    for raw_line in (text or "").splitlines():
        line = raw_line.strip().lstrip("-*0123456789. ").strip()
        if ":" not in line:
            continue
        key, value = line.split(":", 1)
        key, value = key.strip().lower(), value.strip().strip('"')
        if not value:
            continue
        if key in ("description", "category", "duration", "instructor"):
            details[key] = value
        elif key == "level":
            details["level"] = content_templates.normalize_level(value)
        elif key.startswith("video"):
            details["videos"].append(value)

    if not details.get("description") or not details.get("category"):
        return None

    fallback = content_templates.fallback_course_details(title)
    details.setdefault("duration", fallback["duration"])
    details.setdefault("level", fallback["level"])
    details.setdefault("instructor", fallback["instructor"])
    if not details["videos"]:
        details["videos"] = fallback["videos"]
    return details


class CourseGenerationService:
    """generate-course-details and populate-courses"""

    def __init__(
        self,
        repository: Repository,
        settings: Settings,
        text_generator=None,
        video_client=None,
        run_log: Optional[PipelineRunLog] = None,
        rng: Optional[random.Random] = None,
    ):
        self.repository = repository
        self.settings = settings
        self.text_generator = text_generator
        self.video_client = video_client
        self.run_log = run_log
        self.rng = rng or random.Random()

    # ── generate-course-details ──

    async def generate_course_details(self, title: Optional[str]) -> Dict[str, Any]:
        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required", error_code="MISSING_TITLE")

        if self.text_generator is not None:
            try:
                generated = await self.text_generator.generate_structured(
                    build_course_details_prompt(title),
                    GeneratedCourseDetails,
                    max_tokens=800,
                    temperature=0.7,
                )
                details = generated.model_dump()
                details["level"] = content_templates.normalize_level(details["level"])
                if not details["videos"]:
                    details["videos"] = content_templates.fallback_course_details(title)["videos"]
                return details
            except Exception as e:
                logger.warning(f"Structured course details failed for '{title}', trying plain text: {e}")

            try:
                text = await self.text_generator.generate_text(
                    build_course_details_text_prompt(title), max_tokens=800, temperature=0.7,
                )
                details = parse_course_details_text(text, title)
                if details:
                    return details
                logger.warning(f"Could not parse course details text for '{title}'")
            except Exception as e:
                logger.warning(f"Course details generation failed for '{title}': {e}")

        return content_templates.fallback_course_details(title)

    # ── populate-courses ──

    async def _generate_course(self, category: str, specific_topic: Optional[str]) -> Dict[str, Any]:
        if self.text_generator is not None:
            try:
                generated = await self.text_generator.generate_structured(
                    build_course_metadata_prompt(category, specific_topic),
                    GeneratedCourse,
                    max_tokens=1200,
                    temperature=0.8,
                )
                course = generated.model_dump()
                if course["title"].strip() and course["videos"]:
                    course["category"] = category
                    course["level"] = content_templates.normalize_level(course["level"])
                    return course
                logger.warning(f"Generated course for {category} had no title or videos")
            except Exception as e:
                logger.warning(f"Course metadata generation failed for {category}, using template: {e}")

        course = content_templates.course_template(category, specific_topic)
        course["level"] = content_templates.normalize_level(course["level"])
        return course

    async def _find_videos(self, title: str, category: str, lessons: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Pair each lesson with a URL and thumbnail; search first, static catalog otherwise"""
        candidates = []
        if self.video_client is not None:
            try:
                candidates = await self.video_client.search_videos(f"{title} tutorial", max_results=len(lessons))
            except Exception as e:
                logger.warning(f"Video search failed for '{title}', using static catalog: {e}")

        static_urls = media_catalog.videos_for_category(category, len(lessons))
        videos = []
        for position, lesson in enumerate(lessons, start=1):
            video = {
                "title": lesson["title"],
                "description": lesson.get("description") or "",
                "order_num": position,
            }
            if position <= len(candidates):
                found = candidates[position - 1]
                video.update({"url": found.url, "thumbnail": found.thumbnail, "duration": found.duration or ""})
            else:
                video.update({
                    "url": static_urls[position - 1],
                    "thumbnail": media_catalog.thumbnail_for(lesson["title"], category),
                })
            videos.append(video)
        return videos

    def _insert_course(self, course: Dict[str, Any], videos: List[Dict[str, Any]]) -> Course:
        """Insert the course row and its children; remove the course again if a child write fails"""
        now = utc_now_iso()
        row = validate_model(Course, {
            "title": course["title"],
            "description": course["description"],
            "category": course["category"],
            "instructor": course.get("instructor") or "",
            "duration": course.get("duration") or f"{self.rng.randint(4, 12)} weeks",
            "level": course["level"],
            "thumbnail": media_catalog.thumbnail_for(course["title"], course["category"]),
            "rating": round(self.rng.uniform(4.0, 5.0), 1),
            "featured": self.rng.random() < 0.2,
            "enrolled_count": 0,
        }).to_row()
        row.update({"created_at": now, "updated_at": now})
        created = self.repository.insert("courses", row)
        course_id = created["id"]

        try:
            video_rows = [validate_model(Video, {**v, "course_id": course_id}).to_row() for v in videos]
            self.repository.insert_many("videos", video_rows)
            note = validate_model(Note, {**content_templates.study_guide_note(course["title"]), "course_id": course_id})
            self.repository.insert("notes", note.to_row())
        except TechLearnError:
            logger.error(f"Child insert failed for course '{course['title']}'; removing it")
            self._remove_partial_course(course_id)
            raise

        return Course.from_row(created)

    def _remove_partial_course(self, course_id: str) -> None:
        """Best-effort removal of a half-built course; the course row is always attempted"""
        for table, filters in (
            ("videos", {"course_id": course_id}),
            ("notes", {"course_id": course_id}),
            ("courses", {"id": course_id}),
        ):
            try:
                self.repository.delete(table, filters)
            except TechLearnError as e:
                logger.error(f"Cleanup of {table} for course {course_id} failed: {e.message}")
                if self.run_log:
                    self.run_log.log_failed_write(table, "delete", filters, e.message)

    def clear_catalog(self) -> None:
        """Delete every course together with its videos, notes and quizzes"""
        for table in ("videos", "notes", "quizzes", "courses"):
            removed = self.repository.delete(table)
            logger.info(f"Cleared {removed} rows from {table}")

    async def populate_courses(
        self,
        count: int,
        clear_existing: bool = False,
        specific_topic: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> Dict[str, Any]:
        if not isinstance(count, int) or not MIN_POPULATE_COUNT <= count <= MAX_POPULATE_COUNT:
            raise ValidationError(
                f"Number of courses must be between {MIN_POPULATE_COUNT} and {MAX_POPULATE_COUNT}",
                error_code="INVALID_COUNT",
            )

        start = time.time()
        if clear_existing:
            self.clear_catalog()

        taken: Set[str] = {
            (row.get("title") or "").strip().lower() for row in self.repository.select("courses")
        }
        lock = asyncio.Lock()
        inserted = 0
        skipped: List[str] = []

        available = content_templates.CATEGORIES
        categories = self.rng.sample(available, min(count, len(available)))
        categories += [self.rng.choice(available) for _ in range(count - len(categories))]
        if specific_topic:
            categories = [specific_topic.strip().title()] * count

        async def _populate_one(category: str) -> bool:
            nonlocal inserted
            course = await self._generate_course(category, specific_topic)
            key = re.sub(r"\s+", " ", course["title"]).strip().lower()

            async with lock:
                if key in taken:
                    logger.info(f"Skipping '{course['title']}': a course with this title already exists")
                    skipped.append(course["title"])
                    return False
                taken.add(key)

            videos = await self._find_videos(course["title"], category, course["videos"])
            try:
                created = self._insert_course(course, videos)
            except TechLearnError as e:
                logger.error(f"Failed to insert course '{course['title']}': {e.message}")
                async with lock:
                    taken.discard(key)
                return False

            async with lock:
                inserted += 1
                current = inserted
            logger.info(f"Created course {current}: '{created.title}' ({category})")
            if on_progress:
                on_progress(current)
            return True

        await run_bounded(categories, _populate_one, self.settings.batch_concurrency)

        if self.run_log:
            self.run_log.log_run("populate_courses", {
                "requested": count,
                "inserted": inserted,
                "skipped_titles": skipped,
                "elapsed_seconds": round(time.time() - start, 2),
            })

        return {
            "success": True,
            "message": f"Successfully generated {inserted} courses",
            "count": inserted,
        }
