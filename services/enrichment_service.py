"""
Video enrichment pipeline.

Given a video row without playable content, pick a video URL and thumbnail,
produce a transcript, derive a summary, quiz questions and keywords, and
write the result back. Every external call has a local fallback tier, so the
only hard failures are bad input and a failed write of the video row itself.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from pydantic import ValidationError as PydanticValidationError

from clients.youtube_client import extract_video_id, find_video_url, thumbnail_url
from models.course_models import (
    ContentAnalysis, Course, EnrichmentResult, GeneratedQuestion, Quiz, QuizQuestion, Video,
)
from prompts.enrichment_prompts import (
    build_video_lookup_prompt, build_transcript_prompt, build_content_analysis_prompt,
)
from services import content_templates, media_catalog
from services.course_service import current_revision_rows
from utils.batching import run_bounded
from utils.exceptions import NotFoundError, StorageError, TechLearnError, ValidationError
from utils.file_storage import PipelineRunLog, generate_uuid, utc_now_iso
from utils.repository import Repository
from utils.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class VideoChoice:
    url: str
    source: str
    platform_video_id: Optional[str] = None
    thumbnail: Optional[str] = None
    duration: Optional[str] = None

    def download_info(self) -> Dict[str, Any]:
        host = urlparse(self.url).netloc or "unknown"
        return {
            "source": self.source,
            "provider": "youtube" if self.platform_video_id else host,
            "videoId": self.platform_video_id,
            "url": self.url,
            "format": "stream" if self.platform_video_id else self.url.rsplit(".", 1)[-1].lower(),
        }


def valid_questions(candidates: List[GeneratedQuestion]) -> List[QuizQuestion]:
    """Keep only questions with exactly four options and an answer index in range"""
    questions = []
    for candidate in candidates:
        try:
            questions.append(QuizQuestion(
                id=generate_uuid(),
                text=candidate.question.strip(),
                options=[str(option).strip() for option in candidate.options],
                correct_answer=candidate.correctAnswer,
            ))
        except PydanticValidationError:
            logger.warning(f"Dropping malformed question: {candidate.question[:80]!r}")
    return questions


class EnrichmentService:
    """Orchestrates video selection, transcript and content analysis for one video"""

    def __init__(
        self,
        repository: Repository,
        settings: Settings,
        text_generator=None,
        video_client=None,
        run_log: Optional[PipelineRunLog] = None,
    ):
        self.repository = repository
        self.settings = settings
        self.text_generator = text_generator
        self.video_client = video_client
        self.run_log = run_log

    # ── Input ──

    def _load(self, video_id: str, course_id: str) -> Tuple[Video, Course]:
        if not video_id or not course_id:
            raise ValidationError("Missing videoId or courseId", error_code="MISSING_IDS")

        video_row = self.repository.get("videos", {"id": video_id})
        if not video_row:
            raise NotFoundError(f"Video not found: {video_id}", error_code="VIDEO_NOT_FOUND", context={"video_id": video_id})

        course_row = self.repository.get("courses", {"id": course_id})
        if not course_row:
            raise NotFoundError(f"Course not found: {course_id}", error_code="COURSE_NOT_FOUND", context={"course_id": course_id})

        if not (course_row.get("title") or "").strip() or not (course_row.get("category") or "").strip():
            raise ValidationError(
                "Course must have a title and a category before its videos can be processed",
                error_code="INCOMPLETE_COURSE",
                context={"course_id": course_id},
            )
        if video_row.get("course_id") != course_id:
            raise ValidationError(
                "Video does not belong to this course",
                error_code="COURSE_MISMATCH",
                context={"video_id": video_id, "course_id": course_id},
            )

        try:
            return Video.from_row(video_row), Course.from_row(course_row)
        except PydanticValidationError as e:
            raise ValidationError(f"Stored video or course is invalid: {e.errors()[0]['msg']}", error_code="INVALID_ROW") from e

    # ── Video selection ──

    async def _select_video(self, video: Video, course: Course) -> VideoChoice:
        if self.text_generator is not None:
            try:
                reply = await self.text_generator.generate_text(
                    build_video_lookup_prompt(video.title, course.title, course.category),
                    max_tokens=200,
                    temperature=0.2,
                )
                url = find_video_url(reply)
                if url:
                    return VideoChoice(url=url, source="generated", platform_video_id=extract_video_id(url))
                logger.warning(f"Video lookup for '{video.title}' returned no usable URL")
            except Exception as e:
                logger.warning(f"Video lookup failed for '{video.title}', trying search: {e}")

        if self.video_client is not None:
            try:
                candidates = await self.video_client.search_videos(f"{course.title} {video.title}", max_results=1)
                if candidates:
                    best = candidates[0]
                    return VideoChoice(
                        url=best.url,
                        source="search",
                        platform_video_id=best.video_id,
                        thumbnail=best.thumbnail,
                        duration=best.duration,
                    )
                logger.warning(f"Video search for '{video.title}' returned no results")
            except Exception as e:
                logger.warning(f"Video search failed for '{video.title}', using catalog: {e}")

        selection = media_catalog.select_static_video(video.title, course.title, course.category)
        return VideoChoice(
            url=selection.url,
            source="catalog" if selection.keyword else "default",
            platform_video_id=extract_video_id(selection.url) if "youtube.com" in selection.url else None,
        )

    def _select_thumbnail(self, video: Video, course: Course, choice: VideoChoice) -> Tuple[str, str]:
        selection = media_catalog.select_keyword_thumbnail(video.title, course.title, course.category)
        if selection:
            return selection.url, "catalog"
        if choice.thumbnail:
            return choice.thumbnail, "platform"
        if choice.platform_video_id:
            return thumbnail_url(choice.platform_video_id), "platform"
        return media_catalog.default_thumbnail(video.title), "default"

    # ── Transcript ──

    async def _generate_transcript(self, video: Video, course: Course, choice: VideoChoice) -> Tuple[str, str]:
        min_length = self.settings.min_transcript_length

        if choice.platform_video_id and self.video_client is not None:
            try:
                captions = await self.video_client.fetch_transcript(choice.url)
                if captions and len(captions.strip()) >= min_length:
                    return captions.strip(), "captions"
            except Exception as e:
                logger.warning(f"Caption fetch failed for {choice.platform_video_id}: {e}")

        if self.text_generator is not None:
            try:
                text = await self.text_generator.generate_text(
                    build_transcript_prompt(video.title, video.description, course.title, course.category),
                    max_tokens=1500,
                )
                text = (text or "").strip()
                if len(text) >= min_length:
                    return text, "generated"
                logger.warning(f"Generated transcript for '{video.title}' too short ({len(text)} chars)")
            except Exception as e:
                logger.warning(f"Transcript generation failed for '{video.title}': {e}")

        transcript = content_templates.fallback_transcript(
            video.title, course.title, course.category, video.description,
        )
        return transcript, "template"

    # ── Content analysis ──

    async def _analyze_content(
        self, transcript: str, video: Video, course: Course,
    ) -> Tuple[str, List[QuizQuestion], List[str], str]:
        if self.text_generator is not None:
            try:
                analysis = await self.text_generator.generate_structured(
                    build_content_analysis_prompt(transcript, video.title, course.title, course.category),
                    ContentAnalysis,
                    max_tokens=1500,
                    temperature=0.4,
                )
                questions = valid_questions(analysis.questions)
                if questions and analysis.summary.strip():
                    keywords = [k.strip() for k in analysis.keywords if k and k.strip()]
                    if not keywords:
                        keywords = content_templates.fallback_keywords(video.title, course.title, course.category)
                    return analysis.summary.strip(), questions, keywords, "generated"
                logger.warning(f"Content analysis for '{video.title}' had no usable questions or summary")
            except Exception as e:
                logger.warning(f"Content analysis failed for '{video.title}': {e}")

        return (
            content_templates.fallback_summary(video.title, course.title, course.category),
            content_templates.fallback_questions(course.title, course.category),
            content_templates.fallback_keywords(video.title, course.title, course.category),
            "template",
        )

    # ── Persistence ──

    def _ensure_course_quiz(self, video: Video, course_id: str, questions: List[QuizQuestion]) -> Optional[str]:
        """Insert the course's first quiz. Returns a warning message when the write fails."""
        quiz = Quiz(
            course_id=course_id,
            title=f"{video.title} Quiz",
            description=f"Test your knowledge about {video.title}",
            questions=questions,
            order_num=1,
        )
        try:
            if self.repository.select("quizzes", {"course_id": course_id}):
                return None
            self.repository.insert("quizzes", quiz.to_row())
            logger.info(f"Created quiz '{quiz.title}' for course {course_id}")
            return None
        except TechLearnError as e:
            logger.error(f"Quiz insert failed for course {course_id} after video update: {e.message}")
            if self.run_log:
                self.run_log.log_failed_write("quizzes", "insert", quiz.to_row(), e.message)
            return f"Quiz could not be created: {e.message}"

    async def process_video(self, video_id: str, course_id: str) -> EnrichmentResult:
        """Enrich one video. Re-running overwrites the previous enrichment."""
        start = time.time()
        video, course = self._load(video_id, course_id)
        logger.info(f"Processing video '{video.title}' ({video_id}) for course '{course.title}'")

        choice = await self._select_video(video, course)
        thumbnail, thumbnail_source = self._select_thumbnail(video, course, choice)
        transcript, transcript_source = await self._generate_transcript(video, course, choice)
        summary, questions, keywords, analysis_source = await self._analyze_content(transcript, video, course)

        sources = {
            "video": choice.source,
            "thumbnail": thumbnail_source,
            "transcript": transcript_source,
            "analysis": analysis_source,
        }
        analyzed_content = {
            "transcript": transcript,
            "summary": summary,
            "questions": [q.to_api() for q in questions],
            "keywords": keywords,
            "sources": sources,
            "generatedAt": utc_now_iso(),
        }
        download_info = choice.download_info()

        values: Dict[str, Any] = {
            "url": choice.url,
            "thumbnail": thumbnail,
            "analyzed_content": analyzed_content,
            "download_info": download_info,
            "updated_at": utc_now_iso(),
        }
        if choice.duration and not video.duration:
            values["duration"] = choice.duration

        updated = self.repository.update("videos", values, {"id": video_id})
        if not updated:
            raise StorageError(f"Video {video_id} was not updated", context={"video_id": video_id})

        warnings = []
        quiz_warning = self._ensure_course_quiz(video, course_id, questions)
        if quiz_warning:
            warnings.append(quiz_warning)

        elapsed = round(time.time() - start, 2)
        logger.info(f"Processed video {video_id} in {elapsed}s (sources: {sources})")
        if self.run_log:
            self.run_log.log_run("process_video", {
                "video_id": video_id,
                "course_id": course_id,
                "sources": sources,
                "warnings": warnings,
                "elapsed_seconds": elapsed,
            })

        return EnrichmentResult(
            status="success",
            success=True,
            video_id=video_id,
            video_url=choice.url,
            title=video.title,
            description=video.description,
            thumbnail=thumbnail,
            transcript=transcript,
            summary=summary,
            questions=questions,
            keywords=keywords,
            analyzed_content=analyzed_content,
            download_info=download_info,
            sources=sources,
            warnings=warnings,
        )

    async def enrich_course(self, course_id: str, only_missing: bool = True) -> Dict[str, Any]:
        """Re-process a course's videos, at most BATCH_CONCURRENCY at a time"""
        if not course_id:
            raise ValidationError("Missing courseId", error_code="MISSING_IDS")
        course_row = self.repository.get("courses", {"id": course_id})
        if not course_row:
            raise NotFoundError(f"Course not found: {course_id}", error_code="COURSE_NOT_FOUND")

        rows = self.repository.select("videos", {"course_id": course_id}, order_by="order_num")
        rows = current_revision_rows(rows, course_row)
        if only_missing:
            rows = [row for row in rows if not row.get("analyzed_content")]

        async def _process(row: Dict[str, Any]) -> EnrichmentResult:
            try:
                return await self.process_video(row["id"], course_id)
            except TechLearnError as e:
                logger.error(f"Processing video {row['id']} failed: {e.message}")
                return EnrichmentResult(status="error", success=False, video_id=row["id"], message=e.message)

        results = await run_bounded(rows, _process, self.settings.batch_concurrency)
        processed = sum(1 for r in results if r.success)
        return {
            "success": True,
            "processed": processed,
            "failed": len(results) - processed,
            "results": [r.to_api() for r in results],
        }
