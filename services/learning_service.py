"""
Enrollment, progress, quiz attempts and certificates.

Enrolling writes the progress row before the enrollment row. The enrollment
is what every reader checks first, so a half-finished enroll is invisible
and the next call completes it.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from models.course_models import (
    Certificate, CourseProgress, Enrollment, Quiz, QuizAttempt, UserProfile,
)
from services.course_service import current_revision_rows
from utils.exceptions import NotFoundError, TechLearnError, ValidationError
from utils.file_storage import PipelineRunLog
from utils.repository import Repository

logger = logging.getLogger(__name__)

BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def to_base36(number: int) -> str:
    if number == 0:
        return "0"
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def build_certificate_id(user_id: str, course_id: str, now_ms: int) -> str:
    return f"CERT-{user_id[:4]}-{course_id[:4]}-{to_base36(now_ms)}"


def percent(part: int, whole: int) -> int:
    """Whole-number percentage, halves rounded up (1 of 8 is 13)"""
    return int(100 * part / whole + 0.5) if whole else 0


def score_answers(quiz: Quiz, answers: List[int]) -> int:
    """Number of answers matching the quiz's correct options, position by position"""
    return sum(
        1 for question, answer in zip(quiz.questions, answers)
        if answer == question.correct_answer
    )


class LearningService:
    """Per-user course state"""

    def __init__(
        self,
        repository: Repository,
        run_log: Optional[PipelineRunLog] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repository = repository
        self.run_log = run_log
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # ── Enrollment ──

    def get_enrollment(self, user_id: str, course_id: str) -> Optional[Enrollment]:
        row = self.repository.get("course_enrollments", {"user_id": user_id, "course_id": course_id})
        return Enrollment.from_row(row) if row else None

    def is_enrolled(self, user_id: str, course_id: str) -> bool:
        return self.get_enrollment(user_id, course_id) is not None

    def get_enrollments(self, user_id: str) -> List[Enrollment]:
        rows = self.repository.select("course_enrollments", {"user_id": user_id}, order_by="enrollment_date", descending=True)
        return [Enrollment.from_row(row) for row in rows]

    def enroll(self, user_id: str, course_id: str) -> Enrollment:
        """Enroll a user; calling it again returns the existing enrollment"""
        if not user_id or not course_id:
            raise ValidationError("userId and courseId are required", error_code="MISSING_IDS")

        existing = self.get_enrollment(user_id, course_id)
        if existing:
            logger.info(f"User {user_id} already enrolled in {course_id}")
            return existing

        course_row = self.repository.get("courses", {"id": course_id})
        if not course_row:
            raise NotFoundError("Course not found", error_code="COURSE_NOT_FOUND", context={"course_id": course_id})

        now = self.clock().isoformat()
        if not self.repository.get("course_progress", {"user_id": user_id, "course_id": course_id}):
            progress = CourseProgress(user_id=user_id, course_id=course_id, last_accessed=now)
            self.repository.insert("course_progress", progress.to_row())

        enrollment = Enrollment(user_id=user_id, course_id=course_id, enrollment_date=now)
        created = self.repository.insert("course_enrollments", enrollment.to_row())
        logger.info(f"Enrolled user {user_id} in course {course_id}")

        try:
            self.repository.update(
                "courses",
                {"enrolled_count": (course_row.get("enrolled_count") or 0) + 1},
                {"id": course_id},
            )
        except TechLearnError as e:
            logger.error(f"Could not bump enrolled_count for {course_id}: {e.message}")

        return Enrollment.from_row(created)

    # ── Progress ──

    def _require_enrollment(self, user_id: str, course_id: str) -> Enrollment:
        enrollment = self.get_enrollment(user_id, course_id)
        if not enrollment:
            raise ValidationError("User is not enrolled in this course", error_code="NOT_ENROLLED")
        return enrollment

    def get_progress(self, user_id: str, course_id: str) -> CourseProgress:
        self._require_enrollment(user_id, course_id)
        row = self.repository.get("course_progress", {"user_id": user_id, "course_id": course_id})
        if not row:
            # Enrollment exists but its progress row was lost; recreate it empty
            progress = CourseProgress(user_id=user_id, course_id=course_id, last_accessed=self.clock().isoformat())
            row = self.repository.insert("course_progress", progress.to_row())
        return CourseProgress.from_row(row)

    def _course_items(self, course_id: str) -> Dict[str, List[str]]:
        course_row = self.repository.get("courses", {"id": course_id}) or {}
        videos = current_revision_rows(self.repository.select("videos", {"course_id": course_id}), course_row)
        quizzes = self.repository.select("quizzes", {"course_id": course_id})
        return {"videos": [v["id"] for v in videos], "quizzes": [q["id"] for q in quizzes]}

    def _save_progress(self, progress: CourseProgress) -> CourseProgress:
        items = self._course_items(progress.course_id)
        total = len(items["videos"]) + len(items["quizzes"])
        done = len(set(progress.completed_videos) & set(items["videos"])) + \
            len(set(progress.completed_quizzes) & set(items["quizzes"]))
        progress.overall_progress = percent(done, total)
        progress.last_accessed = self.clock()

        self.repository.update(
            "course_progress",
            {
                "completed_videos": progress.completed_videos,
                "completed_quizzes": progress.completed_quizzes,
                "overall_progress": progress.overall_progress,
                "last_accessed": progress.last_accessed.isoformat(),
            },
            {"user_id": progress.user_id, "course_id": progress.course_id},
        )

        if progress.overall_progress >= 100:
            self._complete_course(progress.user_id, progress.course_id)
        return progress

    def _complete_course(self, user_id: str, course_id: str) -> None:
        enrollment = self.get_enrollment(user_id, course_id)
        if enrollment and enrollment.certificate_issued:
            return
        try:
            self.generate_certificate(user_id, course_id)
        except TechLearnError as e:
            logger.error(f"Course {course_id} completed by {user_id} but certificate failed: {e.message}")
            if self.run_log:
                self.run_log.log_failed_write("certificates", "generate", {"user_id": user_id, "course_id": course_id}, e.message)

    def mark_video_completed(self, user_id: str, course_id: str, video_id: str) -> CourseProgress:
        progress = self.get_progress(user_id, course_id)
        video = self.repository.get("videos", {"id": video_id})
        if not video or video.get("course_id") != course_id:
            raise NotFoundError("Video not found in this course", error_code="VIDEO_NOT_FOUND")
        if video_id not in progress.completed_videos:
            progress.completed_videos.append(video_id)
        return self._save_progress(progress)

    def submit_quiz(self, user_id: str, quiz_id: str, answers: List[int]) -> Dict[str, Any]:
        quiz_row = self.repository.get("quizzes", {"id": quiz_id})
        if not quiz_row:
            raise NotFoundError("Quiz not found", error_code="QUIZ_NOT_FOUND", context={"quiz_id": quiz_id})
        quiz = Quiz.from_row(quiz_row)
        if len(answers) != len(quiz.questions):
            raise ValidationError(
                f"Expected {len(quiz.questions)} answers, got {len(answers)}",
                error_code="ANSWER_COUNT_MISMATCH",
            )

        progress = self.get_progress(user_id, quiz.course_id)
        score = score_answers(quiz, answers)
        attempt = QuizAttempt(
            user_id=user_id,
            course_id=quiz.course_id,
            quiz_id=quiz_id,
            score=score,
            total_questions=len(quiz.questions),
            answers=answers,
            completed_at=self.clock(),
        )
        self.repository.insert("quiz_attempts", attempt.to_row())

        if quiz_id not in progress.completed_quizzes:
            progress.completed_quizzes.append(quiz_id)
        progress = self._save_progress(progress)

        return {
            "score": score,
            "total": len(quiz.questions),
            "percentage": percent(score, len(quiz.questions)),
            "progress": progress.to_api(),
        }

    def get_quiz_attempts(self, user_id: str, quiz_id: str) -> List[QuizAttempt]:
        rows = self.repository.select("quiz_attempts", {"user_id": user_id, "quiz_id": quiz_id}, order_by="completed_at")
        return [QuizAttempt.from_row(row) for row in rows]

    # ── Certificates ──

    def generate_certificate(self, user_id: str, course_id: str) -> Dict[str, Any]:
        """Issue (or return the already issued) certificate for a completed course"""
        existing = self.repository.get("certificates", {"user_id": user_id, "course_id": course_id})
        if existing:
            return existing["certificate_data"]

        profile = self.repository.get("profiles", {"id": user_id})
        if not profile:
            raise NotFoundError("User profile not found", error_code="PROFILE_NOT_FOUND", context={"user_id": user_id})
        course = self.repository.get("courses", {"id": course_id})
        if not course:
            raise NotFoundError("Course not found", error_code="COURSE_NOT_FOUND", context={"course_id": course_id})

        now = self.clock()
        certificate_id = build_certificate_id(user_id, course_id, int(now.timestamp() * 1000))
        certificate_data = {
            "userId": user_id,
            "userName": profile.get("name") or "",
            "courseId": course_id,
            "courseTitle": course.get("title") or "",
            "completionDate": now.strftime("%B %d, %Y"),
            "certificateId": certificate_id,
        }

        self.repository.update(
            "course_enrollments",
            {"is_completed": True, "certificate_issued": True},
            {"user_id": user_id, "course_id": course_id},
        )

        certificate = Certificate(
            id=certificate_id,
            user_id=user_id,
            course_id=course_id,
            issue_date=now,
            certificate_data=certificate_data,
        )
        try:
            self.repository.upsert("certificates", certificate.to_row(), on_conflict="user_id,course_id")
        except TechLearnError as e:
            logger.error(f"Failed to store certificate {certificate_id}: {e.message}")
            if self.run_log:
                self.run_log.log_failed_write("certificates", "upsert", certificate.to_row(), e.message)

        logger.info(f"Issued certificate {certificate_id} to {user_id} for {course_id}")
        return certificate_data

    def get_certificate(self, user_id: str, course_id: str) -> Dict[str, Any]:
        row = self.repository.get("certificates", {"user_id": user_id, "course_id": course_id})
        if not row:
            raise NotFoundError("Certificate not found", error_code="CERTIFICATE_NOT_FOUND")
        return row["certificate_data"]

    def list_certificates(self, user_id: str) -> List[Certificate]:
        rows = self.repository.select("certificates", {"user_id": user_id}, order_by="issue_date", descending=True)
        return [Certificate.from_row(row) for row in rows]

    # ── Users ──

    def _enrolled_course_ids(self) -> Dict[str, List[str]]:
        by_user: Dict[str, List[str]] = defaultdict(list)
        for row in self.repository.select("course_enrollments", order_by="enrollment_date"):
            by_user[row["user_id"]].append(row["course_id"])
        return by_user

    def list_profiles(self) -> List[Dict[str, Any]]:
        """Every profile with the number of courses the user is enrolled in"""
        enrolled = self._enrolled_course_ids()
        profiles = []
        for row in self.repository.select("profiles", order_by="name"):
            course_ids = enrolled.get(row["id"], [])
            profile = UserProfile.from_row({**row, "enrolled_courses": course_ids})
            profiles.append({**profile.to_api(), "enrollmentCount": len(course_ids)})
        return profiles

    def get_user_details(self, user_id: str) -> Dict[str, Any]:
        row = self.repository.get("profiles", {"id": user_id})
        if not row:
            raise NotFoundError("User profile not found", error_code="PROFILE_NOT_FOUND", context={"user_id": user_id})

        enrollments = self.get_enrollments(user_id)
        attempts = self.repository.select("quiz_attempts", {"user_id": user_id}, order_by="completed_at", descending=True)
        progress = self.repository.select("course_progress", {"user_id": user_id}, order_by="last_accessed", descending=True)
        profile = UserProfile.from_row({**row, "enrolled_courses": [e.course_id for e in enrollments]})
        return {
            "profile": profile.to_api(),
            "enrollments": [e.to_api() for e in enrollments],
            "quizAttempts": [QuizAttempt.from_row(r).to_api() for r in attempts],
            "courseProgress": [CourseProgress.from_row(r).to_api() for r in progress],
        }
