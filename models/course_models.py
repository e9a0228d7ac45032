"""
Pydantic models for the TechLearn platform.

Field names match the database columns (snake_case). The API speaks
camelCase: every model accepts either spelling and dumps camelCase with
by_alias=True.
"""

from pydantic import BaseModel, ConfigDict, Field, AliasChoices
from pydantic.alias_generators import to_camel
from typing import Any, ClassVar, Dict, List, Literal, Optional, Set
from datetime import datetime
from enum import Enum


# Enums for type safety and validation
class CourseLevel(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class NoteFileType(str, Enum):
    PDF = "pdf"
    DOC = "doc"
    TXT = "txt"


class UserRole(str, Enum):
    ADMIN = "admin"
    STUDENT = "student"


class ApiKeyType(str, Enum):
    TEXT_GENERATION = "text-generation"
    VIDEO_SEARCH = "video-search"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    # Fields that are computed for the API and have no column
    row_exclude: ClassVar[Set[str]] = set()

    @classmethod
    def from_row(cls, row: Dict[str, Any]):
        return cls.model_validate(row)

    def to_row(self) -> Dict[str, Any]:
        """Column-named dict ready for insert/update"""
        return self.model_dump(mode="json", exclude_none=True, exclude=self.row_exclude or None)

    def to_api(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ── Catalog ──

class Course(CamelModel):
    id: Optional[str] = None
    title: str = Field(..., min_length=1)
    description: str = ""
    category: str = ""
    thumbnail: Optional[str] = None
    instructor: str = ""
    duration: str = ""
    level: CourseLevel = CourseLevel.INTERMEDIATE
    enrolled_count: int = Field(0, ge=0)
    rating: float = Field(0, ge=0, le=5)
    featured: bool = False
    video_revision: Optional[str] = None
    note_revision: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Video(CamelModel):
    id: Optional[str] = None
    course_id: str
    title: str = Field(..., min_length=1)
    description: str = ""
    url: str = ""
    duration: str = ""
    thumbnail: Optional[str] = None
    order_num: int = Field(1, ge=1, alias="order")
    analyzed_content: Optional[Dict[str, Any]] = None
    download_info: Optional[Dict[str, Any]] = None
    revision: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class Note(CamelModel):
    id: Optional[str] = None
    course_id: str
    title: str = Field(..., min_length=1)
    description: str = ""
    file_url: str = ""
    file_type: NoteFileType = NoteFileType.PDF
    order_num: int = Field(1, ge=1, alias="order")
    revision: Optional[str] = None
    created_at: Optional[datetime] = None


class QuizQuestion(CamelModel):
    id: Optional[str] = None
    text: str = Field(..., min_length=1, validation_alias=AliasChoices("text", "question"))
    options: List[str] = Field(..., min_length=4, max_length=4)
    correct_answer: int = Field(
        ..., ge=0, le=3,
        validation_alias=AliasChoices("correct_answer", "correctAnswer"),
    )


class Quiz(CamelModel):
    id: Optional[str] = None
    course_id: str
    title: str
    description: str = ""
    questions: List[QuizQuestion] = Field(..., min_length=1)
    order_num: int = Field(1, ge=1, alias="order")
    created_at: Optional[datetime] = None


# ── Learning ──

class Enrollment(CamelModel):
    id: Optional[str] = None
    user_id: str
    course_id: str
    enrollment_date: Optional[datetime] = None
    is_completed: bool = False
    certificate_issued: bool = False


class CourseProgress(CamelModel):
    id: Optional[str] = None
    user_id: str
    course_id: str
    completed_videos: List[str] = Field(default_factory=list)
    completed_quizzes: List[str] = Field(default_factory=list)
    overall_progress: int = Field(0, ge=0, le=100)
    last_accessed: Optional[datetime] = None


class QuizAttempt(CamelModel):
    id: Optional[str] = None
    user_id: str
    course_id: str
    quiz_id: str
    score: int = Field(..., ge=0)
    total_questions: int = Field(..., ge=0)
    answers: List[int] = Field(default_factory=list)
    completed_at: Optional[datetime] = None


class Certificate(CamelModel):
    id: Optional[str] = None
    user_id: str
    course_id: str
    issue_date: Optional[datetime] = None
    certificate_data: Dict[str, Any] = Field(default_factory=dict)


class UserProfile(CamelModel):
    row_exclude: ClassVar[Set[str]] = {"enrolled_courses"}

    id: str
    name: str = ""
    email: str = ""
    role: UserRole = UserRole.STUDENT
    avatar: Optional[str] = None
    enrolled_courses: List[str] = Field(default_factory=list)


class ChatMessage(CamelModel):
    id: str
    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime
    image_url: Optional[str] = None


# ── Generation schemas (structured output from the text-generation service) ──

class GeneratedQuestion(BaseModel):
    """Lenient question shape; invalid ones are filtered before use"""
    question: str
    options: List[str]
    correctAnswer: int


class ContentAnalysis(BaseModel):
    summary: str
    questions: List[GeneratedQuestion] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)


class GeneratedCourseDetails(BaseModel):
    description: str
    category: str
    duration: str = "8 weeks"
    level: str = "intermediate"
    instructor: str = ""
    videos: List[str] = Field(default_factory=list)


class GeneratedVideo(BaseModel):
    title: str
    description: str = ""


class GeneratedCourse(BaseModel):
    title: str
    description: str
    level: str = "intermediate"
    instructor: str = ""
    duration: str = "8 weeks"
    videos: List[GeneratedVideo] = Field(default_factory=list)


# ── Function request / response bodies ──

class ProcessVideoRequest(CamelModel):
    video_id: Optional[str] = None
    course_id: Optional[str] = None


class ProcessCourseVideosRequest(CamelModel):
    course_id: Optional[str] = None
    only_missing: bool = True


class CourseDetailsRequest(CamelModel):
    title: Optional[str] = None


class PopulateCoursesRequest(CamelModel):
    count: int = Field(5, validation_alias=AliasChoices("count", "numberOfCourses"))
    clear_existing: bool = False
    specific_topic: Optional[str] = None


class AskVideoRequest(CamelModel):
    question: Optional[str] = None
    context: str = ""
    video_id: Optional[str] = None


class ChatTurn(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class TextGenerationRequest(CamelModel):
    prompt: Optional[str] = None
    context: str = ""
    previous_messages: List[ChatTurn] = Field(default_factory=list)
    max_tokens: int = Field(800, ge=1, le=4096)
    temperature: float = Field(0.7, ge=0, le=2)


class CheckApiKeysRequest(CamelModel):
    key_type: Optional[str] = None


class EnrichmentResult(CamelModel):
    status: Literal["success", "error"]
    success: bool
    video_id: Optional[str] = None
    message: Optional[str] = None
    video_url: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    thumbnail: Optional[str] = None
    transcript: Optional[str] = None
    summary: Optional[str] = None
    questions: List[QuizQuestion] = Field(default_factory=list)
    keywords: List[str] = Field(default_factory=list)
    analyzed_content: Optional[Dict[str, Any]] = None
    download_info: Optional[Dict[str, Any]] = None
    sources: Dict[str, str] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)


# ── REST request bodies ──

class CourseUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    thumbnail: Optional[str] = None
    instructor: Optional[str] = None
    duration: Optional[str] = None
    level: Optional[CourseLevel] = None
    rating: Optional[float] = Field(None, ge=0, le=5)
    featured: Optional[bool] = None


class VideoUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    url: Optional[str] = None
    duration: Optional[str] = None
    thumbnail: Optional[str] = None
    order_num: Optional[int] = Field(None, ge=1, alias="order")


class NoteUpdate(CamelModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    file_url: Optional[str] = None
    file_type: Optional[NoteFileType] = None
    order_num: Optional[int] = Field(None, ge=1, alias="order")


class EnrollRequest(CamelModel):
    user_id: str
    course_id: str


class VideoCompletedRequest(CamelModel):
    user_id: str
    video_id: str


class QuizSubmission(CamelModel):
    user_id: str
    answers: List[int]


class CertificateRequest(CamelModel):
    user_id: str
    course_id: str


class SignUpRequest(CamelModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=6)
    role: UserRole = UserRole.STUDENT


class SignInRequest(CamelModel):
    email: str
    password: str


class EmailRequest(CamelModel):
    email: str


class ChatRequest(CamelModel):
    content: str = ""
