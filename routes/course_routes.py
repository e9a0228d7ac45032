"""
FastAPI routes for the course catalog, learning progress, chat and auth.
Errors are raised as TechLearnError and turned into JSON by the global handler.
"""

import logging
import os
from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, File, Form, UploadFile

from clients.s3_client import build_note_key, get_content_type
from models.course_models import (
    CertificateRequest, ChatRequest, EmailRequest, EnrollRequest, NoteFileType,
    QuizSubmission, SignInRequest, SignUpRequest, VideoCompletedRequest,
)
from services.auth_service import AuthService
from services.container import ServiceContainer, get_container
from utils.exceptions import CollaboratorError, ValidationError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1", tags=["courses"])

MAX_NOTE_BYTES = 20 * 1024 * 1024


# ── Courses ──

@router.get("/courses")
async def list_courses(featured: bool = False, container: ServiceContainer = Depends(get_container)):
    courses = container.courses.list_courses(featured_only=featured)
    return {"courses": [c.to_api() for c in courses], "count": len(courses)}


@router.post("/courses", status_code=201)
async def create_course(payload: Dict[str, Any] = Body(...), container: ServiceContainer = Depends(get_container)):
    course = container.courses.add_course(payload)
    return {"success": True, "course": course.to_api()}


@router.get("/courses/{course_id}")
async def get_course(course_id: str, container: ServiceContainer = Depends(get_container)):
    """Course with its current videos, notes and quizzes"""
    course = container.courses.get_course(course_id)
    return {
        "course": course.to_api(),
        "videos": [v.to_api() for v in container.courses.get_course_videos(course_id)],
        "notes": [n.to_api() for n in container.courses.get_course_notes(course_id)],
        "quizzes": [q.to_api() for q in container.courses.get_course_quizzes(course_id)],
    }


@router.patch("/courses/{course_id}")
async def update_course(course_id: str, payload: Dict[str, Any] = Body(...), container: ServiceContainer = Depends(get_container)):
    course = container.courses.update_course(course_id, payload)
    return {"success": True, "course": course.to_api()}


@router.delete("/courses/{course_id}")
async def delete_course(course_id: str, container: ServiceContainer = Depends(get_container)):
    container.courses.delete_course(course_id)
    return {"success": True, "message": "Course deleted"}


# ── Videos ──

@router.get("/courses/{course_id}/videos")
async def list_videos(course_id: str, container: ServiceContainer = Depends(get_container)):
    return {"videos": [v.to_api() for v in container.courses.get_course_videos(course_id)]}


@router.post("/courses/{course_id}/videos", status_code=201)
async def add_video(course_id: str, payload: Dict[str, Any] = Body(...), container: ServiceContainer = Depends(get_container)):
    video = container.courses.add_video(course_id, payload)
    return {"success": True, "video": video.to_api()}


@router.put("/courses/{course_id}/videos")
async def replace_videos(course_id: str, payload: List[Dict[str, Any]] = Body(...), container: ServiceContainer = Depends(get_container)):
    """Replace the whole video list; readers see the old list until the new one is complete"""
    videos = container.courses.replace_course_videos(course_id, payload)
    return {"success": True, "videos": [v.to_api() for v in videos]}


@router.patch("/videos/{video_id}")
async def update_video(video_id: str, payload: Dict[str, Any] = Body(...), container: ServiceContainer = Depends(get_container)):
    video = container.courses.update_video(video_id, payload)
    return {"success": True, "video": video.to_api()}


@router.delete("/videos/{video_id}")
async def delete_video(video_id: str, container: ServiceContainer = Depends(get_container)):
    container.courses.delete_video(video_id)
    return {"success": True}


# ── Notes ──

@router.get("/courses/{course_id}/notes")
async def list_notes(course_id: str, container: ServiceContainer = Depends(get_container)):
    return {"notes": [n.to_api() for n in container.courses.get_course_notes(course_id)]}


@router.post("/courses/{course_id}/notes", status_code=201)
async def add_note(course_id: str, payload: Dict[str, Any] = Body(...), container: ServiceContainer = Depends(get_container)):
    note = container.courses.add_note(course_id, payload)
    return {"success": True, "note": note.to_api()}


@router.post("/courses/{course_id}/notes/upload", status_code=201)
async def upload_note(
    course_id: str,
    title: str = Form(...),
    description: str = Form(""),
    file: UploadFile = File(...),
    container: ServiceContainer = Depends(get_container),
):
    """Upload a note document to object storage and attach it to the course"""
    if container.storage is None:
        raise CollaboratorError("Object storage is not configured", error_code="STORAGE_UNAVAILABLE")

    ext = os.path.splitext(file.filename or "")[1].lower().lstrip(".")
    file_type = "doc" if ext == "docx" else ext
    if file_type not in {t.value for t in NoteFileType}:
        raise ValidationError(
            f"Unsupported file type: {ext or 'none'}. Allowed: pdf, doc, docx, txt",
            error_code="UNSUPPORTED_FILE_TYPE",
        )

    data = await file.read()
    if not data:
        raise ValidationError("Uploaded file is empty", error_code="EMPTY_FILE")
    if len(data) > MAX_NOTE_BYTES:
        raise ValidationError("File exceeds the 20 MB limit", error_code="FILE_TOO_LARGE")

    # Confirms the course exists before anything is uploaded
    container.courses.get_course(course_id)
    key = build_note_key(course_id, file.filename)
    url = await container.storage.upload_async(data, key, content_type=get_content_type(file.filename))
    note = container.courses.add_note(course_id, {
        "title": title,
        "description": description,
        "file_url": url,
        "file_type": file_type,
    })
    logger.info(f"Uploaded note '{title}' for course {course_id} to {key}")
    return {"success": True, "note": note.to_api()}


@router.put("/courses/{course_id}/notes")
async def replace_notes(course_id: str, payload: List[Dict[str, Any]] = Body(...), container: ServiceContainer = Depends(get_container)):
    notes = container.courses.replace_course_notes(course_id, payload)
    return {"success": True, "notes": [n.to_api() for n in notes]}


@router.patch("/notes/{note_id}")
async def update_note(note_id: str, payload: Dict[str, Any] = Body(...), container: ServiceContainer = Depends(get_container)):
    note = container.courses.update_note(note_id, payload)
    return {"success": True, "note": note.to_api()}


@router.delete("/notes/{note_id}")
async def delete_note(note_id: str, container: ServiceContainer = Depends(get_container)):
    note = container.courses.delete_note(note_id)
    key = container.storage.object_key(note.file_url) if container.storage is not None else None
    if key and not await container.storage.delete_async(key):
        logger.warning(f"Note {note_id} deleted but its file {key} is still in storage")
    return {"success": True}


# ── Quizzes ──

@router.get("/courses/{course_id}/quizzes")
async def list_quizzes(course_id: str, container: ServiceContainer = Depends(get_container)):
    return {"quizzes": [q.to_api() for q in container.courses.get_course_quizzes(course_id)]}


@router.get("/quizzes/{quiz_id}")
async def get_quiz(quiz_id: str, container: ServiceContainer = Depends(get_container)):
    return {"quiz": container.courses.get_quiz(quiz_id).to_api()}


@router.post("/quizzes/{quiz_id}/submit")
async def submit_quiz(quiz_id: str, request: QuizSubmission, container: ServiceContainer = Depends(get_container)):
    return container.learning.submit_quiz(request.user_id, quiz_id, request.answers)


@router.get("/quizzes/{quiz_id}/attempts")
async def quiz_attempts(quiz_id: str, user_id: str, container: ServiceContainer = Depends(get_container)):
    attempts = container.learning.get_quiz_attempts(user_id, quiz_id)
    return {"attempts": [a.to_api() for a in attempts]}


# ── Enrollment and progress ──

@router.post("/enrollments", status_code=201)
async def enroll(request: EnrollRequest, container: ServiceContainer = Depends(get_container)):
    enrollment = container.learning.enroll(request.user_id, request.course_id)
    return {"success": True, "enrollment": enrollment.to_api()}


@router.get("/users/{user_id}/enrollments")
async def list_enrollments(user_id: str, container: ServiceContainer = Depends(get_container)):
    enrollments = container.learning.get_enrollments(user_id)
    return {"enrollments": [e.to_api() for e in enrollments]}


@router.get("/courses/{course_id}/progress")
async def get_progress(course_id: str, user_id: str, container: ServiceContainer = Depends(get_container)):
    return {"progress": container.learning.get_progress(user_id, course_id).to_api()}


@router.post("/courses/{course_id}/videos/completed")
async def mark_video_completed(course_id: str, request: VideoCompletedRequest, container: ServiceContainer = Depends(get_container)):
    progress = container.learning.mark_video_completed(request.user_id, course_id, request.video_id)
    return {"success": True, "progress": progress.to_api()}


# ── Certificates ──

@router.post("/certificates", status_code=201)
async def generate_certificate(request: CertificateRequest, container: ServiceContainer = Depends(get_container)):
    certificate = container.learning.generate_certificate(request.user_id, request.course_id)
    return {"success": True, "certificate": certificate}


@router.get("/users/{user_id}/certificates")
async def list_certificates(user_id: str, container: ServiceContainer = Depends(get_container)):
    return {"certificates": [c.to_api() for c in container.learning.list_certificates(user_id)]}


@router.get("/users/{user_id}/certificates/{course_id}")
async def get_certificate(user_id: str, course_id: str, container: ServiceContainer = Depends(get_container)):
    return {"certificate": container.learning.get_certificate(user_id, course_id)}


# ── Users ──

@router.get("/users")
async def list_users(container: ServiceContainer = Depends(get_container)):
    return {"users": container.learning.list_profiles()}


@router.get("/users/{user_id}")
async def get_user(user_id: str, container: ServiceContainer = Depends(get_container)):
    return container.learning.get_user_details(user_id)


# ── Chat ──

@router.post("/chat/sessions", status_code=201)
async def create_chat_session(container: ServiceContainer = Depends(get_container)):
    return container.chat.create_session().to_api()


@router.get("/chat/sessions/{session_id}")
async def get_chat_session(session_id: str, container: ServiceContainer = Depends(get_container)):
    return container.chat.get_session(session_id).to_api()


@router.post("/chat/sessions/{session_id}/messages")
async def send_chat_message(session_id: str, request: ChatRequest, container: ServiceContainer = Depends(get_container)):
    return await container.chat.send_message(session_id, request.content)


@router.delete("/chat/sessions/{session_id}/messages")
async def clear_chat(session_id: str, container: ServiceContainer = Depends(get_container)):
    return container.chat.clear_session(session_id)


# ── Auth and profiles ──

def _auth(container: ServiceContainer) -> AuthService:
    if container.auth is None:
        raise CollaboratorError("Authentication is not configured", error_code="AUTH_UNAVAILABLE")
    return container.auth


@router.post("/auth/sign-up", status_code=201)
async def sign_up(request: SignUpRequest, container: ServiceContainer = Depends(get_container)):
    return _auth(container).sign_up(request.name, request.email, request.password, request.role)


@router.post("/auth/sign-in")
async def sign_in(request: SignInRequest, container: ServiceContainer = Depends(get_container)):
    return _auth(container).sign_in(request.email, request.password)


@router.post("/auth/sign-out")
async def sign_out(container: ServiceContainer = Depends(get_container)):
    _auth(container).sign_out()
    return {"success": True}


@router.post("/auth/resend-confirmation")
async def resend_confirmation(request: EmailRequest, container: ServiceContainer = Depends(get_container)):
    _auth(container).resend_confirmation(request.email)
    return {"success": True, "message": "Confirmation email sent"}


@router.get("/profiles/{user_id}")
async def get_profile(user_id: str, container: ServiceContainer = Depends(get_container)):
    return {"profile": _auth(container).get_profile(user_id).to_api()}


@router.patch("/profiles/{user_id}")
async def update_profile(user_id: str, payload: Dict[str, Any] = Body(...), container: ServiceContainer = Depends(get_container)):
    profile = _auth(container).update_profile(user_id, payload)
    return {"success": True, "profile": profile.to_api()}
