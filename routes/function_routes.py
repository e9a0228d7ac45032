"""
Serverless-style function endpoints.

Every function catches its own errors and answers with a JSON body
({"success": false, "message": ...}) carrying the error's status code, so
callers never see an unstructured failure.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from models.course_models import (
    AskVideoRequest, CheckApiKeysRequest, CourseDetailsRequest, PopulateCoursesRequest,
    ProcessCourseVideosRequest, ProcessVideoRequest, TextGenerationRequest,
)
from services.container import ServiceContainer, get_container
from utils.exceptions import TechLearnError

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/functions/v1", tags=["functions"])


def _error_response(exc: Exception, function: str, process_style: bool = False) -> JSONResponse:
    if isinstance(exc, TechLearnError):
        status_code, error_code, message = exc.status_code, exc.error_code, exc.message
        logger.error(f"{function} failed [{error_code}]: {message}")
    else:
        status_code, error_code, message = 500, "INTERNAL_ERROR", str(exc) or "Unexpected error"
        logger.exception(f"{function} failed unexpectedly: {exc}")

    body = {"success": False, "error": error_code, "message": message}
    if process_style:
        body["status"] = "error"
    return JSONResponse(status_code=status_code, content=body)


async def _run(function: str, call: Callable[[], Awaitable[Any]], process_style: bool = False):
    try:
        return await call()
    except Exception as e:
        return _error_response(e, function, process_style)


# ── Content enrichment ──

@router.post("/process-video")
async def process_video(request: ProcessVideoRequest, container: ServiceContainer = Depends(get_container)):
    """
    Pick a video, thumbnail and transcript for a lesson, analyse it and
    store the result on the video row.
    """
    async def _call():
        result = await container.enrichment.process_video(request.video_id, request.course_id)
        return result.to_api()

    return await _run("process-video", _call, process_style=True)


@router.post("/process-course-videos")
async def process_course_videos(request: ProcessCourseVideosRequest, container: ServiceContainer = Depends(get_container)):
    """Run process-video over a course's videos (only unprocessed ones by default)"""
    async def _call():
        return await container.enrichment.enrich_course(request.course_id, only_missing=request.only_missing)

    return await _run("process-course-videos", _call)


# ── Course generation ──

@router.post("/generate-course-details")
async def generate_course_details(request: CourseDetailsRequest, container: ServiceContainer = Depends(get_container)):
    async def _call():
        details = await container.generation.generate_course_details(request.title)
        return {"success": True, "courseDetails": details}

    return await _run("generate-course-details", _call)


@router.post("/populate-courses")
async def populate_courses(request: PopulateCoursesRequest, container: ServiceContainer = Depends(get_container)):
    async def _call():
        return await container.generation.populate_courses(
            request.count,
            clear_existing=request.clear_existing,
            specific_topic=request.specific_topic,
        )

    return await _run("populate-courses", _call)


def _sse_event(data: dict) -> str:
    return f"data: {json.dumps(data, default=str)}\n\n"


@router.post("/populate-courses/stream")
async def populate_courses_stream(request: PopulateCoursesRequest, container: ServiceContainer = Depends(get_container)):
    """
    SSE version of populate-courses. Emits:
    - course_created: after each inserted course, with the running count
    - complete: the same body populate-courses returns
    - error: on failure
    """
    queue: "asyncio.Queue[Optional[dict]]" = asyncio.Queue()

    def _on_progress(count: int) -> None:
        queue.put_nowait({"type": "course_created", "count": count, "requested": request.count})

    async def _populate():
        try:
            result = await container.generation.populate_courses(
                request.count,
                clear_existing=request.clear_existing,
                specific_topic=request.specific_topic,
                on_progress=_on_progress,
            )
            queue.put_nowait({"type": "complete", **result})
        except Exception as e:
            logger.error(f"populate-courses stream failed: {e}")
            message = e.message if isinstance(e, TechLearnError) else str(e)
            code = e.error_code if isinstance(e, TechLearnError) else "INTERNAL_ERROR"
            queue.put_nowait({"type": "error", "success": False, "error": code, "message": message})
        finally:
            queue.put_nowait(None)

    async def event_generator():
        task = asyncio.create_task(_populate())
        try:
            while True:
                event = await queue.get()
                if event is None:
                    break
                yield _sse_event(event)
        finally:
            await task

    return StreamingResponse(event_generator(), media_type="text/event-stream")


# ── Learning assistant ──

@router.post("/ask-video-ai")
async def ask_video_ai(request: AskVideoRequest, container: ServiceContainer = Depends(get_container)):
    async def _call():
        answer = await container.chat.ask_video(request.question, request.context, request.video_id)
        return {"success": True, "response": answer}

    return await _run("ask-video-ai", _call)


@router.post("/text-generation")
async def text_generation(request: TextGenerationRequest, container: ServiceContainer = Depends(get_container)):
    async def _call():
        text = await container.chat.generate_text(
            request.prompt,
            context=request.context,
            previous_messages=[turn.model_dump() for turn in request.previous_messages],
            max_tokens=request.max_tokens,
            temperature=request.temperature,
        )
        return {"success": True, "generatedText": text}

    return await _run("text-generation", _call)


@router.post("/check-api-keys")
async def check_api_keys(request: CheckApiKeysRequest, container: ServiceContainer = Depends(get_container)):
    async def _call():
        return await container.chat.check_api_key(request.key_type)

    return await _run("check-api-keys", _call)
