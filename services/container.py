"""
Wires settings, collaborators and services together. The app holds one
container on `app.state.container`; tests build their own with an
InMemoryRepository and fake collaborators.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from fastapi import Request

from services.auth_service import AuthService
from services.chat_service import ChatService, ChatSessionStore
from services.course_generation_service import CourseGenerationService
from services.course_service import CourseService
from services.enrichment_service import EnrichmentService
from services.learning_service import LearningService
from utils.file_storage import PipelineRunLog
from utils.repository import Repository
from utils.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    repository: Repository
    courses: CourseService
    learning: LearningService
    enrichment: EnrichmentService
    generation: CourseGenerationService
    chat: ChatService
    auth: Optional[AuthService] = None
    storage: Any = None
    run_log: Optional[PipelineRunLog] = None


def build_container(
    settings: Settings,
    repository: Repository,
    text_generator=None,
    video_client=None,
    storage=None,
    auth_client=None,
    run_log: Optional[PipelineRunLog] = None,
) -> ServiceContainer:
    """Assemble every service around the given collaborators"""
    if run_log is None and settings.pipeline_log_file:
        run_log = PipelineRunLog(Path(settings.pipeline_log_file))

    return ServiceContainer(
        settings=settings,
        repository=repository,
        courses=CourseService(repository),
        learning=LearningService(repository, run_log=run_log),
        enrichment=EnrichmentService(repository, settings, text_generator, video_client, run_log=run_log),
        generation=CourseGenerationService(repository, settings, text_generator, video_client, run_log=run_log),
        chat=ChatService(
            text_generator=text_generator,
            video_client=video_client,
            sessions=ChatSessionStore(),
            history_window=settings.chat_history_window,
        ),
        auth=AuthService(auth_client, repository) if auth_client is not None else None,
        storage=storage,
        run_log=run_log,
    )


def build_default_container(settings: Settings) -> ServiceContainer:
    """Production wiring: Supabase, the configured text-generation provider, YouTube and S3"""
    from clients.s3_client import ObjectStorage
    from clients.supabase_client import SupabaseRepository, get_supabase
    from clients.text_generation_client import TextGenerationClient
    from clients.youtube_client import YouTubeClient

    client = get_supabase(settings)
    logger.info(f"Building services with model {settings.text_generation_model}")
    return build_container(
        settings,
        SupabaseRepository(client),
        text_generator=TextGenerationClient(settings),
        video_client=YouTubeClient(settings.youtube_api_key, timeout=settings.http_timeout_seconds),
        storage=ObjectStorage(settings.s3_bucket_name, region=settings.aws_region) if settings.s3_bucket_name else None,
        auth_client=client.auth,
        run_log=PipelineRunLog(settings.pipeline_log_file),
    )


def get_container(request: Request) -> ServiceContainer:
    """FastAPI dependency"""
    return request.app.state.container
