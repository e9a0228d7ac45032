"""Pytest configuration and shared fixtures."""

import pytest

from tests.fakes import FakeTextGenerator, FakeVideoClient
from utils.file_storage import PipelineRunLog
from utils.repository import InMemoryRepository
from utils.settings import Settings


@pytest.fixture()
def settings() -> Settings:
    return Settings(
        supabase_url="https://project.supabase.co",
        supabase_key="service-key",
        openai_api_key="sk-test",
        youtube_api_key="yt-test",
        generation_max_retries=1,
    )


@pytest.fixture()
def repository():
    repo = InMemoryRepository()
    try:
        yield repo
    finally:
        repo.reset()


@pytest.fixture()
def run_log(tmp_path) -> PipelineRunLog:
    return PipelineRunLog(tmp_path / "pipeline_run_log.json")


@pytest.fixture()
def failing_generator() -> FakeTextGenerator:
    return FakeTextGenerator(fail=True)


@pytest.fixture()
def failing_video_client() -> FakeVideoClient:
    return FakeVideoClient(fail=True)
