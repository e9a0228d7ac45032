import pytest

from services import media_catalog
from services.enrichment_service import EnrichmentService, valid_questions
from models.course_models import GeneratedQuestion
from tests.fakes import (
    FailingTableRepository, FakeTextGenerator, FakeVideoClient, make_candidate, seed_course, seed_video,
)
from utils.exceptions import NotFoundError, ValidationError

LONG_TRANSCRIPT = "In this lecture we walk through Python variables, types and control flow. " * 6


def _analysis(questions=None):
    return {
        "summary": "Variables and types in Python.",
        "questions": questions if questions is not None else [
            {"question": "What is a variable?", "options": ["A name", "A loop", "A file", "A class"], "correctAnswer": 0},
        ],
        "keywords": ["Python", "Variables"],
    }


@pytest.mark.asyncio
async def test_all_collaborators_down_still_enriches_with_templates(repository, settings, run_log, failing_generator, failing_video_client):
    course = seed_course(repository, title="Intro to Python", category="Programming")
    video = seed_video(repository, course["id"], title="Getting Started")
    service = EnrichmentService(repository, settings, failing_generator, failing_video_client, run_log=run_log)

    result = await service.process_video(video["id"], course["id"])

    assert result.success is True
    assert result.status == "success"
    assert "Intro to Python" in result.transcript
    assert len(result.questions) >= 1
    assert result.thumbnail in media_catalog.MEDIA_BUCKETS["python"]["thumbnails"]
    assert result.sources["transcript"] == "template"
    assert result.sources["analysis"] == "template"

    stored = repository.get("videos", {"id": video["id"]})
    assert stored["url"] == result.video_url
    assert stored["analyzed_content"]["transcript"] == result.transcript
    assert stored["download_info"]["url"] == result.video_url


@pytest.mark.asyncio
async def test_generated_questions_are_well_formed(repository, settings, failing_generator):
    course = seed_course(repository)
    video = seed_video(repository, course["id"])
    service = EnrichmentService(repository, settings, failing_generator, None)

    result = await service.process_video(video["id"], course["id"])

    assert result.questions
    for question in result.questions:
        assert len(question.options) == 4
        assert 0 <= question.correct_answer <= 3


@pytest.mark.asyncio
async def test_rerun_keeps_result_shape(repository, settings, failing_generator):
    course = seed_course(repository)
    video = seed_video(repository, course["id"])
    service = EnrichmentService(repository, settings, failing_generator, None)

    first = (await service.process_video(video["id"], course["id"])).to_api()
    second = (await service.process_video(video["id"], course["id"])).to_api()

    assert set(first) == set(second)
    assert set(first["analyzedContent"]) == set(second["analyzedContent"])
    # The course quiz is only created once
    assert repository.count("quizzes", {"course_id": course["id"]}) == 1


@pytest.mark.asyncio
async def test_fallback_selection_is_deterministic(repository, settings):
    course = seed_course(repository, title="Modern Frontend", category="Web Development")
    video = seed_video(repository, course["id"], title="React Hooks Deep Dive")
    service = EnrichmentService(repository, settings, None, None)

    first = await service.process_video(video["id"], course["id"])
    second = await service.process_video(video["id"], course["id"])

    assert first.video_url == second.video_url
    assert first.thumbnail == second.thumbnail
    assert first.video_url in media_catalog.MEDIA_BUCKETS["react"]["videos"]


@pytest.mark.asyncio
async def test_uses_generated_content_when_available(repository, settings):
    course = seed_course(repository)
    video = seed_video(repository, course["id"], title="Variables")

    def _text(prompt):
        if "Recommend one real" in prompt:
            return "Try this one: https://youtu.be/abcdefghijk it is great"
        return LONG_TRANSCRIPT

    generator = FakeTextGenerator(text=_text, structured={"ContentAnalysis": _analysis()})
    service = EnrichmentService(repository, settings, generator, FakeVideoClient(transcript=None))

    result = await service.process_video(video["id"], course["id"])

    assert result.video_url == "https://www.youtube.com/watch?v=abcdefghijk"
    assert result.sources["video"] == "generated"
    assert result.sources["transcript"] == "generated"
    assert result.sources["analysis"] == "generated"
    assert result.summary == "Variables and types in Python."
    assert result.keywords == ["Python", "Variables"]
    assert result.download_info["videoId"] == "abcdefghijk"


@pytest.mark.asyncio
async def test_search_tier_and_captions(repository, settings, failing_generator):
    course = seed_course(repository, title="Cooking Basics", category="Lifestyle")
    video = seed_video(repository, course["id"], title="Knife Skills")
    client = FakeVideoClient(candidates=[make_candidate("zyxwvutsrqp")], transcript=LONG_TRANSCRIPT)
    service = EnrichmentService(repository, settings, failing_generator, client)

    result = await service.process_video(video["id"], course["id"])

    assert client.searches == ["Cooking Basics Knife Skills"]
    assert result.sources["video"] == "search"
    assert result.sources["transcript"] == "captions"
    # No catalog keyword, so the platform thumbnail is used
    assert result.thumbnail == "https://i.ytimg.com/vi/zyxwvutsrqp/hqdefault.jpg"
    assert repository.get("videos", {"id": video["id"]})["duration"] == "12:34"


@pytest.mark.asyncio
async def test_short_captions_fall_through(repository, settings, failing_generator):
    course = seed_course(repository)
    video = seed_video(repository, course["id"])
    client = FakeVideoClient(candidates=[make_candidate()], transcript="too short")
    service = EnrichmentService(repository, settings, failing_generator, client)

    result = await service.process_video(video["id"], course["id"])

    assert result.sources["transcript"] == "template"


@pytest.mark.asyncio
async def test_invalid_generated_questions_fall_back_to_template(repository, settings):
    course = seed_course(repository)
    video = seed_video(repository, course["id"])
    bad = [{"question": "Pick one", "options": ["A", "B"], "correctAnswer": 5}]
    generator = FakeTextGenerator(text=LONG_TRANSCRIPT, structured={"ContentAnalysis": _analysis(bad)})
    service = EnrichmentService(repository, settings, generator, None)

    result = await service.process_video(video["id"], course["id"])

    assert result.sources["analysis"] == "template"
    assert len(result.questions) == 3


@pytest.mark.asyncio
async def test_quiz_insert_failure_is_reported_not_raised(settings, run_log, failing_generator):
    repository = FailingTableRepository({"quizzes"})
    course = seed_course(repository)
    video = seed_video(repository, course["id"])
    service = EnrichmentService(repository, settings, failing_generator, None, run_log=run_log)

    result = await service.process_video(video["id"], course["id"])

    assert result.success is True
    assert result.warnings and "Quiz could not be created" in result.warnings[0]
    assert repository.get("videos", {"id": video["id"]})["analyzed_content"]
    failed = run_log.failed_writes()
    assert len(failed) == 1
    assert failed[0]["table"] == "quizzes"


@pytest.mark.asyncio
async def test_missing_ids_rejected(repository, settings):
    service = EnrichmentService(repository, settings)
    with pytest.raises(ValidationError) as exc:
        await service.process_video("", None)
    assert exc.value.message == "Missing videoId or courseId"


@pytest.mark.asyncio
async def test_unknown_video_and_mismatched_course(repository, settings):
    course = seed_course(repository)
    other = seed_course(repository, title="Other Course")
    video = seed_video(repository, other["id"])
    service = EnrichmentService(repository, settings)

    with pytest.raises(NotFoundError):
        await service.process_video("missing", course["id"])
    with pytest.raises(ValidationError) as exc:
        await service.process_video(video["id"], course["id"])
    assert exc.value.error_code == "COURSE_MISMATCH"


@pytest.mark.asyncio
async def test_course_without_category_rejected(repository, settings):
    course = seed_course(repository, category="")
    video = seed_video(repository, course["id"])
    service = EnrichmentService(repository, settings)

    with pytest.raises(ValidationError) as exc:
        await service.process_video(video["id"], course["id"])
    assert exc.value.error_code == "INCOMPLETE_COURSE"


@pytest.mark.asyncio
async def test_enrich_course_only_processes_missing(repository, settings, failing_generator):
    course = seed_course(repository)
    seed_video(repository, course["id"], title="One", order_num=1)
    seed_video(repository, course["id"], title="Two", order_num=2, analyzed_content={"summary": "done"})
    service = EnrichmentService(repository, settings, failing_generator, None)

    summary = await service.enrich_course(course["id"])

    assert summary["processed"] == 1
    assert summary["failed"] == 0
    assert summary["results"][0]["title"] == "One"


def test_valid_questions_filters_bad_shapes():
    candidates = [
        GeneratedQuestion(question="Good?", options=["a", "b", "c", "d"], correctAnswer=3),
        GeneratedQuestion(question="Three options?", options=["a", "b", "c"], correctAnswer=0),
        GeneratedQuestion(question="Out of range?", options=["a", "b", "c", "d"], correctAnswer=4),
    ]
    kept = valid_questions(candidates)
    assert [q.text for q in kept] == ["Good?"]
    assert kept[0].id
