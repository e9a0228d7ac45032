import dataclasses
import random

import pytest

from services import content_templates, media_catalog
from services.course_generation_service import CourseGenerationService, parse_course_details_text
from tests.fakes import FailingTableRepository, FakeTextGenerator, FakeVideoClient, make_candidate, seed_course
from utils.exceptions import ValidationError


def _generated_course(title):
    return {
        "title": title,
        "description": "A generated course.",
        "level": "Beginner friendly",
        "instructor": "Ada Lovelace",
        "duration": "6 weeks",
        "videos": [
            {"title": "Lesson One", "description": "First"},
            {"title": "Lesson Two", "description": "Second"},
        ],
    }


# ── generate-course-details ──

@pytest.mark.asyncio
async def test_course_details_from_structured_output(repository, settings):
    generator = FakeTextGenerator(structured={"GeneratedCourseDetails": {
        "description": "All about Rust.",
        "category": "Programming",
        "duration": "10 weeks",
        "level": "Advanced",
        "instructor": "Grace Hopper",
        "videos": ["Ownership", "Borrowing", "Lifetimes"],
    }})
    service = CourseGenerationService(repository, settings, generator)

    details = await service.generate_course_details("Rust for Systems")

    assert details["level"] == "advanced"
    assert details["videos"] == ["Ownership", "Borrowing", "Lifetimes"]


@pytest.mark.asyncio
async def test_course_details_from_text_when_structured_fails(repository, settings):
    text = (
        "Description: A tour of Go.\n"
        "Category: Programming\n"
        "Duration: 4 weeks\n"
        "Level: beginner level\n"
        "Instructor: Rob Pike\n"
        "Video 1: Goroutines\n"
    )
    generator = FakeTextGenerator(text=text)
    service = CourseGenerationService(repository, settings, generator)

    details = await service.generate_course_details("Go Basics")

    assert details["description"] == "A tour of Go."
    assert details["level"] == "beginner"
    assert details["instructor"] == "Rob Pike"
    assert details["videos"] == ["Goroutines"]


@pytest.mark.asyncio
async def test_course_details_template_when_generation_down(repository, settings, failing_generator):
    service = CourseGenerationService(repository, settings, failing_generator)

    details = await service.generate_course_details("Kotlin")

    assert details == content_templates.fallback_course_details("Kotlin")
    assert details["description"] == "Learn everything about Kotlin with this comprehensive course."


@pytest.mark.asyncio
async def test_course_details_requires_title(repository, settings):
    service = CourseGenerationService(repository, settings)
    with pytest.raises(ValidationError) as exc:
        await service.generate_course_details("   ")
    assert exc.value.message == "Title is required"


def test_parse_course_details_text_needs_description_and_category():
    assert parse_course_details_text("Duration: 3 weeks", "X") is None
    parsed = parse_course_details_text("description: d\ncategory: c\nlevel: ADVANCED", "X")
    assert parsed["level"] == "advanced"
    assert parsed["videos"] == ["Introduction to X", "X Advanced Techniques", "X Projects"]


# ── populate-courses ──

@pytest.mark.asyncio
async def test_populate_inserts_courses_videos_and_notes(repository, settings):
    service = CourseGenerationService(repository, settings, None, None, rng=random.Random(7))
    progress = []

    result = await service.populate_courses(3, on_progress=progress.append)

    assert result == {"success": True, "message": "Successfully generated 3 courses", "count": 3}
    assert progress == [1, 2, 3]
    courses = repository.select("courses")
    assert len({c["category"] for c in courses}) == 3
    for course in courses:
        videos = repository.select("videos", {"course_id": course["id"]}, order_by="order_num")
        assert [v["order_num"] for v in videos] == [1, 2, 3]
        assert all(v["url"] for v in videos)
        notes = repository.select("notes", {"course_id": course["id"]})
        assert len(notes) == 1
        assert notes[0]["file_url"] == content_templates.STUDY_GUIDE_URL


@pytest.mark.asyncio
async def test_populate_skips_existing_titles_case_insensitively(repository, settings):
    seed_course(repository, title="PYTHON MASTERY")
    generator = FakeTextGenerator(structured={"GeneratedCourse": _generated_course("Python Mastery")})
    service = CourseGenerationService(repository, settings, generator, rng=random.Random(1))

    result = await service.populate_courses(3)

    assert result["count"] == 0
    assert repository.count("courses") == 1


@pytest.mark.asyncio
async def test_populate_never_inserts_duplicate_titles(repository, settings):
    generator = FakeTextGenerator(structured={"GeneratedCourse": _generated_course("Python Mastery")})
    service = CourseGenerationService(
        repository, dataclasses.replace(settings, batch_concurrency=3), generator, rng=random.Random(3),
    )

    result = await service.populate_courses(3)

    assert result["count"] == 1
    titles = [c["title"].lower() for c in repository.select("courses")]
    assert titles == ["python mastery"]


@pytest.mark.asyncio
async def test_populate_uses_search_results_when_available(repository, settings):
    generator = FakeTextGenerator(structured={"GeneratedCourse": _generated_course("Searchable Course")})
    client = FakeVideoClient(candidates=[make_candidate("aaaaaaaaaaa"), make_candidate("bbbbbbbbbbb")])
    service = CourseGenerationService(repository, settings, generator, client, rng=random.Random(5))

    await service.populate_courses(1)

    course = repository.select("courses")[0]
    assert course["level"] == "beginner"
    videos = repository.select("videos", {"course_id": course["id"]}, order_by="order_num")
    assert [v["url"] for v in videos] == [
        "https://www.youtube.com/watch?v=aaaaaaaaaaa",
        "https://www.youtube.com/watch?v=bbbbbbbbbbb",
    ]
    assert videos[0]["duration"] == "12:34"


@pytest.mark.asyncio
async def test_populate_with_specific_topic(repository, settings, failing_generator, failing_video_client):
    service = CourseGenerationService(repository, settings, failing_generator, failing_video_client, rng=random.Random(2))

    result = await service.populate_courses(2, specific_topic="graph theory")

    # Both picks produce the same template title, so the second is skipped
    assert result["count"] == 1
    course = repository.select("courses")[0]
    assert course["title"] == "Graph Theory Essentials"
    videos = repository.select("videos", {"course_id": course["id"]})
    assert all(v["url"] in media_catalog.MEDIA_BUCKETS["default"]["videos"] for v in videos)


@pytest.mark.asyncio
async def test_populate_removes_course_when_children_fail(settings):
    repository = FailingTableRepository({"videos"})
    service = CourseGenerationService(repository, settings, rng=random.Random(4))

    result = await service.populate_courses(2)

    assert result["count"] == 0
    assert repository.count("courses") == 0


@pytest.mark.asyncio
async def test_populate_cleanup_continues_past_failed_child_delete(settings, run_log):
    repository = FailingTableRepository({"notes"}, failing_deletes={"videos"})
    service = CourseGenerationService(repository, settings, rng=random.Random(4), run_log=run_log)

    result = await service.populate_courses(1)

    assert result["count"] == 0
    assert repository.count("courses") == 0
    failed = run_log.failed_writes()
    assert [(f["table"], f["operation"]) for f in failed] == [("videos", "delete")]


@pytest.mark.asyncio
async def test_populate_clear_existing(repository, settings):
    old = seed_course(repository, title="Old Course")
    repository.insert("videos", {"course_id": old["id"], "title": "Old", "order_num": 1})
    service = CourseGenerationService(repository, settings, rng=random.Random(9))

    await service.populate_courses(1, clear_existing=True)

    assert repository.get("courses", {"id": old["id"]}) is None
    assert repository.count("videos", {"course_id": old["id"]}) == 0
    assert repository.count("courses") == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [0, 16])
async def test_populate_rejects_out_of_range_count(repository, settings, count):
    service = CourseGenerationService(repository, settings)
    with pytest.raises(ValidationError):
        await service.populate_courses(count)
