import pytest

from services.course_service import CourseService, current_revision_rows
from tests.fakes import FailingTableRepository, seed_course, seed_quiz, seed_video
from utils.exceptions import NotFoundError, StorageError, ValidationError


def test_add_course_applies_defaults(repository):
    service = CourseService(repository)

    course = service.add_course({"title": "Docker Basics", "category": "DevOps", "level": "beginner"})

    assert course.id
    assert course.enrolled_count == 0
    assert course.rating == 0
    assert course.featured is False
    api = course.to_api()
    assert api["enrolledCount"] == 0
    assert "enrolled_count" not in api


def test_add_course_accepts_camel_case_and_rejects_bad_level(repository):
    service = CourseService(repository)

    course = service.add_course({"title": "Go", "enrolledCount": 12})
    assert course.enrolled_count == 12

    with pytest.raises(ValidationError) as exc:
        service.add_course({"title": "Go", "level": "expert"})
    assert exc.value.error_code == "INVALID_FIELD"


def test_update_course_is_partial(repository):
    service = CourseService(repository)
    created = service.add_course({"title": "Old", "description": "Keep me"})

    updated = service.update_course(created.id, {"title": "New", "featured": True})

    assert updated.title == "New"
    assert updated.description == "Keep me"
    assert updated.featured is True


def test_list_featured_courses(repository):
    service = CourseService(repository)
    service.add_course({"title": "A", "featured": True})
    service.add_course({"title": "B"})

    assert [c.title for c in service.list_courses(featured_only=True)] == ["A"]
    assert len(service.list_courses()) == 2


def test_delete_course_cascades(repository):
    course = seed_course(repository)
    seed_video(repository, course["id"])
    seed_quiz(repository, course["id"])
    repository.insert("notes", {"course_id": course["id"], "title": "Guide", "order_num": 1})
    service = CourseService(repository)

    service.delete_course(course["id"])

    for table in ("videos", "notes", "quizzes"):
        assert repository.count(table, {"course_id": course["id"]}) == 0
    with pytest.raises(NotFoundError):
        service.get_course(course["id"])


def test_add_video_appends_order(repository):
    course = seed_course(repository)
    seed_video(repository, course["id"], order_num=1)
    service = CourseService(repository)

    video = service.add_video(course["id"], {"title": "Second", "url": "https://example.com/v.mp4"})

    assert video.order_num == 2
    assert video.to_api()["order"] == 2


def test_replace_course_videos_is_staged(repository):
    course = seed_course(repository)
    seed_video(repository, course["id"], title="Old 1", order_num=1)
    seed_video(repository, course["id"], title="Old 2", order_num=2)
    service = CourseService(repository)

    videos = service.replace_course_videos(course["id"], [{"title": "New 1"}, {"title": "New 2"}, {"title": "New 3"}])

    assert [v.title for v in videos] == ["New 1", "New 2", "New 3"]
    assert [v.order_num for v in videos] == [1, 2, 3]
    stored = repository.select("videos", {"course_id": course["id"]})
    assert {row["title"] for row in stored} == {"New 1", "New 2", "New 3"}
    pointer = repository.get("courses", {"id": course["id"]})["video_revision"]
    assert pointer and all(row["revision"] == pointer for row in stored)


def test_failed_replace_leaves_old_videos_visible(repository):
    course = seed_course(repository)
    seed_video(repository, course["id"], title="Old", order_num=1)
    failing = FailingTableRepository({"videos"}, seed={
        "courses": repository.select("courses"),
        "videos": repository.select("videos"),
    })
    service = CourseService(failing)

    with pytest.raises(StorageError):
        service.replace_course_videos(course["id"], [{"title": "New"}])

    assert [v.title for v in service.get_course_videos(course["id"])] == ["Old"]


def test_readers_only_see_current_revision():
    course_row = {"id": "c1", "video_revision": "r2"}
    rows = [
        {"id": "1", "revision": "r1"},
        {"id": "2", "revision": "r2"},
        {"id": "3", "revision": None},
    ]
    assert [r["id"] for r in current_revision_rows(rows, course_row)] == ["2"]
    assert [r["id"] for r in current_revision_rows(rows, {"id": "c1"})] == ["3"]


def test_replace_course_notes(repository):
    course = seed_course(repository)
    repository.insert("notes", {"course_id": course["id"], "title": "Old notes", "order_num": 1})
    service = CourseService(repository)

    notes = service.replace_course_notes(course["id"], [{"title": "Cheat sheet", "fileType": "txt"}])

    assert [n.title for n in notes] == ["Cheat sheet"]
    assert notes[0].file_type.value == "txt"
    assert repository.count("notes", {"course_id": course["id"]}) == 1


def test_quizzes_round_trip_through_camel_case(repository):
    course = seed_course(repository)
    quiz = seed_quiz(repository, course["id"], correct=(2,))
    service = CourseService(repository)

    loaded = service.get_quiz(quiz["id"])

    assert loaded.questions[0].correct_answer == 2
    assert loaded.to_api()["questions"][0]["correctAnswer"] == 2
    assert [q.id for q in service.get_course_quizzes(course["id"])] == [quiz["id"]]
