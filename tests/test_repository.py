from utils.repository import InMemoryRepository


def test_instances_do_not_share_state():
    first = InMemoryRepository()
    second = InMemoryRepository()
    first.insert("courses", {"title": "A"})
    assert second.count("courses") == 0


def test_rows_are_copies():
    repo = InMemoryRepository()
    row = repo.insert("videos", {"course_id": "c", "title": "V", "order_num": 1})
    row["title"] = "changed"
    assert repo.get("videos", {"id": row["id"]})["title"] == "V"


def test_ordering_puts_missing_values_last():
    repo = InMemoryRepository(seed={"videos": [
        {"title": "b", "order_num": 2},
        {"title": "none"},
        {"title": "a", "order_num": 1},
    ]})
    assert [r["title"] for r in repo.select("videos", order_by="order_num")] == ["a", "b", "none"]


def test_upsert_on_composite_key():
    repo = InMemoryRepository()
    repo.upsert("certificates", {"user_id": "u", "course_id": "c", "v": 1}, on_conflict="user_id,course_id")
    repo.upsert("certificates", {"user_id": "u", "course_id": "c", "v": 2}, on_conflict="user_id,course_id")
    rows = repo.select("certificates")
    assert len(rows) == 1 and rows[0]["v"] == 2


def test_reset_and_delete():
    repo = InMemoryRepository(seed={"courses": [{"title": "A"}, {"title": "B"}]})
    assert repo.delete("courses", {"title": "A"}) == 1
    repo.reset()
    assert repo.count("courses") == 0
