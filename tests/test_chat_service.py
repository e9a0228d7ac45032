import pytest

from services.chat_service import (
    CLEARED_MESSAGE, GREETING, IMAGE_REPLY, ChatService, ChatSession, ChatSessionStore,
)
from tests.fakes import FakeTextGenerator, FakeVideoClient
from utils.exceptions import NotFoundError, ValidationError


@pytest.mark.asyncio
async def test_session_starts_with_greeting_and_ignores_blank_input():
    session = ChatSession("s1", FakeTextGenerator(text="hi"))

    assert [m.content for m in session.messages] == [GREETING]
    assert await session.send("   ") is None
    assert len(session.messages) == 1


@pytest.mark.asyncio
async def test_only_last_five_messages_are_sent_as_history():
    generator = FakeTextGenerator(text="answer")
    session = ChatSession("s1", generator, history_window=5)

    for i in range(4):
        await session.send(f"question {i}")

    last_call = generator.calls[-1]
    assert len(last_call["history"]) == 5
    assert last_call["history"][-1] == {"role": "assistant", "content": "answer"}
    assert last_call["prompt"] == "question 3"
    assert len(session.messages) == 9


@pytest.mark.asyncio
async def test_image_request_returns_description_and_stock_photo():
    generator = FakeTextGenerator(text="A tree with a root node and two children.")
    session = ChatSession("s1", generator)

    reply = await session.send("Show me a diagram of a binary tree")

    assert reply.content.startswith(IMAGE_REPLY)
    assert "root node" in reply.content
    assert reply.image_url == "https://source.unsplash.com/random/800x600/?Show%20me%20a%20diagram%20of%20a%20binary%20tree"


@pytest.mark.asyncio
async def test_generation_error_becomes_assistant_message():
    session = ChatSession("s1", FakeTextGenerator(fail=True))

    reply = await session.send("What is recursion?")

    assert reply.role == "assistant"
    assert reply.content == "Error: Text generation unavailable"
    assert session.is_loading is False


def test_clear_resets_to_single_message():
    session = ChatSession("s1", None)
    session.clear()
    assert [m.content for m in session.messages] == [CLEARED_MESSAGE]


@pytest.mark.asyncio
async def test_service_keeps_sessions_in_its_store():
    store = ChatSessionStore()
    service = ChatService(FakeTextGenerator(text="sure"), sessions=store)

    session_id = service.create_session().session_id
    first = await service.send_message(session_id, "hello")
    again = await service.send_message(session_id, "and again")

    assert first["reply"]["content"] == "sure"
    assert len(again["session"]["messages"]) == 5
    assert len(store) == 1
    store.reset()
    assert len(store) == 0


@pytest.mark.asyncio
async def test_unknown_session_is_not_created():
    service = ChatService(FakeTextGenerator(text="sure"))

    with pytest.raises(NotFoundError):
        service.get_session("missing")
    with pytest.raises(NotFoundError):
        await service.send_message("missing", "hello")
    with pytest.raises(NotFoundError):
        service.clear_session("missing")
    assert len(service.sessions) == 0


@pytest.mark.asyncio
async def test_ask_video_requires_question():
    service = ChatService(FakeTextGenerator(text="x"))
    with pytest.raises(ValidationError):
        await service.ask_video("  ", "context")


@pytest.mark.asyncio
async def test_ask_video_includes_context():
    generator = FakeTextGenerator(text=" Because of the GIL. ")
    service = ChatService(generator)

    answer = await service.ask_video("Why is it slow?", "Transcript about Python threads", "vid-1")

    assert answer == "Because of the GIL."
    assert "Transcript about Python threads" in generator.calls[0]["prompt"]
    assert "Why is it slow?" in generator.calls[0]["prompt"]


@pytest.mark.asyncio
async def test_generate_text_flattens_previous_messages():
    generator = FakeTextGenerator(text="42")
    service = ChatService(generator)

    text = await service.generate_text(
        "And the answer?",
        context="Hitchhiker",
        previous_messages=[{"role": "user", "content": "Question?"}],
        max_tokens=100,
    )

    assert text == "42"
    prompt = generator.calls[0]["prompt"]
    assert prompt.endswith("User: And the answer?\nAssistant: ")
    assert generator.calls[0]["max_tokens"] == 100


@pytest.mark.asyncio
async def test_check_api_key():
    service = ChatService(FakeTextGenerator(text="ok"), FakeVideoClient(fail=True))

    assert (await service.check_api_key("text-generation"))["isValid"] is True
    video = await service.check_api_key("video-search")
    assert video["isValid"] is False
    with pytest.raises(ValidationError):
        await service.check_api_key("weather")
