"""
Learning assistant: chat sessions, questions about a video, raw text
generation and API key checks.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from urllib.parse import quote

from models.course_models import ApiKeyType, ChatMessage
from prompts.chat_prompts import (
    CHAT_SYSTEM_PROMPT, VIDEO_ASSISTANT_SYSTEM_PROMPT,
    build_image_description_prompt, build_text_generation_prompt, build_video_question_prompt,
)
from utils.exceptions import CollaboratorError, NotFoundError, ValidationError
from utils.file_storage import generate_uuid

logger = logging.getLogger(__name__)

GREETING = "Hello! I'm your AI learning assistant. How can I help you with your computer science studies today?"
CLEARED_MESSAGE = "Chat history has been cleared. How can I help you now?"
IMAGE_REPLY = "I can't directly generate images, but here's a description of what you're looking for."
IMAGE_KEYWORDS = ("diagram", "image", "graph", "picture")

CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 800


def wants_image(content: str) -> bool:
    lowered = content.lower()
    return any(keyword in lowered for keyword in IMAGE_KEYWORDS)


def stock_image_url(query: str) -> str:
    return f"https://source.unsplash.com/random/800x600/?{quote(query)}"


class ChatSession:
    """One conversation. Only the last `history_window` messages go to the model."""

    def __init__(
        self,
        session_id: str,
        text_generator=None,
        history_window: int = 5,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.session_id = session_id
        self.text_generator = text_generator
        self.history_window = history_window
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.messages: List[ChatMessage] = []
        self.is_loading = False
        self._reset_to(GREETING)

    def _message(self, role: str, content: str, image_url: Optional[str] = None) -> ChatMessage:
        return ChatMessage(id=generate_uuid(), role=role, content=content, timestamp=self.clock(), image_url=image_url)

    def _reset_to(self, content: str) -> None:
        self.messages = [self._message("assistant", content)]

    def clear(self) -> None:
        self._reset_to(CLEARED_MESSAGE)

    def history(self) -> List[Dict[str, str]]:
        return [{"role": m.role, "content": m.content} for m in self.messages[-self.history_window:]]

    async def _reply(self, content: str, history: List[Dict[str, str]]) -> ChatMessage:
        if self.text_generator is None:
            raise CollaboratorError("Text generation is not configured")

        if wants_image(content):
            description = ""
            try:
                description = await self.text_generator.generate_text(
                    build_image_description_prompt(content),
                    system_prompt=CHAT_SYSTEM_PROMPT,
                    temperature=CHAT_TEMPERATURE,
                    max_tokens=300,
                )
            except Exception as e:
                logger.warning(f"Image description failed: {e}")
            reply = f"{IMAGE_REPLY}\n\n{description.strip()}" if description.strip() else IMAGE_REPLY
            return self._message("assistant", reply, image_url=stock_image_url(content))

        text = await self.text_generator.generate_text(
            content,
            system_prompt=CHAT_SYSTEM_PROMPT,
            history=history,
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
        )
        return self._message("assistant", text.strip())

    async def send(self, content: str) -> Optional[ChatMessage]:
        """Add the user's message and the assistant's answer. Blank input is ignored."""
        if not content or not content.strip():
            return None

        history = self.history()
        self.messages.append(self._message("user", content.strip()))
        self.is_loading = True
        try:
            reply = await self._reply(content.strip(), history)
        except Exception as e:
            logger.error(f"Chat reply failed in session {self.session_id}: {e}")
            message = getattr(e, "message", None) or str(e)
            reply = self._message("assistant", f"Error: {message}")
        finally:
            self.is_loading = False

        self.messages.append(reply)
        return reply

    def to_api(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "isLoading": self.is_loading,
            "messages": [m.to_api() for m in self.messages],
        }


class ChatSessionStore:
    """Sessions held by this instance; reset() drops them all"""

    def __init__(self):
        self._sessions: Dict[str, ChatSession] = {}

    def get(self, session_id: str) -> Optional[ChatSession]:
        return self._sessions.get(session_id)

    def add(self, session: ChatSession) -> ChatSession:
        self._sessions[session.session_id] = session
        return session

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def reset(self) -> None:
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


class ChatService:
    """Entry points for chat and the assistant functions"""

    def __init__(self, text_generator=None, video_client=None, sessions: Optional[ChatSessionStore] = None, history_window: int = 5):
        self.text_generator = text_generator
        self.video_client = video_client
        self.sessions = sessions if sessions is not None else ChatSessionStore()
        self.history_window = history_window

    def create_session(self) -> ChatSession:
        return self.sessions.add(ChatSession(
            generate_uuid(),
            text_generator=self.text_generator,
            history_window=self.history_window,
        ))

    def get_session(self, session_id: str) -> ChatSession:
        session = self.sessions.get(session_id) if session_id else None
        if session is None:
            raise NotFoundError("Chat session not found", error_code="SESSION_NOT_FOUND")
        return session

    async def send_message(self, session_id: str, content: str) -> Dict[str, Any]:
        session = self.get_session(session_id)
        reply = await session.send(content)
        return {"reply": reply.to_api() if reply else None, "session": session.to_api()}

    def clear_session(self, session_id: str) -> Dict[str, Any]:
        session = self.get_session(session_id)
        session.clear()
        return session.to_api()

    def _require_generator(self):
        if self.text_generator is None:
            raise CollaboratorError("Text generation is not configured", error_code="TEXT_GENERATION_UNAVAILABLE")
        return self.text_generator

    async def ask_video(self, question: Optional[str], context: str = "", video_id: Optional[str] = None) -> str:
        if not question or not question.strip():
            raise ValidationError("Question is required", error_code="MISSING_QUESTION")
        generator = self._require_generator()
        answer = await generator.generate_text(
            build_video_question_prompt(question.strip(), context or "", video_id),
            system_prompt=VIDEO_ASSISTANT_SYSTEM_PROMPT,
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
        )
        return answer.strip()

    async def generate_text(
        self,
        prompt: Optional[str],
        context: str = "",
        previous_messages: Optional[List[Dict[str, str]]] = None,
        max_tokens: int = 800,
        temperature: float = 0.7,
    ) -> str:
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt is required", error_code="MISSING_PROMPT")
        generator = self._require_generator()
        text = await generator.generate_text(
            build_text_generation_prompt(prompt.strip(), context, previous_messages),
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return text.strip()

    async def check_api_key(self, key_type: Optional[str]) -> Dict[str, Any]:
        """Make a minimal call to the collaborator behind `key_type`"""
        valid_types = [t.value for t in ApiKeyType]
        if key_type not in valid_types:
            raise ValidationError(
                f"Invalid key type. Expected one of: {', '.join(valid_types)}",
                error_code="INVALID_KEY_TYPE",
            )

        try:
            if key_type == ApiKeyType.TEXT_GENERATION.value:
                is_valid = await self._require_generator().check_connection()
            else:
                if self.video_client is None:
                    raise CollaboratorError("Video search is not configured", error_code="VIDEO_SEARCH_UNAVAILABLE")
                await self.video_client.search_videos("programming tutorial", max_results=1)
                is_valid = True
        except Exception as e:
            logger.warning(f"API key check for {key_type} failed: {e}")
            message = getattr(e, "message", None) or str(e)
            return {"isValid": False, "message": f"{key_type} API key check failed: {message}"}

        if not is_valid:
            return {"isValid": False, "message": f"{key_type} API returned an empty response"}
        return {"isValid": True, "message": f"{key_type} API key is valid"}
