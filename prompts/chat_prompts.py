"""
Prompt templates for the learning assistant.
"""

from typing import List, Dict, Optional

CHAT_SYSTEM_PROMPT = (
    "You are an AI learning assistant for a computer science e-learning platform. "
    "Help students understand programming, algorithms, data structures, web development "
    "and related topics. Give clear, accurate explanations with short code examples where "
    "they help, and keep answers focused on the student's question."
)

VIDEO_ASSISTANT_SYSTEM_PROMPT = (
    "You are an educational assistant that answers questions about a course video. "
    "Base your answer on the provided video context when it is relevant, say so when the "
    "context does not cover the question, and keep the explanation suitable for a student."
)


def build_video_question_prompt(question: str, context: str, video_id: Optional[str] = None) -> str:
    video_line = f"Video ID: {video_id}\n" if video_id else ""
    context_block = context.strip() or "No additional context was provided."

    return f"""{video_line}VIDEO CONTEXT:
{context_block}

STUDENT QUESTION:
{question}

Answer the question in 2-4 short paragraphs."""


def build_text_generation_prompt(prompt: str, context: str = "", previous_messages: Optional[List[Dict[str, str]]] = None) -> str:
    """Flatten context and earlier turns into one prompt, ending on the assistant's turn"""
    parts = []
    if context:
        parts.append(f"{context}\n")
    for message in previous_messages or []:
        speaker = "User" if message.get("role") == "user" else "Assistant"
        parts.append(f"{speaker}: {message.get('content', '')}")
    parts.append(f"User: {prompt}\nAssistant: ")
    return "\n".join(parts)


def build_image_description_prompt(request: str) -> str:
    return f"""A student asked for a visual: "{request}".
You cannot draw images. Describe in words what the diagram or picture would show: its parts,
how they connect, and what the student should notice. Keep it under 150 words."""
