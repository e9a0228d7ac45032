# Prompts module initialization

# Course Generation Prompts
from .course_prompts import (
    build_course_details_prompt,
    build_course_details_text_prompt,
    build_course_metadata_prompt,
)

# Video Enrichment Prompts
from .enrichment_prompts import (
    build_video_lookup_prompt,
    build_transcript_prompt,
    build_content_analysis_prompt,
)

# Learning Assistant Prompts
from .chat_prompts import (
    CHAT_SYSTEM_PROMPT,
    VIDEO_ASSISTANT_SYSTEM_PROMPT,
    build_video_question_prompt,
    build_text_generation_prompt,
    build_image_description_prompt,
)

__all__ = [
    'build_course_details_prompt',
    'build_course_details_text_prompt',
    'build_course_metadata_prompt',
    'build_video_lookup_prompt',
    'build_transcript_prompt',
    'build_content_analysis_prompt',
    'CHAT_SYSTEM_PROMPT',
    'VIDEO_ASSISTANT_SYSTEM_PROMPT',
    'build_video_question_prompt',
    'build_text_generation_prompt',
    'build_image_description_prompt',
]
