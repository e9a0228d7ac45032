"""
Prompt templates for course generation.
"""

from typing import Optional


def build_course_details_prompt(title: str) -> str:
    """Build prompt for filling in the details of a course from its title"""
    return f"""Generate details for an online course titled "{title}".

Provide:
1. A compelling course description (2-3 sentences)
2. The most appropriate category (e.g., Programming, Web Development, Data Science)
3. A realistic duration (e.g., "8 weeks")
4. The appropriate difficulty level (beginner, intermediate, or advanced)
5. A plausible instructor name
6. Exactly 3 video lesson titles that would make sense for this course

OUTPUT FORMAT (JSON - no markdown formatting):
{{
  "description": "...",
  "category": "...",
  "duration": "8 weeks",
  "level": "beginner | intermediate | advanced",
  "instructor": "...",
  "videos": ["...", "...", "..."]
}}"""


def build_course_details_text_prompt(title: str) -> str:
    """Plain-text variant, parsed line by line when JSON output is unusable"""
    return f"""Describe an online course titled "{title}".
Answer with exactly these lines and nothing else:
description: <2-3 sentences>
category: <category>
duration: <e.g. 8 weeks>
level: <beginner, intermediate or advanced>
instructor: <instructor name>
video: <lesson title>
video: <lesson title>
video: <lesson title>"""


def build_course_metadata_prompt(category: str, specific_topic: Optional[str] = None) -> str:
    """Build prompt for generating a complete synthetic course in a category"""
    topic_line = f"\nThe course must be about: {specific_topic}" if specific_topic else ""

    return f"""You are an expert curriculum designer for a computer science e-learning platform.
Create one realistic online course in the category "{category}".{topic_line}

REQUIREMENTS:
1. A specific, descriptive title (not just the category name)
2. A 2-3 sentence description of what students will learn
3. A difficulty level: beginner, intermediate or advanced
4. A plausible instructor name
5. A duration between 4 and 12 weeks (e.g. "6 weeks")
6. Exactly 3 video lessons, each with a title and a one-sentence description, in teaching order

OUTPUT FORMAT (JSON - no markdown formatting):
{{
  "title": "...",
  "description": "...",
  "level": "beginner | intermediate | advanced",
  "instructor": "...",
  "duration": "6 weeks",
  "videos": [
    {{"title": "...", "description": "..."}}
  ]
}}"""
