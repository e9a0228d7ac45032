"""
Prompt templates for video enrichment: video lookup, transcript and content analysis.
"""


def build_video_lookup_prompt(video_title: str, course_title: str, category: str) -> str:
    return f"""Recommend one real, publicly available YouTube video for the lesson "{video_title}"
in the {category} course "{course_title}".

Prefer well-known educational channels (freeCodeCamp, CS50, MIT OpenCourseWare, Traversy Media,
Corey Schafer). Reply with the full YouTube URL on the first line and a one-sentence reason on
the second line. If you are not confident a matching video exists, reply with NONE."""


def build_transcript_prompt(video_title: str, video_description: str, course_title: str, category: str) -> str:
    description_line = f"\nLesson description: {video_description}" if video_description else ""

    return f"""Write the spoken transcript of a 5-8 minute lecture.

Course: {course_title}
Category: {category}
Lesson: {video_title}{description_line}

REQUIREMENTS:
1. Open by naming the lesson and the course
2. Explain 3-4 key concepts in order, each with a short concrete example
3. Close with a recap and what comes next in the course
4. Plain prose only: no headings, no markdown, no speaker labels
5. Between 400 and 900 words"""


def build_content_analysis_prompt(transcript: str, video_title: str, course_title: str, category: str) -> str:
    return f"""Analyze this lecture transcript from the {category} course "{course_title}",
lesson "{video_title}".

TRANSCRIPT:
{transcript[:12000]}

Provide:
1. A concise summary of the key points (maximum 200 words)
2. 3-5 multiple-choice questions that test understanding of the content.
   Each question has exactly 4 options and correctAnswer is the 0-based index of the right option.
3. 5-7 keywords or key concepts from the content

OUTPUT FORMAT (JSON - no markdown formatting):
{{
  "summary": "...",
  "questions": [
    {{"question": "...", "options": ["...", "...", "...", "..."], "correctAnswer": 0}}
  ],
  "keywords": ["...", "..."]
}}"""
