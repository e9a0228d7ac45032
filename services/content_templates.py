"""
Templated content used as the last fallback tier.

Everything here is local and deterministic apart from the ids attached to
questions, so the pipeline always has something to persist.
"""

import re
from typing import Any, Dict, List

from models.course_models import QuizQuestion, CourseLevel
from utils.file_storage import generate_uuid

STUDY_GUIDE_URL = "https://cdn.lovablecdn.com/demo-content/sample-course-notes.pdf"

# Courses the populate job falls back to when metadata generation fails
COURSE_TEMPLATES: Dict[str, Dict[str, Any]] = {
    "Programming": {
        "title": "Introduction to Python Programming",
        "level": "beginner",
        "instructor": "Dr. Charles Severance",
        "description": "Learn the basics of Python programming language including variables, data types, control flow, functions, and more.",
        "videos": [
            {"title": "Why Program?", "description": "An introduction to Python and programming."},
            {"title": "Variables and Expressions", "description": "Understanding variables and expressions in Python."},
            {"title": "Conditional Execution", "description": "Conditional statements and boolean expressions."},
        ],
    },
    "Web Development": {
        "title": "React.js Fundamentals",
        "level": "intermediate",
        "instructor": "Kent C. Dodds",
        "description": "Learn the core concepts of React.js including components, props, state, hooks, and the virtual DOM. Build interactive user interfaces with the most popular JavaScript library.",
        "videos": [
            {"title": "React Components and JSX", "description": "Understanding the building blocks of React applications"},
            {"title": "State and Props", "description": "Managing data within React components"},
            {"title": "Hooks and Effects", "description": "Using functional components with React hooks"},
        ],
    },
    "Data Science": {
        "title": "Introduction to Artificial Intelligence",
        "level": "intermediate",
        "instructor": "Sebastian Thrun",
        "description": "Explore the fundamentals of AI including search algorithms, knowledge representation, machine learning, natural language processing, and computer vision applications.",
        "videos": [
            {"title": "Foundations of AI", "description": "History and core concepts of artificial intelligence"},
            {"title": "Search Algorithms", "description": "Problem-solving with search strategies"},
            {"title": "Knowledge Representation", "description": "Representing and reasoning with knowledge"},
        ],
    },
    "Computer Science": {
        "title": "Data Structures and Algorithms",
        "level": "intermediate",
        "instructor": "Robert Sedgewick",
        "description": "Master essential data structures like arrays, linked lists, trees, and graphs. Learn algorithms for sorting, searching, and graph traversal, with complexity analysis and optimization techniques.",
        "videos": [
            {"title": "Introduction to Algorithms", "description": "Basic concepts and importance of algorithms"},
            {"title": "Arrays and Linked Lists", "description": "Understanding linear data structures"},
            {"title": "Trees and Graphs", "description": "Advanced data structures for complex relationships"},
        ],
    },
    "Mobile Development": {
        "title": "Mobile App Development with Flutter",
        "level": "intermediate",
        "instructor": "Angela Yu",
        "description": "Create cross-platform mobile applications for iOS and Android using Flutter and Dart. Learn UI design, state management, and how to deploy apps to app stores.",
        "videos": [
            {"title": "Dart Programming Basics", "description": "Learning the language behind Flutter"},
            {"title": "Flutter Widgets", "description": "Building UI components with Flutter"},
            {"title": "State Management", "description": "Managing application state effectively"},
        ],
    },
    "Cybersecurity": {
        "title": "Cybersecurity Fundamentals",
        "level": "beginner",
        "instructor": "Kevin Mitnick",
        "description": "Learn essential security concepts including threat modeling, encryption, network security, web security, and ethical hacking techniques to protect systems from attacks.",
        "videos": [
            {"title": "Security Mindset", "description": "Thinking like a security professional"},
            {"title": "Common Vulnerabilities", "description": "Understanding attack vectors and weaknesses"},
            {"title": "Defense Strategies", "description": "Implementing effective security controls"},
        ],
    },
    "Databases": {
        "title": "Relational Databases and SQL",
        "level": "beginner",
        "instructor": "Jennifer Widom",
        "description": "Design relational schemas, write SQL queries with joins and aggregates, and understand indexing and transactions.",
        "videos": [
            {"title": "The Relational Model", "description": "Tables, keys and relationships"},
            {"title": "Querying with SQL", "description": "Selecting, filtering and joining data"},
            {"title": "Indexes and Transactions", "description": "Keeping queries fast and data consistent"},
        ],
    },
}

CATEGORIES: List[str] = list(COURSE_TEMPLATES.keys())


def normalize_level(level: str) -> str:
    """Map free-form level text onto beginner / intermediate / advanced"""
    lowered = (level or "").lower()
    if "begin" in lowered:
        return CourseLevel.BEGINNER.value
    if "adv" in lowered:
        return CourseLevel.ADVANCED.value
    return CourseLevel.INTERMEDIATE.value


def course_template(category: str, specific_topic: str = None) -> Dict[str, Any]:
    """Template course for a category; a requested topic gets a generic course of its own"""
    if specific_topic:
        topic = specific_topic.strip()
        return {
            "title": f"{topic.title()} Essentials",
            "category": category,
            "level": "intermediate",
            "instructor": "Sarah Johnson",
            "description": f"A practical introduction to {topic}: core concepts, common tools and hands-on projects.",
            "duration": "6 weeks",
            "videos": [
                {"title": f"Introduction to {topic}", "description": f"What {topic} is and why it matters"},
                {"title": f"{topic} in Practice", "description": f"Working through real {topic} examples"},
                {"title": f"{topic} Projects", "description": f"Building a complete {topic} project"},
            ],
        }
    template = COURSE_TEMPLATES.get(category) or COURSE_TEMPLATES["Programming"]
    return {"category": category, "duration": "8 weeks", **template}


def fallback_course_details(title: str) -> Dict[str, Any]:
    return {
        "description": f"Learn everything about {title} with this comprehensive course.",
        "category": "Programming",
        "duration": "8 weeks",
        "level": CourseLevel.INTERMEDIATE.value,
        "instructor": "John Smith",
        "videos": [
            f"Introduction to {title}",
            f"{title} Advanced Techniques",
            f"{title} Projects",
        ],
    }


def fallback_transcript(video_title: str, course_title: str, category: str, description: str = "") -> str:
    topic = description.split(".")[0].strip().lower() if description else video_title.lower()
    return (
        f"Welcome to this lecture on {video_title} as part of our {course_title} course. "
        f"In this session, we'll be exploring key concepts related to {topic}. "
        f"This knowledge is fundamental to understanding {category}. "
        f"We'll start with the basic principles, then move on to more advanced topics and practical applications. "
        f"Throughout this lecture, we'll cover several important techniques and methodologies used in the field, "
        f"and discuss how they relate to real-world scenarios in {category}. "
        f"By the end of this lecture, you'll have a solid understanding of {video_title.lower()} "
        f"and be able to apply this knowledge in your own {category} projects."
    )


def fallback_summary(video_title: str, course_title: str, category: str) -> str:
    return (
        f"This lecture on {video_title} provides essential knowledge for {category} students. "
        f"It covers core concepts, practical applications, and best practices in the context of {course_title}. "
        f"The material builds a foundation for more advanced topics in later modules."
    )


def fallback_questions(course_title: str, category: str) -> List[QuizQuestion]:
    questions = [
        {
            "text": f"What is one of the main topics covered in this {category} course?",
            "options": [
                f"The fundamentals of {course_title}",
                "Unrelated business topics",
                "Ancient history",
                "Cooking techniques",
            ],
            "correct_answer": 0,
        },
        {
            "text": "Which best describes the focus of this course?",
            "options": [
                "Entertainment only",
                f"{course_title} concepts and applications",
                "Non-technical writing",
                "Physical fitness",
            ],
            "correct_answer": 1,
        },
        {
            "text": "What skills would you likely develop from this course?",
            "options": [
                "Gardening",
                "Painting",
                f"{category} skills",
                "Musical abilities",
            ],
            "correct_answer": 2,
        },
    ]
    return [QuizQuestion(id=generate_uuid(), **q) for q in questions]


def fallback_keywords(video_title: str, course_title: str, category: str, limit: int = 6) -> List[str]:
    """Unique words longer than three characters, category first"""
    words = re.findall(r"[A-Za-z][A-Za-z0-9+#.]*", f"{category} {course_title} {video_title}")
    keywords: List[str] = []
    for word in words:
        lowered = word.lower().rstrip(".")
        if len(lowered) > 3 and lowered not in keywords:
            keywords.append(lowered)
    return keywords[:limit]


def study_guide_note(course_title: str) -> Dict[str, Any]:
    return {
        "title": f"{course_title} - Study Guide",
        "description": f"Comprehensive notes and reference material for {course_title}.",
        "file_url": STUDY_GUIDE_URL,
        "file_type": "pdf",
        "order_num": 1,
    }
