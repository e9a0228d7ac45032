"""
Static media catalog used when no external video lookup succeeds.

Keywords map to buckets of known-good video URLs and thumbnail images.
Selection is deterministic: the first text (video title, then course
title, then category) containing a catalog keyword picks the bucket, the
longest matching keyword wins, and the entry inside the bucket is chosen by
the leading character of the title.
"""

import re
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

UNSPLASH = "https://images.unsplash.com/photo-{}?w=800&auto=format&fit=crop&q=60&ixlib=rb-4.0.3"

DEFAULT_BUCKET = "default"

MEDIA_BUCKETS: Dict[str, Dict[str, List[str]]] = {
    "python": {
        "videos": [
            "https://www.youtube.com/watch?v=rfscVS0vtbw",
            "https://archive.org/download/pythonlearn/PY_Intro_01_Introduction_to_Python_in_the_Cloud.mp4",
            "https://archive.org/download/pythonlearn/PY_Intro_02_UsingPython_variables.mp4",
            "https://archive.org/download/pythonlearn/PY_Intro_03_Conditional_Execution.mp4",
            "https://archive.org/download/pythonlearn/PY_Intro_04_Functions.mp4",
        ],
        "thumbnails": [
            UNSPLASH.format("1526379095098-d400fd0bf935"),
            UNSPLASH.format("1515879218367-8466d910aaa4"),
        ],
    },
    "react": {
        "videos": [
            "https://www.youtube.com/watch?v=bMknfKXIFA8",
            "https://archive.org/download/fcc-javascript-and-algorithms/2-javascript-algorithms-and-data-structures/1-basic-javascript/1-comment-your-javascript-code.mp4",
        ],
        "thumbnails": [
            UNSPLASH.format("1633356122544-f134324a6cee"),
            UNSPLASH.format("1599507593548-0187ac4043c6"),
        ],
    },
    "web": {
        "videos": [
            "https://www.youtube.com/watch?v=PkZNo7MFNFg",
            "https://archive.org/download/fcc-javascript-and-algorithms/1-html-css/1-basic-html-and-html5/1-say-hello-to-html-elements.mp4",
            "https://archive.org/download/fcc-javascript-and-algorithms/1-html-css/2-basic-css/1-change-the-color-of-text.mp4",
            "https://archive.org/download/fcc-javascript-and-algorithms/2-javascript-algorithms-and-data-structures/1-basic-javascript/1-comment-your-javascript-code.mp4",
        ],
        "thumbnails": [
            UNSPLASH.format("1599507593548-0187ac4043c6"),
            UNSPLASH.format("1461749280684-dccba630e2f6"),
        ],
    },
    "data": {
        "videos": [
            "https://archive.org/download/youtube-jnOZB46CbYw/Introduction_to_Machine_Learning_Andrew_Ng-jnOZB46CbYw.mp4",
            "https://archive.org/download/youtube-kHwlB_j7Hkc/Linear_Regression_with_One_Variable-kHwlB_j7Hkc.mp4",
            "https://archive.org/download/youtube-hCOIMkcsm_g/Logistic_Regression_and_Classification-hCOIMkcsm_g.mp4",
        ],
        "thumbnails": [
            UNSPLASH.format("1629904853893-c2c8981a3fd5"),
            UNSPLASH.format("1551288049-bebda4e38f71"),
        ],
    },
    "database": {
        "videos": [
            "https://www.youtube.com/watch?v=HXV3zeQKqGY",
        ],
        "thumbnails": [
            UNSPLASH.format("1544383835-bda2bc66a55d"),
        ],
    },
    "computer science": {
        "videos": [
            "https://archive.org/download/pythonlearn/PY_Intro_04_Functions.mp4",
            "https://archive.org/download/pythonlearn/PY_Intro_03_Conditional_Execution.mp4",
        ],
        "thumbnails": [
            UNSPLASH.format("1555066931-4365d14bab8c"),
            UNSPLASH.format("1516116216624-53e697fedbea"),
        ],
    },
    "mobile": {
        "videos": [
            "https://archive.org/download/SintelTrailer/sintel_trailer-480p.mp4",
        ],
        "thumbnails": [
            UNSPLASH.format("1512941937669-90a1b58e7e9c"),
        ],
    },
    "security": {
        "videos": [
            "https://archive.org/download/ElephantsDream/ed_hd.mp4",
        ],
        "thumbnails": [
            UNSPLASH.format("1550751827-4bd374c3f58b"),
        ],
    },
    "programming": {
        "videos": [
            "https://archive.org/download/pythonlearn/PY_Intro_01_Introduction_to_Python_in_the_Cloud.mp4",
            "https://archive.org/download/pythonlearn/PY_Intro_02_UsingPython_variables.mp4",
        ],
        "thumbnails": [
            UNSPLASH.format("1516116216624-53e697fedbea"),
            UNSPLASH.format("1555066931-4365d14bab8c"),
        ],
    },
    DEFAULT_BUCKET: {
        "videos": [
            "https://archive.org/download/BigBuckBunny_124/Content/big_buck_bunny_720p_surround.mp4",
            "https://archive.org/download/ElephantsDream/ed_hd.mp4",
            "https://archive.org/download/SintelTrailer/sintel_trailer-480p.mp4",
        ],
        "thumbnails": [
            UNSPLASH.format("1501504905252-473c47e087f8"),
            UNSPLASH.format("1522202176988-66273c2fd55f"),
            UNSPLASH.format("1498050108023-c5249f4df085"),
        ],
    },
}

# keyword -> bucket
KEYWORD_BUCKETS: Dict[str, str] = {
    "python": "python",
    "django": "python",
    "flask": "python",
    "pandas": "python",
    "react": "react",
    "hooks": "react",
    "jsx": "react",
    "javascript": "web",
    "typescript": "web",
    "html": "web",
    "css": "web",
    "web": "web",
    "web development": "web",
    "machine learning": "data",
    "data science": "data",
    "artificial intelligence": "data",
    "ai": "data",
    "regression": "data",
    "sql": "database",
    "database": "database",
    "databases": "database",
    "algorithms": "computer science",
    "data structures": "computer science",
    "computer science": "computer science",
    "mobile": "mobile",
    "flutter": "mobile",
    "android": "mobile",
    "ios": "mobile",
    "security": "security",
    "cybersecurity": "security",
    "hacking": "security",
    "programming": "programming",
    "coding": "programming",
}


@dataclass
class StaticSelection:
    url: str
    bucket: str
    keyword: Optional[str]
    matched_in: Optional[str]


def _contains_keyword(text: str, keyword: str) -> bool:
    return re.search(r'\b' + re.escape(keyword) + r'\b', text) is not None


def match_keyword(*texts: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Best catalog keyword for the first text that contains any.

    Returns (keyword, text) or None. Texts are tried in order; within one
    text the longest keyword wins.
    """
    for text in texts:
        if not text:
            continue
        lowered = text.lower()
        found = [kw for kw in KEYWORD_BUCKETS if _contains_keyword(lowered, kw)]
        if found:
            return max(found, key=len), text
    return None


def index_for(title: str, size: int) -> int:
    """Deterministic position derived from the title's leading character"""
    if size <= 0:
        raise ValueError("cannot index into an empty bucket")
    stripped = (title or "").strip()
    if not stripped:
        return 0
    return ord(stripped[0].lower()) % size


def _bucket_for(video_title: str, course_title: str, category: str) -> Tuple[str, Optional[str], Optional[str]]:
    match = match_keyword(video_title, course_title, category)
    if not match:
        return DEFAULT_BUCKET, None, None
    keyword, text = match
    return KEYWORD_BUCKETS[keyword], keyword, text


def select_static_video(video_title: str, course_title: str, category: str) -> StaticSelection:
    bucket, keyword, text = _bucket_for(video_title, course_title, category)
    videos = MEDIA_BUCKETS[bucket]["videos"]
    url = videos[index_for(video_title or course_title, len(videos))]
    if bucket == DEFAULT_BUCKET:
        logger.info(f"No catalog keyword for '{video_title}'; using default bucket")
    return StaticSelection(url=url, bucket=bucket, keyword=keyword, matched_in=text)


def select_keyword_thumbnail(video_title: str, course_title: str, category: str) -> Optional[StaticSelection]:
    """Thumbnail from a keyword bucket, or None when no keyword matches"""
    bucket, keyword, text = _bucket_for(video_title, course_title, category)
    if bucket == DEFAULT_BUCKET:
        return None
    thumbnails = MEDIA_BUCKETS[bucket]["thumbnails"]
    url = thumbnails[index_for(video_title or course_title, len(thumbnails))]
    return StaticSelection(url=url, bucket=bucket, keyword=keyword, matched_in=text)


def default_thumbnail(title: str) -> str:
    thumbnails = MEDIA_BUCKETS[DEFAULT_BUCKET]["thumbnails"]
    return thumbnails[index_for(title, len(thumbnails))]


def videos_for_category(category: str, count: int = 3) -> List[str]:
    """Cycle through the category's bucket until `count` URLs are collected"""
    match = match_keyword(category)
    bucket = KEYWORD_BUCKETS[match[0]] if match else DEFAULT_BUCKET
    sources = MEDIA_BUCKETS[bucket]["videos"]
    return [sources[i % len(sources)] for i in range(count)]


def thumbnail_for(title: str, category: str) -> str:
    selection = select_keyword_thumbnail(title, title, category)
    return selection.url if selection else default_thumbnail(title)
