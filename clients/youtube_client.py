"""
YouTube client: video search (Data API v3) and caption transcripts.

Search goes over httpx; transcripts come from youtube-transcript-api, which
is synchronous, so it runs in a worker thread.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx
from youtube_transcript_api import YouTubeTranscriptApi, CouldNotRetrieveTranscript

from utils.exceptions import CollaboratorError, MalformedResponseError

logger = logging.getLogger(__name__)

YOUTUBE_API_BASE = "https://www.googleapis.com/youtube/v3"

VIDEO_URL_PATTERN = re.compile(
    r'(?:https?://)?(?:www\.|m\.)?'
    r'(?:youtube\.com/(?:watch\?(?:[^\s"\'<>]*&)?v=|embed/|v/|shorts/)|youtu\.be/)'
    r'([A-Za-z0-9_-]{11})'
)
ISO_DURATION_PATTERN = re.compile(r'^P(?:(\d+)D)?T?(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?$')


@dataclass
class VideoCandidate:
    video_id: str
    title: str
    description: str
    thumbnail: str
    duration: Optional[str] = None

    @property
    def url(self) -> str:
        return watch_url(self.video_id)


def extract_video_id(video_url: str) -> Optional[str]:
    """
    Extract video ID from various YouTube URL formats.

    Accepts youtu.be links, watch?v= links, /v/ and /embed/ paths, or a bare
    11-character ID.
    """
    if not video_url:
        return None

    video_url = video_url.strip()
    if "youtu.be/" in video_url:
        candidate = video_url.split("youtu.be/")[1].split("?")[0].split("&")[0]
    elif "watch?v=" in video_url:
        candidate = video_url.split("watch?v=")[1].split("&")[0]
    elif "youtube.com/v/" in video_url:
        candidate = video_url.split("/v/")[1].split("?")[0].split("&")[0]
    elif "youtube.com/embed/" in video_url:
        candidate = video_url.split("/embed/")[1].split("?")[0].split("&")[0]
    else:
        candidate = video_url

    if re.fullmatch(r'[A-Za-z0-9_-]{11}', candidate):
        return candidate
    logger.warning(f"Unrecognized YouTube URL format: {video_url}")
    return None


def find_video_url(text: str) -> Optional[str]:
    """Find the first YouTube URL embedded in free text and return it in watch form"""
    if not text:
        return None
    match = VIDEO_URL_PATTERN.search(text)
    if not match:
        return None
    return watch_url(match.group(1))


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def thumbnail_url(video_id: str) -> str:
    return f"https://i.ytimg.com/vi/{video_id}/hqdefault.jpg"


def format_duration(iso_duration: Optional[str]) -> Optional[str]:
    """PT1H2M3S -> 1:02:03, PT4M5S -> 4:05"""
    if not iso_duration:
        return None
    match = ISO_DURATION_PATTERN.match(iso_duration)
    if not match:
        return None
    days, hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    hours += days * 24
    if hours:
        return f"{hours}:{minutes:02d}:{seconds:02d}"
    return f"{minutes}:{seconds:02d}"


class YouTubeClient:
    """Video search and transcript lookup"""

    def __init__(self, api_key: Optional[str], timeout: float = 30, http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.timeout = timeout
        self._http_client = http_client

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if not self.api_key:
            raise CollaboratorError("YouTube API key is not configured", error_code="VIDEO_SEARCH_UNAVAILABLE")

        params = {**params, "key": self.api_key}
        try:
            if self._http_client is not None:
                response = await self._http_client.get(f"{YOUTUBE_API_BASE}/{path}", params=params)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(f"{YOUTUBE_API_BASE}/{path}", params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"YouTube API {path} failed: {e}")
            raise CollaboratorError(f"YouTube API request failed: {e}", error_code="VIDEO_SEARCH_UNAVAILABLE") from e

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError("YouTube API returned invalid JSON") from e

    async def search_videos(self, query: str, max_results: int = 3) -> List[VideoCandidate]:
        """Search embeddable videos for a query, with durations filled in"""
        data = await self._get("search", {
            "part": "snippet",
            "q": query,
            "type": "video",
            "videoEmbeddable": "true",
            "maxResults": max_results,
        })

        candidates = []
        for item in data.get("items") or []:
            video_id = (item.get("id") or {}).get("videoId")
            snippet = item.get("snippet") or {}
            if not video_id:
                continue
            thumbnails = snippet.get("thumbnails") or {}
            thumb = (thumbnails.get("high") or thumbnails.get("medium") or thumbnails.get("default") or {}).get("url")
            candidates.append(VideoCandidate(
                video_id=video_id,
                title=snippet.get("title") or "",
                description=snippet.get("description") or "",
                thumbnail=thumb or thumbnail_url(video_id),
            ))

        if candidates:
            durations = await self._durations([c.video_id for c in candidates])
            for candidate in candidates:
                candidate.duration = durations.get(candidate.video_id)

        logger.info(f"YouTube search '{query}' returned {len(candidates)} videos")
        return candidates

    async def _durations(self, video_ids: List[str]) -> Dict[str, Optional[str]]:
        try:
            data = await self._get("videos", {"part": "contentDetails", "id": ",".join(video_ids)})
        except CollaboratorError as e:
            logger.warning(f"Could not fetch video durations: {e}")
            return {}
        return {
            item.get("id"): format_duration((item.get("contentDetails") or {}).get("duration"))
            for item in data.get("items") or []
        }

    async def fetch_transcript(self, video_url: str, languages: Optional[List[str]] = None) -> Optional[str]:
        """Caption text for a YouTube video, or None when none can be retrieved"""
        video_id = extract_video_id(video_url)
        if not video_id:
            return None

        def _fetch() -> str:
            fetched = YouTubeTranscriptApi().fetch(video_id, languages=languages or ["en"])
            return " ".join(entry["text"].strip() for entry in fetched.to_raw_data() if entry.get("text"))

        try:
            text = await asyncio.to_thread(_fetch)
        except CouldNotRetrieveTranscript as e:
            logger.warning(f"No transcript for {video_id}: {e.__class__.__name__}")
            return None
        except Exception as e:
            logger.error(f"Unexpected error getting transcript for {video_id}: {e}")
            raise CollaboratorError(f"Transcript fetch failed: {e}", error_code="TRANSCRIPT_UNAVAILABLE") from e

        return text or None
