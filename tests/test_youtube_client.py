import httpx
import pytest

from clients.youtube_client import (
    YouTubeClient, extract_video_id, find_video_url, format_duration, thumbnail_url,
)
from utils.exceptions import CollaboratorError


@pytest.mark.parametrize("url", [
    "https://youtu.be/dQw4w9WgXcQ",
    "https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42",
    "https://www.youtube.com/v/dQw4w9WgXcQ",
    "https://www.youtube.com/embed/dQw4w9WgXcQ?rel=0",
    "dQw4w9WgXcQ",
])
def test_extract_video_id(url):
    assert extract_video_id(url) == "dQw4w9WgXcQ"


def test_extract_video_id_rejects_other_urls():
    assert extract_video_id("https://vimeo.com/12345") is None
    assert extract_video_id("") is None


def test_find_video_url_in_free_text():
    text = 'I recommend "Python in 100 Seconds": https://www.youtube.com/watch?v=x7X9w_GIm1s - enjoy!'
    assert find_video_url(text) == "https://www.youtube.com/watch?v=x7X9w_GIm1s"
    assert find_video_url("no links") is None


def test_format_duration():
    assert format_duration("PT4M5S") == "4:05"
    assert format_duration("PT1H2M3S") == "1:02:03"
    assert format_duration("bogus") is None


@pytest.mark.asyncio
async def test_search_videos_fills_in_durations():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["key"] == "yt-key"
        if request.url.path.endswith("/search"):
            return httpx.Response(200, json={"items": [
                {"id": {"videoId": "aaaaaaaaaaa"}, "snippet": {"title": "One", "description": "d", "thumbnails": {}}},
                {"id": {"kind": "youtube#channel"}, "snippet": {"title": "Skip me"}},
            ]})
        return httpx.Response(200, json={"items": [{"id": "aaaaaaaaaaa", "contentDetails": {"duration": "PT10M"}}]})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
        client = YouTubeClient("yt-key", http_client=http)
        results = await client.search_videos("python basics", max_results=2)

    assert len(results) == 1
    assert results[0].duration == "10:00"
    assert results[0].thumbnail == thumbnail_url("aaaaaaaaaaa")
    assert results[0].url == "https://www.youtube.com/watch?v=aaaaaaaaaaa"


@pytest.mark.asyncio
async def test_search_errors_raise_collaborator_error():
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(403))) as http:
        client = YouTubeClient("yt-key", http_client=http)
        with pytest.raises(CollaboratorError):
            await client.search_videos("python")


@pytest.mark.asyncio
async def test_search_without_key():
    with pytest.raises(CollaboratorError):
        await YouTubeClient(None).search_videos("python")
