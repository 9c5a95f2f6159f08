import json
from unittest.mock import patch

import httpx
import pytest

from ingestion.youtube import (
    DEFAULT_CHANNEL,
    DEFAULT_TITLE,
    ScrapedVideoData,
    parse_video_metadata,
    scrape_video_metadata,
)

THUMB = "https://img.youtube.com/vi/vid123/hqdefault.jpg"

WATCH_PAGE = """
<html><head>
<title>Cell Biology in 10 Minutes - YouTube</title>
<meta property="og:description" content="A quick tour of organelles &amp; membranes.">
<link itemprop="name" content="Biology Explained">
</head><body>
<script>var ytInitialPlayerResponse = {"videoDetails":{"author":"YouTube","ownerChannelName":"Biology Explained"}};</script>
</body></html>
"""


def _defaults() -> ScrapedVideoData:
    return ScrapedVideoData(
        title=DEFAULT_TITLE,
        thumbnail_url=THUMB,
        channel_name=DEFAULT_CHANNEL,
        description="Video ID: vid123",
    )


def test_parse_extracts_title_description_and_channel():
    data = parse_video_metadata(WATCH_PAGE, _defaults())

    assert data.title == "Cell Biology in 10 Minutes"
    assert data.description == "A quick tour of organelles & membranes."
    # "author" carries the platform sentinel, so the next pattern supplies the channel.
    assert data.channel_name == "Biology Explained"
    assert data.thumbnail_url == THUMB


def test_parse_keeps_defaults_when_nothing_matches():
    data = parse_video_metadata("<html><body>consent wall</body></html>", _defaults())

    assert data == _defaults()


def test_parse_skips_platform_name_in_every_pattern():
    page = '<meta name="author" content="YouTube"><title>YouTube</title>'

    data = parse_video_metadata(page, _defaults())

    assert data.channel_name == DEFAULT_CHANNEL
    assert data.title == "YouTube"


def test_parse_uses_first_channel_pattern_in_order():
    page = '"author":"First Author" "ownerChannelName":"Second Owner"'

    assert parse_video_metadata(page, _defaults()).channel_name == "First Author"


@pytest.mark.asyncio
async def test_scrape_failure_returns_defaults(fake_youtube):
    fake_youtube.unreachable = True

    data = await scrape_video_metadata("https://youtu.be/vid123", "vid123", THUMB)

    assert data.title == "Untitled Video"
    assert data.channel_name == "Unknown Channel"
    assert data.description == "Video ID: vid123"
    assert data.thumbnail_url == THUMB


@pytest.mark.asyncio
async def test_scrape_non_success_status_returns_defaults(fake_youtube):
    fake_youtube.page_html = None

    data = await scrape_video_metadata("https://youtu.be/vid123", "vid123", THUMB)

    assert data == _defaults()


@pytest.mark.asyncio
async def test_scrape_fetches_page_directly_without_integration(fake_youtube):
    fake_youtube.page_html = WATCH_PAGE

    with patch("ingestion.youtube.settings.WEB_SCRAPER_URL", ""):
        data = await scrape_video_metadata("youtu.be/vid123", "vid123", THUMB)

    assert data.title == "Cell Biology in 10 Minutes"
    request = fake_youtube.requests[-1]
    assert request.method == "GET"
    assert str(request.url) == "https://www.youtube.com/watch?v=vid123"


@pytest.mark.asyncio
async def test_direct_fetch_never_requests_the_submitted_host(fake_youtube):
    fake_youtube.page_html = "<title>SECRET-internal-metadata</title>"
    submitted = "http://169.254.169.254/latest/youtube.com/watch?v=abc"

    with patch("ingestion.youtube.settings.WEB_SCRAPER_URL", ""):
        await scrape_video_metadata(submitted, "abc", THUMB)

    assert [str(request.url) for request in fake_youtube.requests] == ["https://www.youtube.com/watch?v=abc"]


@pytest.mark.asyncio
async def test_scrape_goes_through_configured_integration():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text=WATCH_PAGE)

    with patch("ingestion.youtube.settings.WEB_SCRAPER_URL", "http://scraper.internal/scrape"):
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            data = await scrape_video_metadata("https://youtu.be/vid123", "vid123", THUMB, client=client)

    assert data.channel_name == "Biology Explained"
    assert seen[0].method == "POST"
    assert str(seen[0].url) == "http://scraper.internal/scrape"
    assert json.loads(seen[0].content) == {"url": "https://youtu.be/vid123", "getText": False}
