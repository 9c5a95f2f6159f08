"""
YouTube URL resolution, thumbnail negotiation and page metadata scraping.

Everything here is best-effort except ``extract_video_id``: probes and page
fetches degrade to defaults instead of raising, so ingestion never blocks on
an unreachable YouTube host.
"""

import html
import logging
import re
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, replace
from typing import Any, AsyncIterator, Dict, List, Optional
from urllib.parse import urlencode

import httpx

from config import settings

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Untitled Video"
DEFAULT_CHANNEL = "Unknown Channel"
PLATFORM_NAME = "YouTube"

# Identifier runs until the first of & newline ? # /
_ID = r"([^&\n?#/]+)"

# Ordered; every pattern is tried, first match wins.
VIDEO_ID_PATTERNS = [
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/watch\?v=" + _ID, re.IGNORECASE),
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/embed/" + _ID, re.IGNORECASE),
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/v/" + _ID, re.IGNORECASE),
    re.compile(r"(?:https?://)?(?:www\.)?youtu\.be/" + _ID, re.IGNORECASE),
    re.compile(r"(?:https?://)?(?:www\.)?youtube\.com/shorts/" + _ID, re.IGNORECASE),
    re.compile(r"(?:https?://)?m\.youtube\.com/watch\?v=" + _ID, re.IGNORECASE),
]

THUMBNAIL_QUALITIES = ("maxresdefault", "hqdefault", "mqdefault", "default")

TITLE_PATTERN = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)
TITLE_SUFFIX_PATTERN = re.compile(r" - YouTube$", re.IGNORECASE)
DESCRIPTION_PATTERN = re.compile(r'<meta property="og:description" content="([^"]+)"', re.IGNORECASE)
CHANNEL_PATTERNS = [
    re.compile(r'"author":"([^"]+)"', re.IGNORECASE),
    re.compile(r'"ownerChannelName":"([^"]+)"', re.IGNORECASE),
    re.compile(r'<link itemprop="name" content="([^"]+)"', re.IGNORECASE),
    re.compile(r'<meta name="author" content="([^"]+)"', re.IGNORECASE),
]


@dataclass
class ScrapedVideoData:
    """Metadata captured for a video, defaulted where scraping found nothing."""

    title: str
    thumbnail_url: str
    channel_name: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def extract_video_id(url: str) -> Optional[str]:
    """
    Extract the video identifier from a YouTube URL.

    Supports:
    - youtube.com/watch?v=ID
    - youtube.com/embed/ID
    - youtube.com/v/ID
    - youtu.be/ID
    - youtube.com/shorts/ID
    - m.youtube.com/watch?v=ID

    Returns None when the URL matches none of these shapes.
    """
    text = url or ""
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(text)
        if match and match.group(1):
            return match.group(1)
    return None


def is_shorts_url(url: str) -> bool:
    return bool(re.search(r"youtube\.com/shorts/", url or "", re.IGNORECASE))


def thumbnail_candidates(video_id: str) -> List[str]:
    """Thumbnail template URLs ordered from best to worst quality."""
    return [f"https://{settings.THUMBNAIL_HOST}/vi/{video_id}/{quality}.jpg" for quality in THUMBNAIL_QUALITIES]


def build_embed_url(video_id: str, video_type: str = "long") -> str:
    """Player URL for a video; shorts loop on themselves."""
    params: Dict[str, Any] = {
        "autoplay": 1,
        "controls": 1,
        "rel": 0,
        "enablejsapi": 1,
    }
    if video_type == "short":
        params.update({"playsinline": 1, "modestbranding": 1, "loop": 1, "playlist": video_id})
    else:
        params.update({"playsinline": 0, "fs": 1})
    return f"https://{settings.EMBED_HOST}/embed/{video_id}?{urlencode(params)}"


@asynccontextmanager
async def _http_client(client: Optional[httpx.AsyncClient], timeout: float) -> AsyncIterator[httpx.AsyncClient]:
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as owned:
        yield owned


async def negotiate_thumbnail(video_id: str, client: Optional[httpx.AsyncClient] = None) -> str:
    """
    Return the best thumbnail URL that exists for a video.

    Candidates are HEAD-probed in priority order and the first 2xx wins.
    When every probe fails the highest tier is returned unprobed.
    """
    candidates = thumbnail_candidates(video_id)
    async with _http_client(client, settings.THUMBNAIL_PROBE_TIMEOUT_SECONDS) as http:
        for candidate in candidates:
            try:
                response = await http.head(candidate)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                logger.info("Thumbnail probe failed for %s: %s", candidate, exc)
                continue
            if response.is_success:
                return candidate
            logger.debug("Thumbnail probe %s returned %s", candidate, response.status_code)
    logger.info("No thumbnail probe succeeded for video %s; using %s", video_id, candidates[0])
    return candidates[0]


def watch_page_url(video_id: str) -> str:
    return f"https://{settings.EMBED_HOST}/watch?{urlencode({'v': video_id})}"


async def fetch_video_page(
    url: str,
    video_id: str,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[str]:
    """
    Fetch the rendered HTML for a video page.

    Goes through the configured scraping integration when WEB_SCRAPER_URL is
    set. Otherwise only the canonical watch page for `video_id` is requested,
    never the caller-supplied URL. Returns None on any failure.
    """
    async with _http_client(client, settings.SCRAPE_TIMEOUT_SECONDS) as http:
        try:
            if settings.WEB_SCRAPER_URL:
                response = await http.post(settings.WEB_SCRAPER_URL, json={"url": url, "getText": False})
            else:
                response = await http.get(
                    watch_page_url(video_id),
                    headers={"Accept-Language": "en-US,en;q=0.9"},
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.warning("Video page fetch failed for %s: %s", url, exc)
            return None

    if not response.is_success:
        logger.warning("Video page fetch for %s returned HTTP %s", url, response.status_code)
        return None
    return response.text


def parse_video_metadata(page: str, defaults: ScrapedVideoData) -> ScrapedVideoData:
    """Pull title, description and channel out of a video page, keeping defaults for misses."""
    found: Dict[str, str] = {}

    title_match = TITLE_PATTERN.search(page)
    if title_match:
        title = TITLE_SUFFIX_PATTERN.sub("", title_match.group(1).strip())
        if title:
            found["title"] = html.unescape(title)

    description_match = DESCRIPTION_PATTERN.search(page)
    if description_match:
        found["description"] = html.unescape(description_match.group(1))

    for pattern in CHANNEL_PATTERNS:
        channel_match = pattern.search(page)
        # The platform's own brand name means no real author was embedded
        if channel_match and channel_match.group(1) != PLATFORM_NAME:
            found["channel_name"] = html.unescape(channel_match.group(1))
            break

    return replace(defaults, **found)


async def scrape_video_metadata(
    url: str,
    video_id: str,
    thumbnail_url: str,
    client: Optional[httpx.AsyncClient] = None,
) -> ScrapedVideoData:
    """Best-effort metadata for a video URL. Never raises."""
    defaults = ScrapedVideoData(
        title=DEFAULT_TITLE,
        thumbnail_url=thumbnail_url,
        channel_name=DEFAULT_CHANNEL,
        description=f"Video ID: {video_id}",
    )
    page = await fetch_video_page(url, video_id, client=client)
    if page is None:
        return defaults
    return parse_video_metadata(page, defaults)
