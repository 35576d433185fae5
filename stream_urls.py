"""
Stream URL helpers.

Turns whatever the operator pastes or picks from a preset list into the
address a tile should embed: YouTube watch links become autoplaying muted
embeds, HLS playlists are wrapped into the bundled player page and anything
else passes through untouched. Nothing here touches the network.
"""

from __future__ import annotations

import re
from typing import Optional
from urllib.parse import parse_qsl, quote, urlsplit

YOUTUBE_HOSTS = ("youtube.com", "m.youtube.com", "youtu.be")
YOUTUBE_EMBED = "https://www.youtube.com/embed/{vid}?autoplay=1&mute=1"

HLS_PLAYER_PAGE = "player.html"
BLANK_PAGE = "about:blank"

# encodeURIComponent leaves these unescaped on top of quote()'s own set
_URI_COMPONENT_SAFE = "!~*'()"

_HLS_RE = re.compile(r"\.m3u8(\?|$)", re.IGNORECASE)
_IFRAME_RE = re.compile(r'<iframe[^>]+src="([^"]+)"', re.IGNORECASE)


def extract_iframe_src(text: str) -> str:
    m = _IFRAME_RE.search(text or "")
    if m:
        return m.group(1)
    return text


def youtube_video_id(url: str) -> Optional[str]:
    """Return the video id of a YouTube link, or None."""
    try:
        p = urlsplit(url.strip())
    except ValueError:
        return None
    host = re.sub(r"^www\.", "", p.hostname or "")
    if host not in YOUTUBE_HOSTS:
        return None

    if host == "youtu.be":
        return p.path[1:] or None
    for key, value in parse_qsl(p.query, keep_blank_values=True):
        if key == "v":
            if value:
                return value
            break
    if p.path.startswith("/embed/"):
        return p.path.split("/")[-1] or None
    return None


def is_hls_url(url: str) -> bool:
    try:
        p = urlsplit(url.strip())
    except ValueError:
        return False
    tail = p.path + (f"?{p.query}" if p.query else "")
    return bool(_HLS_RE.search(tail))


def normalize_stream_url(url: str) -> str:
    """Map a user entered URL to the address that is actually embedded.

    Best effort: anything that does not parse as an absolute URL comes back
    exactly as given.
    """
    if not url:
        return ""
    try:
        p = urlsplit(url.strip())
    except ValueError:
        return url
    if not p.scheme or not (p.netloc or p.path):
        return url

    vid = youtube_video_id(url)
    if vid:
        return YOUTUBE_EMBED.format(vid=vid)

    if is_hls_url(url):
        return f"{HLS_PLAYER_PAGE}?src={quote(url, safe=_URI_COMPONENT_SAFE)}"
    return url


def is_relative_address(address: str) -> bool:
    """True for addresses like ``player.html?src=...`` that need a base."""
    if not address:
        return False
    try:
        return not urlsplit(address).scheme
    except ValueError:
        return False
