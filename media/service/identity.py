"""
Video identity and safe filenames.

Derives the 11-character video id from a URL and a filesystem-safe base
name for output files.
"""

import os
import re
from dataclasses import dataclass

from media.service.constants import FALLBACK_NAME, MAX_NAME_LENGTH
from media.service.errors import ValidationError


VIDEO_ID_PATTERNS = [
    re.compile(r'(?:https?://)?(?:www\.)?youtube\.com/watch\?v=([a-zA-Z0-9_-]{11})'),
    re.compile(r'(?:https?://)?(?:www\.)?youtu\.be/([a-zA-Z0-9_-]{11})'),
    re.compile(r'(?:https?://)?(?:www\.)?youtube\.com/embed/([a-zA-Z0-9_-]{11})'),
    re.compile(r'(?:https?://)?(?:www\.)?youtube\.com/v/([a-zA-Z0-9_-]{11})'),
    re.compile(r'(?:https?://)?(?:www\.)?youtube\.com/shorts/([a-zA-Z0-9_-]{11})'),
]

# Control characters and characters that are unsafe in paths
_UNSAFE_CHARS_RE = re.compile(r'[\x00-\x1f\x7f-\x9f/?<>\\:*|"]')
_EDGE_CHARS_RE = re.compile(r'^[\s._-]+|[\s._-]+$')


@dataclass(frozen=True)
class VideoIdentity:
    """Identifier used for temp paths and the base name for output files"""

    video_id: str
    base_name: str


def extract_video_id(url):
    """
    Extract the video id from watch, short-link, embed, /v/ and shorts URLs.

    Returns:
        str id, or None if the URL has no recognizable id
    """
    if not isinstance(url, str):
        return None
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def sanitize_filename(raw):
    """
    Make a user supplied name safe to use as a file name.

    Removes control and path characters, replaces spaces with underscores,
    trims dots, dashes, underscores and whitespace from both ends and limits
    the result to 150 characters. Applying it twice gives the same result.

    Raises:
        ValidationError: If a path separator survives sanitizing
    """
    name = _UNSAFE_CHARS_RE.sub('', raw or '')
    name = name.replace(' ', '_')
    name = _EDGE_CHARS_RE.sub('', name)
    name = _EDGE_CHARS_RE.sub('', name[:MAX_NAME_LENGTH])

    if not name:
        return FALLBACK_NAME

    for sep in (os.sep, os.altsep):
        if sep and sep in name:
            raise ValidationError(f'Invalid file name: {raw!r}')

    return name


def resolve_identity(url, custom_name=None):
    """
    Build the identity for a request.

    Args:
        url: Source video URL
        custom_name: Optional user supplied base name

    Returns:
        VideoIdentity

    Raises:
        ValidationError: If no video id can be extracted
    """
    video_id = extract_video_id(url)
    if not video_id:
        raise ValidationError('Could not extract YouTube Video ID from URL.', context=url)

    if custom_name and custom_name.strip():
        base_name = sanitize_filename(custom_name)
    else:
        base_name = video_id

    return VideoIdentity(video_id=video_id, base_name=base_name)


def build_log_basename(data):
    """Log file prefix for a request payload, usable before it is validated"""
    if not isinstance(data, dict):
        return f'yt_{FALLBACK_NAME}'

    name = data.get('name')
    if isinstance(name, str) and name.strip():
        return f'yt_{sanitize_filename(name)}'

    video_id = extract_video_id(data.get('url'))
    if video_id:
        return f'yt_{video_id}'

    return f'yt_{FALLBACK_NAME}'
