"""
Pipeline constants.

Fixed values shared by the download, trim and command modules.
"""

# Exit code a POSIX shell reports when the executable cannot be found
NOT_FOUND_EXIT_CODE = 127

# Extensions yt-dlp leaves behind for in-progress downloads
PARTIAL_EXTENSIONS = ['.part', '.ytdl']

# Container we ask yt-dlp to merge into and ffmpeg to write
TARGET_CONTAINER = '.mp4'

# Smallest trimmed output we accept as a real video
MIN_SEGMENT_BYTES = 1024

# Lines starting with one of these are treated as the root cause of a failure
ERROR_LINE_PREFIXES = [
    'error',
    'fatal',
    'traceback',
    'unsupported url',
    'unable to extract',
    'private video',
    'video unavailable',
    'copyright',
    'download aborted',
    'invalid time',
    'permission denied',
    'no such file',
    'conversion failed',
    'muxing failed',
]

TRACEBACK_CONTEXT_LINES = 10
OUTPUT_PREVIEW_CHARS = 500
LOG_CONTEXT_MAX_CHARS = 2048

MAX_NAME_LENGTH = 150
FALLBACK_NAME = 'download'
