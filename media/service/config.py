"""
Configuration adapter for pipeline settings.

Centralizes access to Django settings and environment variables,
ensuring consistent configuration across CLI and web app.
"""

from pathlib import Path

from django.conf import settings


def get_ytdlp_path():
    """Path of the yt-dlp executable"""
    return settings.CLIPFETCH_YTDLP_PATH


def get_ffmpeg_path():
    """Path of the ffmpeg executable"""
    return settings.CLIPFETCH_FFMPEG_PATH


def get_output_folder():
    """Public folder name used in result URLs"""
    return settings.CLIPFETCH_OUTPUT_FOLDER


def get_output_dir():
    """Directory final videos and job logs are written to"""
    return Path(settings.CLIPFETCH_OUTPUT_DIR)


def get_temp_dir():
    """Private directory for full downloads"""
    return Path(settings.CLIPFETCH_TEMP_DIR)


def get_cookies_path():
    """
    Get the cookies file passed to yt-dlp.

    Returns:
        Path or None if no cookies file is configured
    """
    cookies = settings.CLIPFETCH_COOKIES_PATH
    return Path(cookies) if cookies else None


def get_ytdlp_format():
    """Default yt-dlp format selector"""
    return settings.CLIPFETCH_YTDLP_FORMAT


def get_merge_format():
    """Container yt-dlp merges separate streams into"""
    return settings.CLIPFETCH_MERGE_FORMAT


def get_user_agent():
    return settings.CLIPFETCH_USER_AGENT


def get_command_timeout():
    """
    Get the execution-time ceiling for a single external command.

    Returns:
        int seconds, or None when no ceiling is configured
    """
    timeout = settings.CLIPFETCH_MAX_EXECUTION_TIME
    return timeout or None


def get_min_segment_bytes():
    return settings.CLIPFETCH_MIN_SEGMENT_BYTES


def get_public_base_url():
    """Base URL for published files; empty means derive it from the request"""
    return settings.CLIPFETCH_PUBLIC_BASE_URL
