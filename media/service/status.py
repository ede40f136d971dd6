"""
Prerequisite checks for the status page.

Probes the configured yt-dlp and ffmpeg executables and the output/temp
directories.
"""

import os
import re
from dataclasses import dataclass, field
from typing import List

from yt_dlp.version import __version__ as ytdlp_library_version

from media.service import config
from media.service.command import run_command
from media.service.constants import NOT_FOUND_EXIT_CODE


@dataclass
class CheckResult:
    label: str
    ok: bool
    detail: str


@dataclass
class PrerequisiteReport:
    """Result of all prerequisite checks"""

    ytdlp: CheckResult
    ffmpeg: CheckResult
    directories: List[CheckResult] = field(default_factory=list)
    ytdlp_library_version: str = ytdlp_library_version

    @property
    def all_ok(self):
        return self.ytdlp.ok and self.ffmpeg.ok and all(d.ok for d in self.directories)


def _looks_missing(result):
    output = result.output.lower()
    return (
        result.exit_code == NOT_FOUND_EXIT_CODE
        or 'no such file' in output
        or 'not found' in output
    )


def check_ytdlp(ytdlp_path=None):
    ytdlp_path = ytdlp_path or config.get_ytdlp_path()
    result = run_command(ytdlp_path, ['--version'], timeout=30)
    version = result.output.strip()

    if result.ok and re.match(r'^\d{4}\.\d{2}\.\d{2}', version):
        return CheckResult('yt-dlp', True, f'Installed (Version: {version})')
    if _looks_missing(result):
        return CheckResult(
            'yt-dlp',
            False,
            f'Not Found (Path: {ytdlp_path} incorrect, or yt-dlp not installed/accessible).',
        )
    return CheckResult('yt-dlp', False, f'Unknown Status (Command failed. RC: {result.exit_code})')


def check_ffmpeg(ffmpeg_path=None):
    ffmpeg_path = ffmpeg_path or config.get_ffmpeg_path()
    result = run_command(ffmpeg_path, ['-version'], timeout=30)

    if result.ok and 'ffmpeg version' in result.output.lower():
        return CheckResult('FFmpeg', True, 'Found (Required for cutting sections)')
    if _looks_missing(result):
        return CheckResult('FFmpeg', False, f'Not Found (Path: {ffmpeg_path}. Cannot cut sections).')
    return CheckResult(
        'FFmpeg', False, f'Check Failed (RC: {result.exit_code}. Cannot cut sections).'
    )


def check_directory(label, path):
    """Create the directory if needed and report whether it is writable"""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        return CheckResult(label, False, f'Not Creatable ({e})')
    writable = os.access(path, os.W_OK)
    return CheckResult(label, writable, 'Writable' if writable else 'Not Writable')


def check_prerequisites():
    """
    Run every check shown on the status page.

    Returns:
        PrerequisiteReport
    """
    output_dir = config.get_output_dir()
    temp_dir = config.get_temp_dir()
    return PrerequisiteReport(
        ytdlp=check_ytdlp(),
        ffmpeg=check_ffmpeg(),
        directories=[
            check_directory(f'Output Dir ({config.get_output_folder()})', output_dir),
            check_directory(f'Temp Dir ({temp_dir.name})', temp_dir),
        ],
    )
