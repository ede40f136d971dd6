"""
Download service.

Fetches the full video with the yt-dlp executable into the temp directory
and locates the file it produced.
"""

from pathlib import Path

from media.service import config
from media.service.command import is_missing_executable, run_command
from media.service.constants import PARTIAL_EXTENSIONS, TARGET_CONTAINER
from media.service.errors import (
    DependencyError,
    ExtractionError,
    IntegrityError,
    StageResult,
)


def build_ytdlp_args(
    url,
    file_stem,
    temp_dir,
    format_spec,
    merge_format,
    ffmpeg_path,
    user_agent,
    cookies_path=None,
    logger=None,
):
    """
    Build the yt-dlp argument list for a full download.

    Args:
        url: Source URL
        file_stem: Job-qualified name used for the output template
        temp_dir: Directory the download is written to
        format_spec: yt-dlp format selector
        merge_format: Container for merged audio/video streams
        ffmpeg_path: ffmpeg executable yt-dlp uses for merging
        user_agent: User-Agent header sent to the platform
        cookies_path: Optional cookies file, used only if readable
        logger: Optional callable(str) for logging

    Returns:
        list of str arguments (without the executable)
    """

    def log(message):
        if logger:
            logger(message)

    output_template = Path(temp_dir) / f'{file_stem}.%(ext)s'

    args = [
        '-o', str(output_template),
        '-f', format_spec,
        '--merge-output-format', merge_format,
        '--ffmpeg-location', str(ffmpeg_path),
    ]

    if cookies_path and _is_readable_file(cookies_path):
        args += ['--cookies', str(cookies_path)]
        log(f'Using cookies file: {cookies_path}')
    else:
        log(f'Warning: Cookies file not found at {cookies_path}. May encounter bot detection.')

    args += [
        '--no-playlist',
        '--no-overwrites',
        '--no-progress',
        '--user-agent', user_agent,
        '--extractor-args', 'youtube:player_client=android',
        '-v',
        url,
    ]
    return args


def _is_readable_file(path):
    path = Path(path)
    try:
        with open(path, 'rb'):
            return path.is_file()
    except OSError:
        return False


def download_stem(identity, job):
    """Temp file name stem for a job: video id qualified by the job id"""
    return f'{identity.video_id}_{job.job_id}'


def find_download_files(temp_dir, file_stem):
    """
    List files yt-dlp created for a job.

    Returns:
        tuple (all_files, candidates) where candidates exclude partial downloads
    """
    all_files = sorted(Path(temp_dir).glob(f'{file_stem}.*'))
    candidates = [f for f in all_files if f.suffix.lower() not in PARTIAL_EXTENSIONS]
    return all_files, candidates


def select_artifact(candidates, preferred_ext=TARGET_CONTAINER, logger=None):
    """
    Pick the downloaded file from the candidates.

    A single candidate is used as-is. With several, the first one with the
    preferred extension wins, else the first candidate, and a warning is
    logged.

    Returns:
        Path, or None if there are no candidates
    """

    def log(message):
        if logger:
            logger(message)

    if not candidates:
        return None

    if len(candidates) == 1:
        selected = candidates[0]
        if selected.suffix.lower() != preferred_ext:
            log(
                f'Warning: Downloaded file extension is not {preferred_ext.lstrip(".")}: '
                f'{selected.name}. yt-dlp might not have merged correctly or format '
                'selection was overridden.'
            )
        return selected

    log(
        'Warning: Multiple files found after download: '
        + ', '.join(str(c) for c in candidates)
        + f'. Using the first {preferred_ext.lstrip(".").upper()} or first overall.'
    )
    selected = next((c for c in candidates if c.suffix.lower() == preferred_ext), candidates[0])
    log(f'Selected file for processing: {selected}')
    return selected


def download_video(
    url,
    identity,
    job,
    temp_dir=None,
    ytdlp_path=None,
    ffmpeg_path=None,
    format_spec=None,
    cookies_path=None,
):
    """
    Download the full video for a job.

    Every file yt-dlp left for the job is registered with the job's
    temp files before the exit code is checked, so a failed download is
    still cleaned up.

    Args:
        url: Source URL
        identity: VideoIdentity for the job
        job: JobContext
        temp_dir, ytdlp_path, ffmpeg_path, format_spec, cookies_path:
            Optional overrides for the configured values

    Returns:
        StageResult with the downloaded file path, or the failure
    """
    temp_dir = Path(temp_dir or config.get_temp_dir())
    ytdlp_path = ytdlp_path or config.get_ytdlp_path()
    ffmpeg_path = ffmpeg_path or config.get_ffmpeg_path()
    format_spec = format_spec or config.get_ytdlp_format()
    if cookies_path is None:
        cookies_path = config.get_cookies_path()

    file_stem = download_stem(identity, job)
    job.log(f'Attempting full download for URL: {url}')

    args = build_ytdlp_args(
        url,
        file_stem,
        temp_dir,
        format_spec=format_spec,
        merge_format=config.get_merge_format(),
        ffmpeg_path=ffmpeg_path,
        user_agent=config.get_user_agent(),
        cookies_path=cookies_path,
        logger=job.log,
    )
    result = run_command(ytdlp_path, args, job=job, timeout=config.get_command_timeout())

    all_files, candidates = find_download_files(temp_dir, file_stem)
    job.temp_files.add_all(all_files)

    if not result.ok:
        message = f'yt-dlp download failed: {result.diagnosis}'
        if is_missing_executable(result.diagnosis):
            return StageResult.failure(DependencyError(message, context=result.output))
        return StageResult.failure(ExtractionError(message, context=result.output))

    selected = select_artifact(candidates, logger=job.log)
    if selected is None:
        job.log(
            'yt-dlp reported success, but no suitable file found matching pattern: '
            f'{temp_dir / file_stem}.*'
        )
        return StageResult.failure(
            IntegrityError(
                "Download completed, but couldn't locate the final video file in temp directory."
            )
        )

    job.log(f'Full download successful: {selected}')
    return StageResult.success(selected)
