"""
Trim and publish service.

Cuts the requested segment out of the full download with ffmpeg (stream
copy, no re-encoding), or moves the full download to the output directory
when no range was requested.
"""

import os
import shutil
from pathlib import Path

from media.service import config
from media.service.command import is_missing_executable, run_command
from media.service.constants import TARGET_CONTAINER
from media.service.errors import (
    DependencyError,
    ExtractionError,
    FilesystemError,
    IntegrityError,
    StageResult,
    ValidationError,
)

STREAM_COPY_NOTE = (
    " (Note: Cutting with '-c copy' requires cuts near keyframes. Re-encoding might be "
    'needed for precise cuts, but is much slower and not implemented here.)'
)


def format_offset(seconds):
    """Seconds as passed to ffmpeg, e.g. 30 -> '30.000'"""
    return f'{seconds:.3f}'


def _segment_label(seconds):
    # '30.5' -> '30p5' so the name has a single dot before the extension
    return f'{seconds:.1f}'.replace('.', 'p')


def segment_suffix(start_time, end_time):
    """
    Filename suffix describing the cut, e.g. '_segment_30p0_45p0'.

    A missing bound is written as 'start' or 'end'.
    """
    start = _segment_label(start_time) if start_time is not None else 'start'
    end = _segment_label(end_time) if end_time is not None else 'end'
    return f'_segment_{start}_{end}'


def build_ffmpeg_cut_args(input_path, output_path, start_time=None, end_time=None):
    """
    Build the ffmpeg argument list for a stream-copy cut.

    The seek goes before the input for fast seeking. After the input a
    duration is used when both bounds are known, otherwise an absolute end.

    Returns:
        list of str arguments (without the executable)

    Raises:
        ValidationError: If the computed duration is not positive
    """
    args = ['-y']
    if start_time is not None:
        args += ['-ss', format_offset(start_time)]

    args += ['-i', str(input_path)]

    if end_time is not None:
        if start_time is not None:
            duration = end_time - start_time
            if duration <= 0:
                raise ValidationError('Calculated duration for cut is not positive.')
            args += ['-t', format_offset(duration)]
        else:
            args += ['-to', format_offset(end_time)]

    args += ['-map', '0', '-c', 'copy', '-movflags', '+faststart', str(output_path)]
    return args


def trim_segment(
    source_path,
    identity,
    job,
    start_time=None,
    end_time=None,
    output_dir=None,
    ffmpeg_path=None,
    min_bytes=None,
):
    """
    Cut a segment of the downloaded video into the output directory.

    The output path is registered with the job's temp files while ffmpeg
    runs and released only once the cut is verified, so a failed or
    truncated cut is removed by the job cleanup.

    Args:
        source_path: Full download
        identity: VideoIdentity for the job
        job: JobContext
        start_time: Optional start offset in seconds
        end_time: Optional end offset in seconds
        output_dir, ffmpeg_path, min_bytes: Optional overrides for configured values

    Returns:
        StageResult with the segment path, or the failure
    """
    output_dir = Path(output_dir or config.get_output_dir())
    ffmpeg_path = ffmpeg_path or config.get_ffmpeg_path()
    if min_bytes is None:
        min_bytes = config.get_min_segment_bytes()

    job.log('Cutting segment from downloaded file...')

    filename = f'{identity.base_name}{segment_suffix(start_time, end_time)}{TARGET_CONTAINER}'
    output_path = output_dir / filename

    try:
        args = build_ffmpeg_cut_args(source_path, output_path, start_time, end_time)
    except ValidationError as e:
        return StageResult.failure(e)

    job.temp_files.add(output_path)
    result = run_command(ffmpeg_path, args, job=job, timeout=config.get_command_timeout())

    if not result.ok:
        message = result.diagnosis
        if 'copy' in message.lower():
            message += STREAM_COPY_NOTE
        if is_missing_executable(result.diagnosis):
            return StageResult.failure(DependencyError(message, context=result.output))
        return StageResult.failure(ExtractionError(message, context=result.output))

    size = output_path.stat().st_size if output_path.exists() else None
    if size is None or size < min_bytes:
        job.log(f'Cut output missing or too small: {output_path} ({size} bytes)')
        return StageResult.failure(
            IntegrityError('Failed to cut video segment (output file small/missing).')
        )

    job.temp_files.release(output_path)
    job.log(f'Segment cut successfully: {output_path}')
    return StageResult.success(output_path)


def promote_download(source_path, identity, job, output_dir=None):
    """
    Move the full download to the output directory.

    Tries a rename first and falls back to copy-then-delete when the rename
    fails (e.g. across devices). The source is released from the job's temp
    files once the output owns the content.

    Returns:
        StageResult with the published path, or a FilesystemError
    """
    source_path = Path(source_path)
    output_dir = Path(output_dir or config.get_output_dir())
    output_path = output_dir / f'{identity.base_name}{source_path.suffix}'

    job.log('No time segment requested. Moving full download to final destination.')

    try:
        os.replace(source_path, output_path)
        job.log('Move successful.')
    except OSError as rename_error:
        job.log(f'Rename failed ({rename_error}), attempting copy...')
        try:
            shutil.copy2(source_path, output_path)
        except OSError as copy_error:
            return StageResult.failure(
                FilesystemError(
                    f'Failed to move full download to output directory. Copy error: {copy_error}'
                )
            )
        job.log('Copy succeeded.')
        try:
            source_path.unlink()
        except OSError as e:
            # Still registered, the job cleanup retries the delete
            job.log(f'Warning: could not remove source after copy: {e}')
            return StageResult.success(output_path)

    job.temp_files.release(source_path)
    return StageResult.success(output_path)
