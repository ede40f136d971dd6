"""
Job pipeline entrypoint.

Provides the functions that take a request from raw input to a published
file (or a reported failure), used by both the web endpoint and the CLI.

A job moves through resolve identity -> download -> trim or promote ->
publish. Temporary files are removed on every exit path before the result
is returned.
"""

import json
import math
import os
import re
import traceback
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator

from media.service import config
from media.service.download import download_video
from media.service.errors import FilesystemError, IntegrityError, JobError, ValidationError
from media.service.identity import build_log_basename, resolve_identity
from media.service.job import TERMINAL_STATES, JobContext, JobState
from media.service.trim import promote_download, trim_segment

_NUMERIC_RE = re.compile(r'^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$')


@dataclass(frozen=True)
class JobRequest:
    """Validated request for one job"""

    source_url: str
    custom_name: Optional[str] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None

    @property
    def has_range(self):
        return self.start_time is not None or self.end_time is not None


@dataclass
class JobResult:
    """Terminal result of a job: either url/filename or error/status"""

    url: Optional[str] = None
    filename: Optional[str] = None
    error: Optional[str] = None
    status: int = 200
    log_path: Optional[Path] = None

    @property
    def ok(self):
        return self.error is None

    def as_response_data(self):
        if self.ok:
            return {'url': self.url, 'filename': self.filename}
        return {'error': self.error}


def _parse_seconds(data, key):
    """Read an optional number of seconds, accepting numeric strings"""
    value = data.get(key)
    if value is None:
        return None

    number = None
    try:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            number = float(value)
        elif isinstance(value, str) and _NUMERIC_RE.match(value.strip()):
            number = float(value.strip())
    except (OverflowError, ValueError):
        number = None

    if number is None or not math.isfinite(number):
        raise ValidationError(f"'{key}' must be numeric or null.", context=data)
    return number


def parse_job_request(data):
    """
    Validate a decoded request payload.

    Args:
        data: dict with url (required), name, start_time, end_time

    Returns:
        JobRequest

    Raises:
        ValidationError: With the message reported to the caller
    """
    if not isinstance(data, dict):
        raise ValidationError('Invalid JSON received: expected a JSON object.', context=data)

    name = data.get('name')
    custom_name = name.strip() if isinstance(name, str) else None

    start_time = _parse_seconds(data, 'start_time')
    if start_time is not None and start_time < 0:
        raise ValidationError("'start_time' must be a positive number (seconds).", context=data)

    end_time = _parse_seconds(data, 'end_time')
    if end_time is not None and end_time <= 0:
        raise ValidationError("'end_time' must be a positive number greater than 0.", context=data)

    if start_time is not None and end_time is not None and start_time >= end_time:
        raise ValidationError("'start_time' must be less than 'end_time'.", context=data)

    url = data.get('url')
    if not url or not isinstance(url, str):
        raise ValidationError("A valid 'url' is required.", context=data)
    try:
        URLValidator()(url)
    except DjangoValidationError:
        raise ValidationError("A valid 'url' is required.", context=data)

    return JobRequest(
        source_url=url,
        custom_name=custom_name or None,
        start_time=start_time,
        end_time=end_time,
    )


def decode_payload(raw_body):
    """
    Decode a JSON request body.

    Returns:
        The decoded value

    Raises:
        ValidationError: If the body is not valid JSON
    """
    if isinstance(raw_body, bytes):
        raw_body = raw_body.decode('utf-8', errors='replace')
    try:
        return json.loads(raw_body)
    except ValueError as e:
        raise ValidationError(f'Invalid JSON received: {e}', context=raw_body)


def ensure_directory(path, label):
    """Create a pipeline directory if needed and check it is writable"""
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError:
        raise FilesystemError(f'Failed to create {label} directory: {path}.')
    if not os.access(path, os.W_OK):
        raise FilesystemError(f'{label.capitalize()} directory not writable: {path}')


def build_public_url(base_url, output_folder, filename):
    parts = [(base_url or '').rstrip('/'), output_folder, filename]
    return '/'.join(p for p in parts if p)


def _fail(job, error):
    job.log_error(error.message, error.http_status, error.context)
    if job.state not in TERMINAL_STATES:
        job.fail(error.message)
    return JobResult(error=error.message, status=error.http_status, log_path=job.log_path)


def run_job(job_request, job, base_url=''):
    """
    Run one job to completion.

    Args:
        job_request: Validated JobRequest
        job: JobContext that receives the log and owns the temp files
        base_url: Public base URL, used when none is configured

    Returns:
        JobResult (never raises for job failures)
    """
    output_dir = config.get_output_dir()
    temp_dir = config.get_temp_dir()

    try:
        identity = resolve_identity(job_request.source_url, job_request.custom_name)
        job.advance(JobState.IDENTITY_RESOLVED)
        job.log(
            f'Starting YouTube download job (Log ID: {job.log_name}). Video ID: {identity.video_id}'
            + (f', Custom Name: {job_request.custom_name}' if job_request.custom_name else '')
        )

        ensure_directory(output_dir, 'output')
        ensure_directory(temp_dir, 'temp')

        stage = download_video(job_request.source_url, identity, job, temp_dir=temp_dir)
        if not stage.ok:
            return _fail(job, stage.error)
        job.advance(JobState.DOWNLOADED)

        if job_request.has_range:
            stage = trim_segment(
                stage.path,
                identity,
                job,
                start_time=job_request.start_time,
                end_time=job_request.end_time,
                output_dir=output_dir,
            )
            next_state = JobState.TRIMMED
        else:
            stage = promote_download(stage.path, identity, job, output_dir=output_dir)
            next_state = JobState.PROMOTED

        if not stage.ok:
            return _fail(job, stage.error)
        job.advance(next_state)

        final_path = stage.path
        if not final_path.exists():
            return _fail(
                job,
                IntegrityError(
                    'Processing finished, but final output file path is missing or invalid.'
                ),
            )

        public_url = build_public_url(
            config.get_public_base_url() or base_url, config.get_output_folder(), final_path.name
        )
        job.advance(JobState.PUBLISHED)
        job.log(f'Processing successful. Final URL: {public_url}')
        return JobResult(url=public_url, filename=final_path.name, log_path=job.log_path)

    except JobError as e:
        return _fail(job, e)
    except Exception as e:
        return _fail(job, JobError(f'YouTube processing failed: {e}', context=traceback.format_exc()))
    finally:
        job.cleanup()


def process_request(raw_body, base_url=''):
    """
    Run a job for a raw JSON request body.

    The job log is created before validation so rejected requests are
    logged too.

    Returns:
        JobResult
    """
    try:
        data = decode_payload(raw_body)
    except ValidationError as e:
        data = None
        decode_error = e
    else:
        decode_error = None

    job = JobContext(config.get_output_dir(), build_log_basename(data))

    if decode_error:
        return _fail(job, decode_error)

    try:
        job_request = parse_job_request(data)
    except ValidationError as e:
        return _fail(job, e)

    return run_job(job_request, job, base_url=base_url)
