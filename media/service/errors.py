"""
Job failure taxonomy.

Every failure a job can report maps to one of these classes, each of which
carries the HTTP status the endpoint responds with.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


class JobError(Exception):
    """Base class for failures reported back to the caller"""

    http_status = 500

    def __init__(self, message, context=None):
        super().__init__(message)
        self.message = message
        self.context = context


class ValidationError(JobError):
    """Malformed request: bad JSON, missing URL, inconsistent time range"""

    http_status = 400


class DependencyError(JobError):
    """yt-dlp or ffmpeg is missing or cannot be executed"""

    pass


class ExtractionError(JobError):
    """The external tool ran but reported a failure"""

    pass


class IntegrityError(JobError):
    """A tool reported success but its output is missing, ambiguous or too small"""

    pass


class FilesystemError(JobError):
    """Directories not creatable/writable, or the final move failed"""

    pass


@dataclass(frozen=True)
class StageResult:
    """Outcome of a single pipeline stage: either a path or an error"""

    path: Optional[Path] = None
    error: Optional[JobError] = None

    @property
    def ok(self):
        return self.error is None

    @classmethod
    def success(cls, path):
        return cls(path=Path(path))

    @classmethod
    def failure(cls, error):
        return cls(error=error)
