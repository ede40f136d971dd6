"""
Per-job context.

A JobContext is created when a request starts and passed to every stage. It
owns the job log file and the set of temporary files the job must remove
before it responds.
"""

import os
import sys
import time
from datetime import datetime
from enum import Enum
from pathlib import Path

from nanoid import generate

from media.service.constants import LOG_CONTEXT_MAX_CHARS


JOB_ID_ALPHABET = '0123456789abcdefghijklmnopqrstuvwxyz'


def write_log(log_path, message):
    """Append message to log file with timestamp"""
    if not log_path:
        print(f'ClipFetch (Log path not set): {message}', file=sys.stderr)
        return
    try:
        os.makedirs(os.path.dirname(log_path), exist_ok=True)
        with open(log_path, 'a') as f:
            timestamp = datetime.now().strftime('%Y-%m-%d %H:%M:%S')
            f.write(f'[{timestamp}] {message}\n')
    except OSError as e:
        print(f'ClipFetch (Log write to {log_path} failed: {e}): {message}', file=sys.stderr)


class JobState(Enum):
    INIT = 'init'
    IDENTITY_RESOLVED = 'identity_resolved'
    DOWNLOADED = 'downloaded'
    TRIMMED = 'trimmed'
    PROMOTED = 'promoted'
    PUBLISHED = 'published'
    FAILED = 'failed'


TERMINAL_STATES = (JobState.PUBLISHED, JobState.FAILED)


class TempArtifacts:
    """
    Temporary files created during a job.

    Paths leave the set only through release(), when ownership moves to the
    output directory. Everything still registered is deleted by cleanup().
    """

    def __init__(self):
        self._paths = []

    def __contains__(self, path):
        return Path(path) in self._paths

    def __iter__(self):
        return iter(list(self._paths))

    def __len__(self):
        return len(self._paths)

    def add(self, path):
        path = Path(path)
        if path not in self._paths:
            self._paths.append(path)

    def add_all(self, paths):
        for path in paths:
            self.add(path)

    def release(self, path):
        path = Path(path)
        if path in self._paths:
            self._paths.remove(path)

    def cleanup(self, logger=None):
        """Delete every registered path that still exists; returns the deleted paths"""
        if not self._paths:
            return []
        if logger:
            logger('Cleaning up temp files: ' + ', '.join(str(p) for p in self._paths))
        deleted = []
        for path in self._paths:
            try:
                if path.exists():
                    path.unlink()
                    deleted.append(path)
            except OSError as e:
                if logger:
                    logger(f'Warning: could not delete temp file {path}: {e}')
        return deleted


class JobContext:
    """
    State for one job: id, log file, temp artifacts and pipeline state.

    Args:
        log_dir: Directory the job log is written to
        log_basename: Log file prefix derived from the request (e.g. yt_<id>)
    """

    def __init__(self, log_dir, log_basename='yt_download'):
        self.job_id = generate(JOB_ID_ALPHABET, 8)
        self.started_at = int(time.time())
        self.log_name = f'{log_basename}_{self.started_at}_{self.job_id}'
        self.log_path = Path(log_dir) / f'{self.log_name}.log'
        self.temp_files = TempArtifacts()
        self.state = JobState.INIT
        self.failure_reason = None

    def log(self, message):
        write_log(self.log_path, message)

    def log_error(self, message, http_status, context=None):
        entry = f'Error (HTTP {http_status}): {message}'
        if context:
            context_str = context if isinstance(context, str) else repr(context)
            if len(context_str) > LOG_CONTEXT_MAX_CHARS:
                context_str = context_str[:LOG_CONTEXT_MAX_CHARS] + '... (truncated)'
            entry += f'\nContext/Details:\n{context_str}'
        self.log(entry)

    def advance(self, state):
        if self.state in TERMINAL_STATES:
            raise RuntimeError(f'Job {self.job_id} already finished in state {self.state.value}')
        self.state = state
        self.log(f'State: {state.value}')

    def fail(self, reason):
        self.failure_reason = reason
        self.advance(JobState.FAILED)

    def cleanup(self):
        return self.temp_files.cleanup(logger=self.log)
