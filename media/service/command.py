"""
External command execution and failure diagnosis.

Runs yt-dlp/ffmpeg with a structured argument list (no shell), captures
stdout and stderr interleaved, and turns a failed run into a readable
message.
"""

import re
import shlex
import subprocess
from dataclasses import dataclass, field
from typing import Optional, Tuple

from media.service.constants import (
    ERROR_LINE_PREFIXES,
    NOT_FOUND_EXIT_CODE,
    OUTPUT_PREVIEW_CHARS,
    TRACEBACK_CONTEXT_LINES,
)

TIMEOUT_EXIT_CODE = -1

NOT_FOUND_MARKERS = ('no such file or directory', 'not found')

MISSING_EXECUTABLE_PREFIX = 'Command execution failed: Executable not found or inaccessible.'

_ERROR_LINE_RE = re.compile(
    r'^(' + '|'.join(re.escape(p) for p in ERROR_LINE_PREFIXES) + r')', re.IGNORECASE
)


@dataclass(frozen=True)
class CommandResult:
    """Result of one external command invocation"""

    exit_code: int
    output_lines: Tuple[str, ...] = field(default_factory=tuple)
    diagnosis: Optional[str] = None

    @property
    def ok(self):
        return self.exit_code == 0

    @property
    def output(self):
        return '\n'.join(self.output_lines)


def format_command(executable, args):
    """Render a command for the log (display only, never executed)"""
    return ' '.join(shlex.quote(str(part)) for part in [executable, *args])


def classify_error(exit_code, output_lines, executable):
    """
    Turn a failed command's output into a diagnosis.

    Checks, in order: missing executable, Python traceback, the last line
    that starts with a known error phrase, and finally a preview of the
    whole output.

    Args:
        exit_code: Process exit code
        output_lines: Captured output lines (stdout and stderr interleaved)
        executable: Configured path of the executable that was run

    Returns:
        str diagnosis, or None when exit_code is 0
    """
    if exit_code == 0:
        return None

    lines = list(output_lines)
    executable = str(executable)

    if exit_code == NOT_FOUND_EXIT_CODE or _mentions_missing_executable(lines, executable):
        return (
            f"{MISSING_EXECUTABLE_PREFIX} Path used: '{executable}'. "
            'Verify path, OS permissions, CageFS, SELinux.'
        )

    if any('Traceback' in line for line in lines):
        return 'Command failed: ' + ' | '.join(lines[-TRACEBACK_CONTEXT_LINES:])

    for line in reversed(lines):
        stripped = line.strip()
        if _ERROR_LINE_RE.match(stripped):
            return f'Command failed: {stripped}'

    preview = re.sub(r'\s+', ' ', '\n'.join(lines))[:OUTPUT_PREVIEW_CHARS]
    return (
        f'Command failed with exit code {exit_code}. Check full output in log. '
        f'Preview: {preview}'
    )


def _mentions_missing_executable(lines, executable):
    needle = executable.lower()
    for line in lines:
        lowered = line.lower()
        if needle in lowered and any(marker in lowered for marker in NOT_FOUND_MARKERS):
            return True
    return False


def is_missing_executable(diagnosis):
    return bool(diagnosis) and diagnosis.startswith(MISSING_EXECUTABLE_PREFIX)


def _decode(output):
    if output is None:
        return ''
    if isinstance(output, bytes):
        return output.decode('utf-8', errors='replace')
    return output


def run_command(executable, args, job=None, timeout=None):
    """
    Run an external command and capture its combined output.

    Never raises for a non-zero exit; the failure is described by the
    returned CommandResult.diagnosis instead. An executable that cannot be
    spawned is reported with exit code 127, like a shell would.

    Args:
        executable: Path of the program to run
        args: Argument list (each item passed as-is, no shell parsing)
        job: Optional JobContext whose log receives the command and its result
        timeout: Optional ceiling in seconds

    Returns:
        CommandResult
    """

    def log(message):
        if job:
            job.log(message)

    cmd = [str(executable)] + [str(a) for a in args]
    log(f'Executing Command: {format_command(executable, args)}')

    try:
        completed = subprocess.run(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors='replace',
            timeout=timeout,
        )
        exit_code = completed.returncode
        output = _decode(completed.stdout)
    except OSError as e:
        exit_code = NOT_FOUND_EXIT_CODE
        output = f'{executable}: {e.strerror or e}: not found'
    except subprocess.TimeoutExpired as e:
        exit_code = TIMEOUT_EXIT_CODE
        output = _decode(e.output) + f'\nerror: command timed out after {timeout} seconds'

    output_lines = tuple(output.splitlines())
    diagnosis = classify_error(exit_code, output_lines, executable)
    result = CommandResult(exit_code=exit_code, output_lines=output_lines, diagnosis=diagnosis)

    if result.ok:
        log('Result: exit code 0')
    else:
        log(
            f'Command Execution Failed (Return Code: {exit_code}). Full Output:\n{result.output}'
        )
        log(f'Result: {diagnosis}')

    return result
