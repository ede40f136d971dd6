"""
Tests for service/command.py
"""

import shutil
import subprocess
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

from django.test import SimpleTestCase

from media.service.command import (
    CommandResult,
    classify_error,
    is_missing_executable,
    run_command,
)
from media.service.job import JobContext

YTDLP = '/usr/local/bin/yt-dlp'


class ClassifyErrorTest(SimpleTestCase):
    """Tests for failure diagnosis"""

    def test_success_has_no_diagnosis(self):
        """Exit code 0 never produces a diagnosis, whatever the output"""
        self.assertIsNone(classify_error(0, ['ERROR: Video unavailable', 'Traceback'], YTDLP))

    def test_exit_127_is_missing_executable(self):
        """Exit code 127 wins over any other error text"""
        lines = ['Traceback (most recent call last):', 'ERROR: Private video']
        diagnosis = classify_error(127, lines, YTDLP)
        self.assertTrue(is_missing_executable(diagnosis))
        self.assertIn(YTDLP, diagnosis)

    def test_not_found_message_naming_executable(self):
        """Shell style not-found output mentioning the path is a missing executable"""
        lines = [f'sh: 1: {YTDLP}: not found']
        diagnosis = classify_error(2, lines, YTDLP)
        self.assertTrue(is_missing_executable(diagnosis))

    def test_not_found_without_executable_path(self):
        """'not found' about something else is not a missing executable"""
        lines = ['ERROR: [youtube] abc: Requested format is not found']
        diagnosis = classify_error(1, lines, YTDLP)
        self.assertFalse(is_missing_executable(diagnosis))
        self.assertEqual(diagnosis, 'Command failed: ERROR: [youtube] abc: Requested format is not found')

    def test_traceback_returns_last_ten_lines(self):
        """A Python traceback keeps the last 10 lines of context"""
        lines = [f'line {i}' for i in range(15)] + ['Traceback (most recent call last):']
        lines += ['  File "x.py"', 'KeyError: 1']
        diagnosis = classify_error(1, lines, YTDLP)
        self.assertTrue(diagnosis.startswith('Command failed: '))
        self.assertIn('KeyError: 1', diagnosis)
        self.assertEqual(diagnosis.count(' | '), 9)
        self.assertNotIn('line 7', diagnosis)

    def test_last_matching_line_wins(self):
        """Lines are scanned from the end; the last known error line is reported"""
        lines = [
            'ERROR: first problem',
            '[info] some context',
            'WARNING: ignored',
            '  Video unavailable. This video is private  ',
            '[debug] trailing noise',
        ]
        diagnosis = classify_error(1, lines, YTDLP)
        self.assertEqual(diagnosis, 'Command failed: Video unavailable. This video is private')

    def test_vocabulary_match_is_case_insensitive(self):
        diagnosis = classify_error(1, ['conversion FAILED!'], '/usr/bin/ffmpeg')
        self.assertEqual(diagnosis, 'Command failed: conversion FAILED!')

    def test_vocabulary_anchored_at_line_start(self):
        """Error words in the middle of a line do not match"""
        diagnosis = classify_error(3, ['[download] no error here'], YTDLP)
        self.assertTrue(diagnosis.startswith('Command failed with exit code 3.'))

    def test_fallback_preview(self):
        """Unrecognized output falls back to a whitespace-collapsed preview"""
        lines = ['something   odd', '\tand more'] + ['x' * 600]
        diagnosis = classify_error(2, lines, YTDLP)
        self.assertTrue(diagnosis.startswith('Command failed with exit code 2.'))
        preview = diagnosis.split('Preview: ', 1)[1]
        self.assertTrue(preview.startswith('something odd and more'))
        self.assertEqual(len(preview), 500)


class RunCommandTest(SimpleTestCase):
    """Tests for external command execution"""

    def setUp(self):
        self.log_dir = tempfile.mkdtemp()
        self.job = JobContext(self.log_dir, 'yt_test')

    def tearDown(self):
        shutil.rmtree(self.log_dir, ignore_errors=True)

    @patch('media.service.command.subprocess.run')
    def test_argument_list_passed_without_shell(self, mock_run):
        """Arguments are passed as a list; shell metacharacters stay literal"""
        mock_run.return_value = MagicMock(returncode=0, stdout='ok\n')

        result = run_command('/usr/bin/ffmpeg', ['-i', 'a b; rm -rf /', '$(x)'], job=self.job)

        cmd = mock_run.call_args[0][0]
        self.assertEqual(cmd, ['/usr/bin/ffmpeg', '-i', 'a b; rm -rf /', '$(x)'])
        self.assertNotIn('shell', mock_run.call_args[1])
        self.assertEqual(mock_run.call_args[1]['stderr'], subprocess.STDOUT)
        self.assertTrue(result.ok)
        self.assertIsNone(result.diagnosis)
        self.assertEqual(result.output_lines, ('ok',))

    @patch('media.service.command.subprocess.run')
    def test_non_zero_exit_does_not_raise(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout='ERROR: Private video\n')

        result = run_command(YTDLP, ['url'], job=self.job)

        self.assertFalse(result.ok)
        self.assertEqual(result.exit_code, 1)
        self.assertEqual(result.diagnosis, 'Command failed: ERROR: Private video')

    @patch('media.service.command.subprocess.run')
    def test_logs_command_and_result(self, mock_run):
        mock_run.return_value = MagicMock(returncode=1, stdout='ERROR: boom\n')

        run_command(YTDLP, ['--version'], job=self.job)

        log = self.job.log_path.read_text()
        self.assertIn(f'Executing Command: {YTDLP} --version', log)
        self.assertIn('Command Execution Failed (Return Code: 1)', log)
        self.assertIn('Result: Command failed: ERROR: boom', log)

    @patch('media.service.command.subprocess.run')
    def test_timeout_reported_as_failure(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd=[YTDLP], timeout=5, output=b'[download] 5%')

        result = run_command(YTDLP, ['url'], timeout=5)

        self.assertFalse(result.ok)
        self.assertIn('timed out after 5 seconds', result.diagnosis)

    def test_missing_executable_reports_127(self):
        """An executable that does not exist is reported like a shell would"""
        missing = str(Path(self.log_dir) / 'no-such-yt-dlp')

        result = run_command(missing, ['--version'], job=self.job)

        self.assertEqual(result.exit_code, 127)
        self.assertTrue(is_missing_executable(result.diagnosis))
        self.assertIn(missing, result.diagnosis)

    def test_path_under_regular_file_reports_127(self):
        regular_file = Path(self.log_dir) / 'bin'
        regular_file.write_text('not a directory')
        executable = str(regular_file / 'yt-dlp')

        result = run_command(executable, ['--version'], job=self.job)

        self.assertEqual(result.exit_code, 127)
        self.assertTrue(is_missing_executable(result.diagnosis))
        self.assertIn(executable, result.diagnosis)

    def test_unrunnable_file_reports_127(self):
        garbage = Path(self.log_dir) / 'yt-dlp'
        garbage.write_bytes(b'\x00\x01\x02 not a program')
        garbage.chmod(0o755)

        result = run_command(str(garbage), ['--version'])

        self.assertEqual(result.exit_code, 127)
        self.assertTrue(is_missing_executable(result.diagnosis))

    @unittest.skipUnless(Path('/bin/sh').exists(), 'requires /bin/sh')
    def test_stdout_and_stderr_interleaved_in_order(self):
        result = run_command('/bin/sh', ['-c', 'echo one; echo two 1>&2; echo three'])

        self.assertTrue(result.ok)
        self.assertEqual(result.output_lines, ('one', 'two', 'three'))

    def test_command_result_output_joins_lines(self):
        result = CommandResult(exit_code=0, output_lines=('a', 'b'))
        self.assertEqual(result.output, 'a\nb')
