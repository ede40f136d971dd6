"""
Tests for the download endpoint and status page
"""

import json
import shutil
import tempfile
from pathlib import Path
from unittest.mock import patch

from django.test import SimpleTestCase, override_settings

from media.service.pipeline import JobResult
from media.service.status import CheckResult, PrerequisiteReport


def fake_report(ok=True):
    return PrerequisiteReport(
        ytdlp=CheckResult('yt-dlp', ok, 'Installed (Version: 2025.01.15)' if ok else 'Not Found'),
        ffmpeg=CheckResult('FFmpeg', True, 'Found (Required for cutting sections)'),
        directories=[CheckResult('Output Dir (youtube_downloads)', True, 'Writable')],
    )


class DownloadViewTest(SimpleTestCase):
    def setUp(self):
        self.output_dir = Path(tempfile.mkdtemp())
        self.settings_override = override_settings(
            CLIPFETCH_OUTPUT_DIR=str(self.output_dir),
            CLIPFETCH_PUBLIC_BASE_URL='',
            CLIPFETCH_YTDLP_PATH='/opt/bin/yt-dlp',
        )
        self.settings_override.enable()

    def tearDown(self):
        self.settings_override.disable()
        shutil.rmtree(self.output_dir, ignore_errors=True)

    def _post(self, payload):
        body = payload if isinstance(payload, str) else json.dumps(payload)
        return self.client.post('/', data=body, content_type='application/json')

    @patch('media.views.check_prerequisites')
    def test_get_renders_status_page(self, mock_check):
        mock_check.return_value = fake_report()

        response = self.client.get('/')

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Installed (Version: 2025.01.15)')
        self.assertContains(response, '/opt/bin/yt-dlp')
        self.assertContains(response, 'curl -X POST')

    @patch('media.views.check_prerequisites')
    def test_get_shows_failed_checks(self, mock_check):
        mock_check.return_value = fake_report(ok=False)

        response = self.client.get('/')

        self.assertEqual(response.status_code, 200)
        self.assertContains(response, 'Not Found')

    def test_other_methods_rejected(self):
        response = self.client.put('/', data='{}', content_type='application/json')

        self.assertEqual(response.status_code, 405)
        self.assertEqual(
            response.json(),
            {'error': 'Method not allowed. Use GET for documentation or POST with JSON body.'},
        )

    @patch('media.views.process_request')
    def test_post_success(self, mock_process):
        mock_process.return_value = JobResult(
            url='http://testserver/youtube_downloads/dQw4w9WgXcQ.mp4',
            filename='dQw4w9WgXcQ.mp4',
        )

        response = self._post({'url': 'https://youtu.be/dQw4w9WgXcQ'})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {
                'url': 'http://testserver/youtube_downloads/dQw4w9WgXcQ.mp4',
                'filename': 'dQw4w9WgXcQ.mp4',
            },
        )
        raw_body, = mock_process.call_args[0]
        self.assertEqual(json.loads(raw_body), {'url': 'https://youtu.be/dQw4w9WgXcQ'})
        self.assertEqual(mock_process.call_args[1]['base_url'], 'http://testserver/')

    @patch('media.views.process_request')
    def test_post_failure_uses_job_status(self, mock_process):
        mock_process.return_value = JobResult(error='yt-dlp download failed: boom', status=500)

        response = self._post({'url': 'https://youtu.be/dQw4w9WgXcQ'})

        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'error': 'yt-dlp download failed: boom'})

    @patch('media.views.process_request')
    @override_settings(CLIPFETCH_PUBLIC_BASE_URL='https://cdn.example.com')
    def test_configured_base_url_passed_to_job(self, mock_process):
        mock_process.return_value = JobResult(url='x', filename='x')

        self._post({'url': 'https://youtu.be/dQw4w9WgXcQ'})

        self.assertEqual(mock_process.call_args[1]['base_url'], 'https://cdn.example.com')

    @patch('media.service.download.run_command')
    def test_bad_requests_are_400_without_commands(self, mock_run):
        cases = [
            ('{not json', None),
            ({}, "A valid 'url' is required."),
            ({'url': 'ftp//broken'}, "A valid 'url' is required."),
            (
                {'url': 'https://youtu.be/dQw4w9WgXcQ', 'start_time': 45, 'end_time': 30},
                "'start_time' must be less than 'end_time'.",
            ),
            ({'url': 'https://example.com/watch'}, 'Could not extract YouTube Video ID from URL.'),
        ]
        for payload, message in cases:
            with self.subTest(payload=payload):
                response = self._post(payload)

                self.assertEqual(response.status_code, 400)
                error = response.json()['error']
                if message:
                    self.assertEqual(error, message)
                else:
                    self.assertTrue(error.startswith('Invalid JSON received:'))
        mock_run.assert_not_called()
        self.assertTrue(list(self.output_dir.glob('yt_*.log')))
