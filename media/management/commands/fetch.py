"""
Django management command for running a download job.

Runs the same pipeline as the web endpoint in the foreground: downloads the
video, optionally cuts a segment and prints the public URL of the result.
"""

import json

from django.core.management.base import BaseCommand, CommandError

from media.service import config
from media.service.errors import ValidationError
from media.service.identity import build_log_basename
from media.service.job import JobContext
from media.service.pipeline import parse_job_request, run_job


class Command(BaseCommand):
    help = 'Download a video (optionally a segment of it) into the output directory'

    def add_arguments(self, parser):
        parser.add_argument('url', type=str, help='Video URL')
        parser.add_argument('--name', type=str, help='Custom base name for the output file')
        parser.add_argument('--start', type=str, help='Segment start in seconds')
        parser.add_argument('--end', type=str, help='Segment end in seconds')
        parser.add_argument(
            '--base-url',
            type=str,
            default='',
            help='Public base URL for the result link (default: CLIPFETCH_PUBLIC_BASE_URL)',
        )
        parser.add_argument('--json', action='store_true', help='Output result as JSON')

    def handle(self, *args, **options):
        payload = {
            'url': options['url'],
            'name': options['name'],
            'start_time': options['start'],
            'end_time': options['end'],
        }
        output_json = options['json']

        job = JobContext(config.get_output_dir(), build_log_basename(payload))

        try:
            job_request = parse_job_request(payload)
        except ValidationError as e:
            job.log_error(e.message, e.http_status, e.context)
            raise CommandError(e.message)

        result = run_job(job_request, job, base_url=options['base_url'])

        if output_json:
            self.stdout.write(json.dumps(result.as_response_data(), indent=2))

        if not result.ok:
            raise CommandError(f'{result.error} (log: {result.log_path})')

        if not output_json:
            self.stdout.write(self.style.SUCCESS('✓ Download complete'))
            self.stdout.write(f'  File: {result.filename}')
            self.stdout.write(f'  URL: {result.url}')
            self.stdout.write(f'  Log: {result.log_path}')
