"""
Management command to clean up abandoned temp downloads.

Jobs remove their own temp files, but a worker killed at the execution
time limit never reaches its cleanup. This finds files in the temp
directory older than --max-age and removes them.
"""

import time
from datetime import timedelta

from django.core.management.base import BaseCommand

from media.service import config


class Command(BaseCommand):
    help = 'Clean up abandoned files in the temp download directory'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without actually deleting',
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Delete files without confirmation',
        )
        parser.add_argument(
            '--max-age',
            type=int,
            default=60,
            help='Maximum age in minutes before considering a file abandoned (default: 60)',
        )

    def handle(self, *args, **options):
        """Find and clean up abandoned temp files"""
        dry_run = options['dry_run']
        force = options['force']
        max_age_minutes = options['max_age']

        temp_dir = config.get_temp_dir()
        if not temp_dir.exists():
            self.stdout.write(self.style.SUCCESS(f'Temp directory {temp_dir} does not exist'))
            return

        files = [f for f in temp_dir.iterdir() if f.is_file()]
        if not files:
            self.stdout.write(self.style.SUCCESS('No temp files found'))
            return

        now = time.time()
        max_age_seconds = max_age_minutes * 60
        old_files = [f for f in files if now - f.stat().st_mtime > max_age_seconds]

        if not old_files:
            self.stdout.write(
                self.style.SUCCESS(
                    f"Found {len(files)} temp file{'s' if len(files) != 1 else ''}, "
                    f'but none are older than {max_age_minutes} minutes'
                )
            )
            return

        self.stdout.write(
            f"\nFound {len(old_files)} abandoned temp file{'s' if len(old_files) != 1 else ''}:"
        )
        self.stdout.write('=' * 80)

        total_size = 0
        for path in old_files:
            stat = path.stat()
            total_size += stat.st_size
            age_str = str(timedelta(seconds=int(now - stat.st_mtime)))
            size_mb = stat.st_size / (1024 * 1024)
            self.stdout.write(f'{path.name:40} | Age: {age_str:15} | Size: {size_mb:6.1f} MB')

        self.stdout.write('=' * 80)
        self.stdout.write(f'Total size: {total_size / (1024 * 1024):.1f} MB\n')

        if dry_run:
            self.stdout.write(
                self.style.WARNING(
                    f"\nDRY RUN: Would delete {len(old_files)} file{'s' if len(old_files) != 1 else ''}"
                )
            )
            self.stdout.write('Run without --dry-run to actually delete')
            return

        if not force:
            response = input(f'\nDelete these {len(old_files)} files? [y/N]: ')
            if response.lower() != 'y':
                self.stdout.write('Cancelled')
                return

        deleted_count = 0
        for path in old_files:
            try:
                path.unlink()
                self.stdout.write(self.style.SUCCESS(f'✓ Deleted: {path.name}'))
                deleted_count += 1
            except OSError as e:
                self.stdout.write(self.style.ERROR(f'✗ Failed to delete {path.name}: {e}'))

        self.stdout.write(
            self.style.SUCCESS(
                f"\n✓ Deleted {deleted_count} of {len(old_files)} file{'s' if deleted_count != 1 else ''}"
            )
        )
