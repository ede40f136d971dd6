"""
Django settings for clipfetch project.

Every ClipFetch setting can be overridden with an environment variable of
the same name.
"""

import os
import shutil
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default=False):
    return os.environ.get(name, str(default)).lower() in ('1', 'true', 'yes')


SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-clipfetch-dev-key')

DEBUG = _env_bool('DJANGO_DEBUG', False)

ALLOWED_HOSTS = [h for h in os.environ.get('DJANGO_ALLOWED_HOSTS', '*').split(',') if h]

INSTALLED_APPS = [
    'django.contrib.staticfiles',
    'media',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'clipfetch.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
            ],
        },
    },
]

WSGI_APPLICATION = 'clipfetch.wsgi.application'

# No models; the per-job log file is the only record of a job
DATABASES = {}

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get('TZ', 'UTC')
USE_I18N = False
USE_TZ = True

STATIC_URL = 'static/'

# ClipFetch settings

CLIPFETCH_YTDLP_PATH = os.environ.get(
    'CLIPFETCH_YTDLP_PATH', shutil.which('yt-dlp') or '/usr/local/bin/yt-dlp'
)
CLIPFETCH_FFMPEG_PATH = os.environ.get(
    'CLIPFETCH_FFMPEG_PATH', shutil.which('ffmpeg') or '/usr/bin/ffmpeg'
)

# Public folder name, also the URL path segment files are served under
CLIPFETCH_OUTPUT_FOLDER = os.environ.get('CLIPFETCH_OUTPUT_FOLDER', 'youtube_downloads')
CLIPFETCH_OUTPUT_DIR = os.environ.get(
    'CLIPFETCH_OUTPUT_DIR', str(BASE_DIR / CLIPFETCH_OUTPUT_FOLDER)
)
CLIPFETCH_TEMP_DIR = os.environ.get('CLIPFETCH_TEMP_DIR', str(BASE_DIR / 'temp_yt_downloads'))

# Optional, helps with bot detection
CLIPFETCH_COOKIES_PATH = os.environ.get(
    'CLIPFETCH_COOKIES_PATH', str(BASE_DIR / 'youtube_cookies.txt')
)

CLIPFETCH_YTDLP_FORMAT = os.environ.get(
    'CLIPFETCH_YTDLP_FORMAT', 'bestvideo[ext=mp4]+bestaudio[ext=m4a]/best[ext=mp4]'
)
CLIPFETCH_MERGE_FORMAT = os.environ.get('CLIPFETCH_MERGE_FORMAT', 'mp4')
CLIPFETCH_USER_AGENT = os.environ.get(
    'CLIPFETCH_USER_AGENT',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 '
    '(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
)

# Seconds per external command; must cover a full download or cut
CLIPFETCH_MAX_EXECUTION_TIME = int(os.environ.get('CLIPFETCH_MAX_EXECUTION_TIME', '1200'))
# Informational, enforced by the host (e.g. the WSGI worker limits)
CLIPFETCH_MEMORY_LIMIT = os.environ.get('CLIPFETCH_MEMORY_LIMIT', '1024M')

CLIPFETCH_MIN_SEGMENT_BYTES = int(os.environ.get('CLIPFETCH_MIN_SEGMENT_BYTES', '1024'))

# Empty means build result URLs from the incoming request
CLIPFETCH_PUBLIC_BASE_URL = os.environ.get('CLIPFETCH_PUBLIC_BASE_URL', '')
