"""
Passenger WSGI file for the ClipFetch Django application.

Used when deploying to shared hosting (cPanel and similar) where Passenger
runs Python apps. Passenger imports this module and calls the
'application' callable to handle requests.

For more information:
- https://www.phusionpassenger.com/library/walkthroughs/deploy/python/
- https://docs.djangoproject.com/en/stable/howto/deployment/wsgi/
"""

import os
import sys

from django.core.wsgi import get_wsgi_application

# Add the project directory to the Python path
PROJECT_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_DIR)

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "clipfetch.settings")

application = get_wsgi_application()
