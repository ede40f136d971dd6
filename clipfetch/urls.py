"""
URL configuration for clipfetch project.

The API lives at the site root: GET renders the documentation/status page,
POST runs a download job.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.urls import path

from media.views import download_view

urlpatterns = [
    path('', download_view, name='download'),
]

# Serve finished downloads in development; in production the web server
# serves the output directory directly
urlpatterns += static(
    f'/{settings.CLIPFETCH_OUTPUT_FOLDER}/', document_root=settings.CLIPFETCH_OUTPUT_DIR
)
