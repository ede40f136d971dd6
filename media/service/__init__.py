"""
Service layer for the download pipeline.

This module contains the job pipeline (command execution, download, trim and
publish), independent of the HTTP layer. These functions are used by:
- The web endpoint (media/views.py)
- The CLI management command (management/commands/fetch.py)
"""
