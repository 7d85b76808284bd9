"""Web API module for vintagecam.

This module provides the HTTP interface for uploading photos, applying the
vintage film transformation and downloading the results.
"""

from .app import create_app

__all__ = ["create_app"]
