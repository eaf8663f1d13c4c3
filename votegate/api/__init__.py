"""votegate API package.

This module provides an optional FastAPI service layer that exposes the
decision facade over HTTP and shows how a caller turns a denied decision
into a 403.
"""

from .server import create_app  # noqa: F401
