"""
Application package initializer.

This package contains the entrypoint for the API and its submodules:
``core`` (configuration, logging, database, validation and error
handling), ``schemas``, ``services`` and the versioned routers under
``api/<version>/``.
"""

from .main import app  # noqa: F401
