"""Dropbox API transport core.

This package turns logical API requests into authenticated HTTP
exchanges. It includes URL and header composition, error classification
of unsuccessful responses, and retry handling for transient server
failures.

:var __version__: Current package version
:type __version__: str
"""

__version__ = "0.1.0"
