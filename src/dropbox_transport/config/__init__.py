"""Configuration for the Dropbox transport core."""

from .settings import RequestConfig

__all__ = ["RequestConfig"]
