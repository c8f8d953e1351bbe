"""Flask host adapter."""

from .app_factory import create_app
from .host import HttpHost, LoopThread

__all__ = ["create_app", "HttpHost", "LoopThread"]
