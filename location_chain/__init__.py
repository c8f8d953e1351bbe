"""Chain location requests with fallbacks over a platform location source."""

from .api.app_factory import create_app
from .builder import LocationRequestBuilder
from .manager import LocationManager

__all__ = ["create_app", "LocationManager", "LocationRequestBuilder"]
