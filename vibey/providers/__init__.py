from .base import BaseProvider
from .factory import create_provider

__all__ = ["BaseProvider", "create_provider"]
