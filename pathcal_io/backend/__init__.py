"""
Backend persistence: HTTP repository, image decoding and background saves.
"""

from .repository import MapRepository, PersistenceError
from .image import BaseImage
from .worker import SaveWorker

__all__ = [
    'MapRepository',
    'PersistenceError',
    'BaseImage',
    'SaveWorker',
]
