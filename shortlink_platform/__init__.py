"""
shortlink_platform package initializer.
"""

from . import manager
from . import model
from . import storage

__version__ = "0.1.0"

__all__ = ["manager", "model", "storage"]
