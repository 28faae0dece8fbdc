"""
frp_multiuser package initializer.
"""

from . import credentials
from . import plugin
from . import reload

__all__ = ["credentials", "plugin", "reload"]
