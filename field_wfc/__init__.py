"""
field_wfc - Wave Function Collapse field engine.
"""

from .core import *  # noqa: F401,F403
from .core import __all__

__version__ = "1.0.0"
