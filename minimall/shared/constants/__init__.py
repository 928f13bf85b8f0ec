"""
Shared constants for MINIMALL
"""

from .app import *  # noqa: F401,F403
from .shopify import *  # noqa: F401,F403
