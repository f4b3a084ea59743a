"""
CLI commands.
"""

from .audit import audit
from .migrate import migrate
from .validate import validate
from .versions import versions

__all__ = ["audit", "migrate", "validate", "versions"]
