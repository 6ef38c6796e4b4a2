"""
sqlaction - Deploy SQL scripts, DACPAC packages and SQL projects to SQL databases
"""

__version__ = "1.0.0"

from .core import SqlAction
from .errors import CommandFailedError, SqlActionError

__all__ = ["SqlAction", "SqlActionError", "CommandFailedError"]
