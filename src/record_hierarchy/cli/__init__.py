"""
CLI interface for the record hierarchy system.
"""

from .main import main


__all__ = ["main"]
