"""Small shared helpers for duration formatting."""
from .misc import format_duration, format_countdown

__all__ = ["format_duration", "format_countdown"]
