"""
calnotes: meeting notes and calendar blockers kept in sync with Google Calendar
"""

try:
    from importlib.metadata import version
    __version__ = version("calnotes")
except Exception:
    __version__ = "0.0.0"  # Fallback for development

__all__ = ["__version__"]
