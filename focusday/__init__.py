"""focusday: time blocking, daily planning and focus sessions."""

__version__ = "0.3.0"
