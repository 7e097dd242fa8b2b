from venue_display.testing.time_control import DEFAULT_START, ManualTimer, ManualTimers

__all__ = ["DEFAULT_START", "ManualTimer", "ManualTimers"]
