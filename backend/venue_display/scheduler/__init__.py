from venue_display.scheduler.timers import Callback, SchedulerTimers, TimerHandle, Timers, run_callback

__all__ = ["Callback", "SchedulerTimers", "TimerHandle", "Timers", "run_callback"]
