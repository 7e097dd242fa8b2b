"""
Centralized constants for the display engine (job ids, built-in rotation, celebration effects).

Change job IDs or defaults here instead of scattering literals across the orchestrator and routes.
Intervals that operators tune per venue come from config.Settings, not from here.
"""

# Timer job IDs (prefixes; SchedulerTimers appends a sequence number per armed timer)
SCENE_TIMER_JOB_ID = "scene_rotation"
MILESTONE_POLL_JOB_ID = "milestone_poll"
CELEBRATION_DWELL_JOB_ID = "celebration_dwell"
SCENE_REFRESH_JOB_ID = "scene_refresh"
FEED_REFRESH_JOB_ID = "feed_refresh"

# Built-in rotation used until the remote scene configuration resolves: (scene id, duration ms)
DEFAULT_SCENE_ORDER: tuple[tuple[str, int], ...] = (
    ("overview", 10_000),
    ("merchants", 10_000),
    ("wifi", 10_000),
)

# Celebration overlays; one is picked at random per delivered milestone
CELEBRATION_EFFECTS: tuple[str, ...] = ("confetti", "spotlight", "sats-rain")

# Dwell defaults (seconds) when Settings are not supplied
DEFAULT_DWELL_SECONDS = 6.0
REDUCED_MOTION_DWELL_SECONDS = 3.0

# Trend windows: "all" is capped at one day of buckets
TREND_WINDOW_ALL_MINUTES = 24 * 60
TREND_WINDOW_FALLBACK_MINUTES = 60

DISPLAY_MODE_VENUE = "venue"
DISPLAY_MODE_ATTENDEE = "attendee"
DISPLAY_MODES = (DISPLAY_MODE_VENUE, DISPLAY_MODE_ATTENDEE)
