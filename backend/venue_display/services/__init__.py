"""
Display services: event source client, scene rotation, milestone polling, trend aggregation and
the feed cache. The orchestrator composes them; each one is usable on its own with fake timers.
"""
