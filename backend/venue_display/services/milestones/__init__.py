from venue_display.services.milestones.poller import MilestoneDedupPoller, Watermark, newest_event

__all__ = ["MilestoneDedupPoller", "Watermark", "newest_event"]
