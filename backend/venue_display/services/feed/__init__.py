from venue_display.services.feed.cache import FeedCache

__all__ = ["FeedCache"]
