from social_toolkit.feed.composer import FeedChannel, compose_feed, trending_score

__all__ = ["FeedChannel", "compose_feed", "trending_score"]
