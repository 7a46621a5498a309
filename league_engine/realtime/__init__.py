from .match_feed import MatchChangeFeed, match_feed, channel_for_sport

__all__ = ["MatchChangeFeed", "match_feed", "channel_for_sport"]
