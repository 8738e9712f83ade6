from sources.base import ReviewSource, SourceError
from sources.steam import SteamReviewSource

__all__ = [
    "ReviewSource",
    "SourceError",
    "SteamReviewSource",
]
