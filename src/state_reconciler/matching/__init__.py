"""Prior-to-desired graph matching."""

from .graph_matcher import GraphMatcher, MatchError

__all__ = ["GraphMatcher", "MatchError"]
