"""Utility modules for LearnPath API."""

from learnpath.utils.numbers import percentage, round_half_up, round_points
from learnpath.utils.time import ensure_utc_aware


__all__ = ["ensure_utc_aware", "percentage", "round_half_up", "round_points"]
