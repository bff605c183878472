"""Burst frame scoring and selection.

Example:
    >>> from pawmoment.scoring import BurstFrameSelector
    >>> selector = BurstFrameSelector(detector)
    >>> best = selector.select_best(frames)
"""

from pawmoment.scoring.burst_selector import BurstFrameSelector

__all__ = ["BurstFrameSelector"]
