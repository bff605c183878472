"""Best-frame selection for burst captures.

Each buffered frame is re-run through the pose detector (single image,
not streaming) and scored by keypoint confidence. This is a heuristic
proxy for "eyes open, looking at the camera"; it does not measure
sharpness or exposure.

Example:
    >>> selector = BurstFrameSelector(detector)
    >>> best = selector.select_best([img0, img1, img2, img3])
"""

import logging
from typing import Any, List, Optional, Sequence

from pawmoment.backends.base import PoseDetector
from pawmoment.config import BurstConfig, GeometryConfig
from pawmoment.types import ScoredFrame

logger = logging.getLogger(__name__)


class BurstFrameSelector:
    """Scores burst frames and picks the best one.

    Scoring:
        - all three keypoints confident: sum of eye and nose confidences
        - detected but below confidence: ``fallback_score``
        - not detected: 0.0 (still eligible)

    Ties go to the latest frame.

    Args:
        detector: Pose detector used for re-detection.
        burst: Burst settings (fallback score).
        geometry: Confidence threshold shared with live analysis.
    """

    def __init__(
        self,
        detector: PoseDetector,
        burst: Optional[BurstConfig] = None,
        geometry: Optional[GeometryConfig] = None,
    ):
        self._detector = detector
        self._burst = burst or BurstConfig()
        self._geometry = geometry or GeometryConfig()

    def score_frame(self, image: Any) -> float:
        """Score a single frame; never raises on detector failure."""
        try:
            sample = self._detector.detect(image)
        except Exception as exc:
            logger.warning("Re-detection failed during selection: %s", exc)
            return 0.0

        if sample is None:
            return 0.0
        if sample.min_confidence >= self._geometry.min_confidence:
            return sample.confidence_sum
        return self._burst.fallback_score

    def score_frames(self, frames: Sequence[Any]) -> List[ScoredFrame]:
        return [
            ScoredFrame(image=image, score=self.score_frame(image), index=i)
            for i, image in enumerate(frames)
        ]

    def select_best(self, frames: Sequence[Any]) -> Any:
        """Select the best frame of a burst.

        Args:
            frames: Non-empty frames in capture order.

        Returns:
            The winning image. When nothing is detectable the most
            recent frame wins.

        Raises:
            ValueError: If ``frames`` is empty.
        """
        if not frames:
            raise ValueError("select_best requires at least one frame")
        if len(frames) == 1:
            return frames[0]

        scored = self.score_frames(frames)
        # max() keeps the first maximum; the index key makes later frames win ties.
        best = max(scored, key=lambda f: (f.score, f.index))

        if best.score <= 0.0:
            logger.info("No frame in burst of %d was detectable, using most recent", len(frames))
        else:
            logger.debug(
                "Selected frame %d/%d (score=%.2f, scores=%s)",
                best.index, len(frames), best.score,
                [round(f.score, 3) for f in scored],
            )
        return best.image
