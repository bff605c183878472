"""JSONL keypoint logs for offline replay.

One JSON object per line::

    {"t": 0.033, "iso": 100, "left_eye": [0.42, 0.61, 0.9],
     "right_eye": [0.58, 0.61, 0.88], "nose": [0.5, 0.48, 0.93]}

Keypoints are ``[x, y, confidence]`` in normalized coordinates with a
bottom-left origin. Lines with ``"origin": "top_left"`` are flipped on
load. A line without keypoints (or with any of them ``null``) records a
frame where nothing was detected.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from pawmoment.errors import DetectorError
from pawmoment.types import Keypoint, PoseSample

logger = logging.getLogger(__name__)

_KEYPOINT_NAMES = ("left_eye", "right_eye", "nose")


@dataclass(frozen=True)
class ReplayRecord:
    """One logged frame."""

    timestamp: float
    iso: float
    sample: Optional[PoseSample]


def _parse_keypoint(value: Any, top_left: bool) -> Keypoint:
    if len(value) == 2:
        x, y = value
        conf = 1.0
    elif len(value) == 3:
        x, y, conf = value
    else:
        raise ValueError(f"keypoint must be [x, y] or [x, y, conf], got {value!r}")
    if top_left:
        return Keypoint.from_image_coords(x, y, conf)
    return Keypoint(float(x), float(y), float(conf))


def parse_record(data: Dict[str, Any]) -> ReplayRecord:
    """Build a :class:`ReplayRecord` from one decoded log line."""
    timestamp = float(data.get("t", data.get("timestamp", 0.0)))
    iso = float(data.get("iso", 0.0))
    top_left = data.get("origin", "bottom_left") == "top_left"

    values = [data.get(name) for name in _KEYPOINT_NAMES]
    if any(v is None for v in values):
        return ReplayRecord(timestamp=timestamp, iso=iso, sample=None)

    left_eye, right_eye, nose = (_parse_keypoint(v, top_left) for v in values)
    sample = PoseSample(left_eye, right_eye, nose, timestamp=timestamp)
    return ReplayRecord(timestamp=timestamp, iso=iso, sample=sample)


def record_to_dict(record: ReplayRecord) -> Dict[str, Any]:
    data: Dict[str, Any] = {"t": record.timestamp, "iso": record.iso}
    if record.sample is not None:
        for name in _KEYPOINT_NAMES:
            kp = getattr(record.sample, name)
            data[name] = [kp.x, kp.y, kp.confidence]
    return data


def load_samples(path: Union[str, Path]) -> List[ReplayRecord]:
    """Read a keypoint log.

    Args:
        path: JSONL file.

    Returns:
        Records in file order.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a line is not a valid record.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Keypoint log not found: {path}")

    records = []
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, start=1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            try:
                data = json.loads(line)
                if not isinstance(data, dict):
                    raise ValueError("record must be a JSON object")
                records.append(parse_record(data))
            except (ValueError, TypeError) as e:
                raise ValueError(f"{path}:{lineno}: invalid record: {e}") from e

    logger.debug("Loaded %d records from %s", len(records), path)
    return records


def save_samples(path: Union[str, Path], records: Iterable[ReplayRecord]) -> int:
    """Write records as a keypoint log. Returns the number written."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with open(path, "w", encoding="utf-8") as f:
        for record in records:
            f.write(json.dumps(record_to_dict(record)) + "\n")
            count += 1
    return count


class KeypointReplay:
    """Replays a keypoint log, also usable as a :class:`PoseDetector`.

    As a detector, ``frame`` is the record index; this lets a replayed
    burst be re-scored without any images.

    Example:
        >>> replay = KeypointReplay.from_file("session.jsonl")
        >>> for record in replay:
        ...     engine.process_sample(record.sample, iso=record.iso, now=record.timestamp)
    """

    def __init__(self, records: Sequence[ReplayRecord]):
        self._records = list(records)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "KeypointReplay":
        return cls(load_samples(path))

    def detect(self, frame: Any) -> Optional[PoseSample]:
        if not isinstance(frame, int) or isinstance(frame, bool):
            raise DetectorError(f"KeypointReplay expects a record index, got {type(frame).__name__}")
        return self._records[frame].sample

    @property
    def duration_sec(self) -> float:
        if not self._records:
            return 0.0
        return self._records[-1].timestamp - self._records[0].timestamp

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[ReplayRecord]:
        return iter(self._records)

    def __getitem__(self, index: int) -> ReplayRecord:
        return self._records[index]
