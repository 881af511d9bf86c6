"""
Timestamped sensor samples and the append-only sample log.

A SensorSample is one of three variants, each carrying exactly one
payload:

- LocationSample: a position, either a GPS fix or a dead-reckoned estimate
- AccelerationSample: an earth-frame acceleration received before any fix
- HeadingSample: a true heading in degrees

Records are plain dicts with the keys `timestamp`, `location`,
`acceleration` and `heading`. Absent payloads are encoded as None, so
exported JSON is sparse but uniform.
"""

import json
import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Deque, Iterator, List, Optional, Union

from ..errors import InvalidSampleError
from ..math.vector import Vector3
from .state import Coordinate

logger = logging.getLogger(__name__)

class LocationSource(Enum):
    """Where a LocationSample's position came from."""

    GPS = "gps"
    DEAD_RECKONING = "dead_reckoning"

@dataclass(frozen=True)
class SensorSample:
    """Base class for log entries. Use one of the subclasses."""

    timestamp: float

    kind = "sample"

    @property
    def location(self) -> Optional[Coordinate]:
        return None

    @property
    def acceleration(self) -> Optional[Vector3]:
        return None

    @property
    def heading(self) -> Optional[float]:
        return None

    def to_record(self) -> dict:
        """Serialize to a sparse record dict."""
        location = self.location
        acceleration = self.acceleration
        return {
            "timestamp": self.timestamp,
            "location": location.to_dict() if location is not None else None,
            "acceleration": acceleration.to_dict() if acceleration is not None else None,
            "heading": self.heading,
        }

@dataclass(frozen=True)
class LocationSample(SensorSample):
    coordinate: Coordinate
    source: LocationSource = LocationSource.GPS

    kind = "location"

    @property
    def location(self) -> Optional[Coordinate]:
        return self.coordinate

    def to_record(self) -> dict:
        record = super().to_record()
        record["source"] = self.source.value
        return record

@dataclass(frozen=True)
class AccelerationSample(SensorSample):
    vector: Vector3

    kind = "acceleration"

    @property
    def acceleration(self) -> Optional[Vector3]:
        return self.vector

@dataclass(frozen=True)
class HeadingSample(SensorSample):
    true_heading: float

    kind = "heading"

    @property
    def heading(self) -> Optional[float]:
        return self.true_heading

AnySample = Union[LocationSample, AccelerationSample, HeadingSample]

def sample_from_record(record: dict) -> AnySample:
    """
    Deserialize a record produced by `SensorSample.to_record`.

    Raises:
        InvalidSampleError: If the record does not carry exactly one payload
    """
    payloads = [key for key in ("location", "acceleration", "heading")
                if record.get(key) is not None]
    if len(payloads) != 1:
        raise InvalidSampleError(
            f"Sample record must carry exactly one payload, got {payloads or 'none'}"
        )

    timestamp = float(record["timestamp"])
    kind = payloads[0]

    if kind == "location":
        source = LocationSource(record.get("source", LocationSource.GPS.value))
        return LocationSample(timestamp, Coordinate.from_dict(record["location"]), source)
    if kind == "acceleration":
        return AccelerationSample(timestamp, Vector3.from_dict(record["acceleration"]))
    return HeadingSample(timestamp, float(record["heading"]))

def dumps(sample: SensorSample) -> str:
    """Serialize a sample to a JSON string."""
    return json.dumps(sample.to_record(), ensure_ascii=False)

def loads(text: str) -> AnySample:
    """Deserialize a sample from a JSON string."""
    return sample_from_record(json.loads(text))

class SampleLog:
    """
    Append-only log of sensor samples.

    Unbounded by default. With `maxlen` set, the oldest samples are
    discarded once the log is full. Not thread-safe on its own: the
    fusion engine serializes access.
    """

    def __init__(self, maxlen: Optional[int] = None):
        if maxlen is not None and maxlen <= 0:
            raise ValueError(f"maxlen must be positive, got {maxlen}")
        self.maxlen = maxlen
        self._samples: Deque[AnySample] = deque(maxlen=maxlen)
        self._latest_location: Optional[Coordinate] = None
        self.total_appended = 0

    def append(self, sample: AnySample) -> None:
        if not isinstance(sample, SensorSample) or type(sample) is SensorSample:
            raise TypeError(f"Expected a SensorSample variant, got {type(sample).__name__}")
        self._samples.append(sample)
        self.total_appended += 1
        if sample.location is not None:
            self._latest_location = sample.location

    def latest_location(self) -> Optional[Coordinate]:
        """
        Location of the most recent sample that carries one.

        Survives eviction of that sample from a bounded log.
        """
        return self._latest_location

    def clear(self) -> None:
        self._samples.clear()
        self._latest_location = None
        self.total_appended = 0

    def snapshot(self) -> List[AnySample]:
        return list(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[AnySample]:
        return iter(self.snapshot())

    def export_jsonl(self, path: Union[str, Path]) -> int:
        """
        Write the log as JSON lines, one record per sample.

        Returns:
            Number of samples written
        """
        samples = self.snapshot()
        write_jsonl(samples, path)
        return len(samples)

    @classmethod
    def load_jsonl(cls, path: Union[str, Path], maxlen: Optional[int] = None) -> "SampleLog":
        """Rebuild a log from a JSON lines file."""
        log = cls(maxlen=maxlen)
        for sample in read_jsonl(path):
            log.append(sample)
        return log

def write_jsonl(samples: List[SensorSample], path: Union[str, Path]) -> None:
    """Write samples to `path` as JSON lines."""
    path = Path(path)
    with open(path, "w", encoding="utf-8") as f:
        for sample in samples:
            f.write(dumps(sample))
            f.write("\n")
    logger.info("Exported %d samples to %s", len(samples), path)

def read_jsonl(path: Union[str, Path]) -> List[AnySample]:
    """Read samples from a JSON lines file, skipping blank lines."""
    samples = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                samples.append(loads(line))
    return samples
