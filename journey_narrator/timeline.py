"""Ordered, duplicate-free collection of produced segments."""

import bisect

from journey_narrator.models import Segment


class StoryTimeline:
    """Segments produced for one journey, plus the outline that guides them.

    Segments are kept sorted by index and never removed. Each timeline carries
    the epoch it was attached under so late pipeline results can be matched
    against the timeline they were started for.
    """

    def __init__(
        self,
        total_segments_estimate: int,
        outline: list[str],
        segments: list[Segment] | None = None,
        epoch: int = 0,
    ):
        if total_segments_estimate < 1:
            raise ValueError("total_segments_estimate must be >= 1")
        self.total_segments_estimate = total_segments_estimate
        self.outline = tuple(outline)
        self.epoch = epoch
        self._segments: list[Segment] = []
        self._indices: set[int] = set()
        for segment in segments or []:
            self.add(segment)

    @property
    def segments(self) -> tuple[Segment, ...]:
        return tuple(self._segments)

    @property
    def indices(self) -> list[int]:
        return [s.index for s in self._segments]

    @property
    def is_complete(self) -> bool:
        return len(self._segments) >= self.total_segments_estimate

    def add(self, segment: Segment) -> bool:
        """Insert a segment in index order.

        Returns False (and leaves the timeline untouched) when a segment with
        the same index is already present.
        """
        if segment.index < 1:
            raise ValueError(f"Segment index must be positive, got {segment.index}")
        if segment.index in self._indices:
            return False
        keys = [s.index for s in self._segments]
        self._segments.insert(bisect.bisect(keys, segment.index), segment)
        self._indices.add(segment.index)
        return True

    def get(self, index: int) -> Segment | None:
        if index not in self._indices:
            return None
        for segment in self._segments:
            if segment.index == index:
                return segment
        return None

    def texts(self) -> list[str]:
        return [s.text for s in self._segments]

    def __len__(self) -> int:
        return len(self._segments)

    def __contains__(self, index: int) -> bool:
        return index in self._indices

    def __repr__(self) -> str:
        return (
            f"StoryTimeline(epoch={self.epoch}, segments={self.indices}, "
            f"total={self.total_segments_estimate})"
        )
