#!/usr/bin/env python3
"""
Angle Sets
Collections of disjoint angle ranges

Extends AngleRange with the ability to hold several disjoint ranges. Ranges
that overlap or touch are merged whenever the set is modified, so the stored
ranges are pairwise disjoint. There is no way to address an individual
stored range, as merging reorders the internal storage.
"""

from typing import Iterable, Iterator, List, Optional, Tuple, Union
import logging

from angle_range import AngleRange, Number, SortMode


logger = logging.getLogger(__name__)


class AngleSet:
    def __init__(self, first: Optional[Union[AngleRange, Number]] = None,
                 upper: Optional[Number] = None):
        """
        Args:
            first: Either a first AngleRange (ignored if empty) or the lower
                bound of a first range, in radians
            upper: Upper bound of the first range if first is a bound
        """
        self._storage: List[AngleRange] = []
        self._consistent = True

        if isinstance(first, AngleRange):
            self.add(first)
        elif first is not None:
            if upper is None:
                raise TypeError("AngleSet needs both bounds when built from values")
            self.add_bounds(first, upper)

    # --- adding ranges ---

    def add(self, value: AngleRange):
        """Add a single range (no-op if it is empty) and merge"""
        if value.is_empty():
            return
        self._append(value)
        self._combine()

    def add_bounds(self, lower: Number, upper: Number):
        """Add the range [lower, upper] (radians) and merge"""
        self._append(AngleRange(lower, upper))
        self._combine()

    def add_set(self, other: 'AngleSet'):
        """Add all ranges of other and merge"""
        for value in other._storage:
            self._append(value)
        self._combine()

    def extend(self, ranges: Iterable[AngleRange]):
        """
        Add many ranges without merging right away.

        The set is marked inconsistent and gets merged by the next operation
        that relies on the ranges being disjoint.
        """
        count = 0
        for value in ranges:
            if not value.is_empty():
                self._append(value)
                count += 1
        if count:
            self._consistent = False
        logger.debug("Deferred insert of %d range(s), %d stored", count, len(self._storage))

    def clear(self):
        self._storage = []
        self._consistent = True

    def _append(self, value: AngleRange):
        stored = value.copy()
        stored.sort_mode = SortMode.LOWER
        self._storage.append(stored)

    def _combine(self):
        """
        Merge all ranges whose union is a single range.

        Walks the storage from the back. Each range is combined with every
        range behind it; whatever it absorbs is removed, so the tail behind
        the current position is always pairwise disjoint.
        """
        storage = self._storage
        before = len(storage)
        cur = len(storage) - 2
        while cur >= 0:
            compare = len(storage) - 1
            while compare > cur:
                merged = storage[cur].combine(storage[compare])
                if not merged.is_empty():
                    storage[cur] = merged
                    del storage[compare]
                compare -= 1
            cur -= 1
        self._consistent = True
        if before != len(storage):
            logger.debug("Merged %d range(s) into %d", before, len(storage))

    def _ensure_consistent(self):
        if not self._consistent:
            self._combine()

    # --- queries ---

    def is_empty(self) -> bool:
        return not self._storage

    def is_circle(self) -> bool:
        """True if the set covers the whole circle"""
        self._ensure_consistent()
        # A full circle absorbs everything else during merging
        return len(self._storage) == 1 and self._storage[0].is_circle()

    def get_ranges(self) -> List[AngleRange]:
        """Copies of the stored, disjoint ranges"""
        self._ensure_consistent()
        return [value.copy() for value in self._storage]

    @property
    def ranges(self) -> Tuple[AngleRange, ...]:
        """The stored ranges themselves, for fast read-only access. Don't modify them."""
        self._ensure_consistent()
        return tuple(self._storage)

    def degrees(self) -> List[Tuple[float, float]]:
        return [value.degrees() for value in self.ranges]

    def __len__(self):
        self._ensure_consistent()
        return len(self._storage)

    def __iter__(self) -> Iterator[AngleRange]:
        return iter(self.ranges)

    def __repr__(self):
        return f"AngleSet({list(self.ranges)!r})"

    def sort(self):
        """Stable sort of the stored ranges, left to right by lower bound"""
        self._ensure_consistent()
        self._storage.sort()

    # --- intersections ---

    def overlap(self, other: Union[AngleRange, 'AngleSet']) -> 'AngleSet':
        """Intersection with a single range or with another set, as a new set"""
        if isinstance(other, AngleSet):
            return self._overlap_set(other)
        return self._overlap_range(other)

    def _overlap_range(self, other: AngleRange) -> 'AngleSet':
        self._ensure_consistent()
        retval = AngleSet()
        for value in self._storage:
            # add() skips empty overlaps
            retval.add(value.overlap(other))
        return retval

    def _overlap_set(self, other: 'AngleSet') -> 'AngleSet':
        retval = AngleSet()
        for value in other.ranges:
            retval.add_set(self._overlap_range(value))
        return retval
