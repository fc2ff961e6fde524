#!/usr/bin/env python3
"""
Angles and Angle Ranges
Angles kept in the turn [0, 2*pi) and clockwise ranges between two of them

Convention for AngleRange:
Ranges always run clockwise from the lower to the upper bound and include
both bounds, so a range can hold a single point. A range whose lower bound
is numerically larger than its upper bound passes through the zero line.
"""

from enum import Enum
from typing import Optional, Tuple, Union
import math

import numpy as np


TWO_PI = 2.0 * math.pi

Number = Union[float, int, "Angle"]


def shift_in_range(number: float) -> float:
    """Shift number back into the range [0, 2*pi)"""
    number = np.float64(number)
    with np.errstate(invalid='ignore', over='ignore'):
        value = float(number - TWO_PI * np.floor(number / TWO_PI))
    # Rounding can land exactly on 2*pi (or a hair below zero)
    if value >= TWO_PI or value < 0.0:
        value = 0.0
    return value


class Angle:
    """
    Scalar angle that always keeps its value in [0, 2*pi).

    Comparisons only look at the numeric value of the angle. They are a plain
    linear order on [0, 2*pi), not a circular one.
    """

    __slots__ = ('_value',)

    def __init__(self, value: Number = 0.0):
        self._value = shift_in_range(float(value))

    @classmethod
    def from_degrees(cls, degrees: float) -> 'Angle':
        return cls(math.radians(degrees))

    @property
    def value(self) -> float:
        return self._value

    @value.setter
    def value(self, new_value: Number):
        self._value = shift_in_range(float(new_value))

    @property
    def degrees(self) -> float:
        return math.degrees(self._value)

    def __float__(self):
        return self._value

    def __repr__(self):
        return f"Angle({self._value!r})"

    # Arithmetic combines the raw values and shifts the result back in range.
    # Products and quotients of angles have no geometric meaning, they are
    # only here so Angle behaves like a number in generic arithmetic.

    def __add__(self, other):
        return Angle(self._value + _raw(other))

    def __sub__(self, other):
        return Angle(self._value - _raw(other))

    def __mul__(self, other):
        return Angle(self._value * _raw(other))

    def __truediv__(self, other):
        # numpy division: x/0 gives inf or nan instead of raising
        with np.errstate(divide='ignore', invalid='ignore'):
            return Angle(np.float64(self._value) / np.float64(_raw(other)))

    def __radd__(self, other):
        return Angle(_raw(other) + self._value)

    def __rsub__(self, other):
        return Angle(_raw(other) - self._value)

    def __lt__(self, other):
        return self._value < _raw(other)

    def __gt__(self, other):
        return self._value > _raw(other)

    def __le__(self, other):
        return self._value <= _raw(other)

    def __ge__(self, other):
        return self._value >= _raw(other)

    def __eq__(self, other):
        if not isinstance(other, (Angle, int, float)):
            return NotImplemented
        return self._value == _raw(other)

    def __ne__(self, other):
        if not isinstance(other, (Angle, int, float)):
            return NotImplemented
        return self._value != _raw(other)

    def __hash__(self):
        return hash(self._value)


def _raw(value: Number) -> float:
    if isinstance(value, Angle):
        return value.value
    if isinstance(value, (int, float, np.floating, np.integer)):
        return float(value)
    raise TypeError(f"Unsupported operand type for Angle: {type(value).__name__}")


class SortMode(Enum):
    """What the ordering operators of AngleRange compare"""
    LOWER = 'lower'
    UPPER = 'upper'
    SIZE = 'size'


class AngleRange:
    """
    Clockwise range of angles from a lower to an upper bound, bounds included.

    A range is empty unless both bounds have been set. A full circle is
    flagged explicitly and keeps both bounds at zero. The sort mode decides
    what <, >, <= and >= compare; ranges produced by overlap() and combine()
    inherit the sort mode of the range they were called on.
    """

    def __init__(self, lower: Optional[Number] = None, upper: Optional[Number] = None,
                 sort_mode: SortMode = SortMode.LOWER):
        self._lower = Angle(0.0)
        self._upper = Angle(0.0)
        self._lower_set = False
        self._upper_set = False
        self._circle = False
        self.sort_mode = sort_mode

        if lower is not None:
            self.set_lower(lower)
        if upper is not None:
            self.set_upper(upper)

    @classmethod
    def from_degrees(cls, lower: float, upper: float,
                     sort_mode: SortMode = SortMode.LOWER) -> 'AngleRange':
        return cls(math.radians(lower), math.radians(upper), sort_mode)

    @classmethod
    def full_circle(cls, sort_mode: SortMode = SortMode.LOWER) -> 'AngleRange':
        circle = cls(sort_mode=sort_mode)
        circle.set_circle(True)
        return circle

    def copy(self) -> 'AngleRange':
        duplicate = AngleRange(sort_mode=self.sort_mode)
        duplicate._lower = Angle(self._lower)
        duplicate._upper = Angle(self._upper)
        duplicate._lower_set = self._lower_set
        duplicate._upper_set = self._upper_set
        duplicate._circle = self._circle
        return duplicate

    # --- bounds and flags ---

    @property
    def lower(self) -> Angle:
        """Lower bound. Not meaningful if the range is empty."""
        return self._lower

    @property
    def upper(self) -> Angle:
        """Upper bound. Not meaningful if the range is empty."""
        return self._upper

    def set_lower(self, new_lower: Number):
        self._lower = Angle(new_lower)
        self._lower_set = True

    def set_upper(self, new_upper: Number):
        self._upper = Angle(new_upper)
        self._upper_set = True

    def set_empty(self):
        """Mark the range as empty. The stored bounds are left as they are."""
        self._lower_set = False
        self._upper_set = False

    def set_circle(self, circle: bool = True):
        self._circle = circle
        if circle:
            self._lower = Angle(0.0)
            self._upper = Angle(0.0)
            self._lower_set = True
            self._upper_set = True

    def set_sort_mode(self, sort_mode: SortMode):
        self.sort_mode = sort_mode

    def is_empty(self) -> bool:
        return not (self._lower_set and self._upper_set)

    def is_circle(self) -> bool:
        return self._circle and not self.is_empty()

    def wraps(self) -> bool:
        """True if the range passes through the zero line"""
        return self._lower > self._upper

    def is_inside(self, value: Number) -> bool:
        if self.is_empty():
            return False
        if self._circle:
            return True
        value = value if isinstance(value, Angle) else Angle(value)
        if self.wraps():
            return value >= self._lower or value <= self._upper
        return value >= self._lower and value <= self._upper

    def span(self) -> Angle:
        """Clockwise sweep from lower to upper. Zero for a full circle."""
        return self._upper - self._lower

    def degrees(self) -> Tuple[float, float]:
        """Bounds in degrees, (0, 360) for a full circle"""
        if self.is_circle():
            return (0.0, 360.0)
        return (self._lower.degrees, self._upper.degrees)

    # --- set operations on two ranges ---

    def overlap(self, other: 'AngleRange') -> 'AngleRange':
        """
        Intersection of this range and other.

        Returns an empty range if there is no overlap. A single range cannot
        hold two disjoint pieces, so when the true intersection consists of
        two pieces only one of them is returned.
        """
        retval = AngleRange(sort_mode=self.sort_mode)
        if self.is_empty() or other.is_empty():
            return retval

        # A full circle is the identity of the intersection
        if self.is_circle():
            retval = other.copy()
            retval.sort_mode = self.sort_mode
            return retval
        if other.is_circle():
            return self.copy()

        # Four cases:
        # a) both ranges contain the zero line
        # b) this range contains the zero line, the other doesn't
        # c) vice versa
        # d) both ranges are regular
        if self.wraps():
            if other.wraps():
                # Both contain zero, so they overlap for sure
                retval.set_lower(max(self._lower.value, other.lower.value))
                retval.set_upper(min(self._upper.value, other.upper.value))
            else:
                # Other can lie fully within this, but not the other way round
                if other.upper <= self._upper or other.lower >= self._lower:
                    retval.set_lower(other.lower)
                    retval.set_upper(other.upper)
                elif other.upper >= self._lower:  # not >, upper bound is inside
                    retval.set_lower(self._lower)
                    retval.set_upper(other.upper)
                elif other.lower <= self._upper:
                    retval.set_lower(other.lower)
                    retval.set_upper(self._upper)
        else:
            if other.wraps():
                if self._upper <= other.upper or self._lower >= other.lower:
                    retval.set_lower(self._lower)
                    retval.set_upper(self._upper)
                elif self._lower <= other.upper:
                    retval.set_lower(self._lower)
                    retval.set_upper(other.upper)
                elif self._upper >= other.lower:
                    retval.set_lower(other.lower)
                    retval.set_upper(self._upper)
            else:
                cur_max = min(other.upper.value, self._upper.value)
                cur_min = max(other.lower.value, self._lower.value)
                if cur_max >= cur_min:
                    retval.set_lower(cur_min)
                    retval.set_upper(cur_max)
        return retval

    def combine(self, other: 'AngleRange') -> 'AngleRange':
        """
        Union of this range and other.

        Returns an empty range if the two ranges neither overlap nor touch,
        since the union then has two pieces. Returns a full circle if the two
        ranges together cover the whole turn.
        """
        retval = AngleRange(sort_mode=self.sort_mode)
        if self.is_empty() or other.is_empty():
            return retval

        if self.is_circle() or other.is_circle():
            retval.set_circle(True)
            return retval

        if self.wraps():
            if other.wraps():
                # Both contain zero. The gaps are (upper, lower) of each range,
                # the union is a circle once the gaps don't overlap anymore.
                if self._lower <= other.upper or other.lower <= self._upper:
                    retval.set_circle(True)
                else:
                    retval.set_lower(min(self._lower.value, other.lower.value))
                    retval.set_upper(max(self._upper.value, other.upper.value))
            else:
                _combine_wrapped_regular(retval, self, other)
        else:
            if other.wraps():
                _combine_wrapped_regular(retval, other, self)
            else:
                cur_max = min(other.upper.value, self._upper.value)
                cur_min = max(other.lower.value, self._lower.value)
                if cur_max >= cur_min:
                    retval.set_lower(min(other.lower.value, self._lower.value))
                    retval.set_upper(max(other.upper.value, self._upper.value))
        return retval

    # --- ordering ---

    def _compare(self, other: 'AngleRange') -> int:
        """Three-way comparison according to this range's sort mode"""
        if self.sort_mode == SortMode.LOWER:
            mine, theirs = self._lower.value, other.lower.value
        elif self.sort_mode == SortMode.UPPER:
            mine, theirs = self._upper.value, other.upper.value
        elif self.sort_mode == SortMode.SIZE:
            if self.is_circle() or other.is_circle():
                return int(self.is_circle()) - int(other.is_circle())
            mine, theirs = self.span().value, other.span().value
        else:
            raise ValueError(f"Invalid sort mode for AngleRange: {self.sort_mode!r}")
        return (mine > theirs) - (mine < theirs)

    def __lt__(self, other: 'AngleRange') -> bool:
        if self.is_empty() or other.is_empty():
            return False
        return self._compare(other) < 0

    def __gt__(self, other: 'AngleRange') -> bool:
        if self.is_empty() or other.is_empty():
            return False
        return self._compare(other) > 0

    def __le__(self, other: 'AngleRange') -> bool:
        if self.is_empty() or other.is_empty():
            return False
        return not self > other

    def __ge__(self, other: 'AngleRange') -> bool:
        if self.is_empty() or other.is_empty():
            return False
        return not self < other

    def __eq__(self, other):
        if not isinstance(other, AngleRange):
            return NotImplemented
        if self.is_empty() or other.is_empty():
            return self.is_empty() and other.is_empty()
        return self._lower == other.lower and self._upper == other.upper

    def __ne__(self, other):
        if not isinstance(other, AngleRange):
            return NotImplemented
        return not self == other

    # Mutable, so not hashable
    __hash__ = None

    def __repr__(self):
        if self.is_empty():
            return "AngleRange(empty)"
        if self.is_circle():
            return "AngleRange(circle)"
        lower, upper = self.degrees()
        return f"AngleRange({lower:.4f}°, {upper:.4f}°)"


def _combine_wrapped_regular(retval: AngleRange, wrapped: AngleRange, regular: AngleRange):
    """
    Union of a range around zero with a regular one, written into retval.

    The wrapped range covers [lower, 2*pi) and [0, upper], its gap is
    (upper, lower). retval stays empty if the regular range sits inside the gap.
    """
    if regular.upper <= wrapped.upper or regular.lower >= wrapped.lower:
        # Regular range lies completely inside one of the two tails
        retval.set_lower(wrapped.lower)
        retval.set_upper(wrapped.upper)
    elif regular.lower <= wrapped.upper and regular.upper >= wrapped.lower:
        # Regular range bridges the whole gap
        retval.set_circle(True)
    elif regular.lower <= wrapped.upper:
        retval.set_lower(wrapped.lower)
        retval.set_upper(regular.upper)
    elif regular.upper >= wrapped.lower:
        retval.set_lower(regular.lower)
        retval.set_upper(wrapped.upper)
