# Copyright 2025 Berkan Tali
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""LineSegment - Immutable geometry value for straight conduit centerlines."""

import numpy as np

from .errors import DegenerateSegment
from .vector_utils import as_point


class LineSegment:
    """
    Represent a straight 3D conduit centerline from start to end.

    Pure geometry value - never modified in place. Operations that move an
    endpoint return a new segment.
    """

    __slots__ = ('_start', '_end')

    def __init__(self, start, end):
        """
        Initialize line segment from start and end points.

        Args:
            start: Start point [x, y, z]
            end: End point [x, y, z]

        Raises
        ------
        ValueError
            If points are not 3D

        """
        try:
            start = as_point(start)
            end = as_point(end)
        except ValueError:
            raise ValueError("Start and end must be 3D points [x, y, z]") from None

        start.setflags(write=False)
        end.setflags(write=False)
        self._start = start
        self._end = end

    @classmethod
    def from_direction(cls, origin, direction, length):
        """Build a segment of ``length`` along ``direction`` from ``origin``."""
        origin = as_point(origin)
        direction = as_point(direction)
        norm = np.linalg.norm(direction)
        if norm == 0.0:
            raise DegenerateSegment("Direction vector is zero")
        return cls(origin, origin + direction / norm * float(length))

    @property
    def start(self):
        return self._start

    @property
    def end(self):
        return self._end

    def endpoints(self):
        """Return ``(start, end)``; index 0 is start and 1 is end."""
        return self._start, self._end

    def endpoint(self, index):
        if index not in (0, 1):
            raise IndexError(f"Endpoint index must be 0 or 1, got {index}")
        return self._start if index == 0 else self._end

    def length(self):
        """Calculate segment length in model units."""
        return float(np.linalg.norm(self._end - self._start))

    def tangent(self, tolerance=1e-9):
        """
        Calculate normalized tangent vector along the segment.

        Returns
        -------
        np.ndarray
            Normalized direction vector from start to end

        Raises
        ------
        DegenerateSegment
            If segment is shorter than ``tolerance``

        """
        length = self.length()
        if length < tolerance:
            raise DegenerateSegment(
                f"Segment is degenerate (length {length:.3g} below tolerance {tolerance:.3g})"
            )
        return (self._end - self._start) / length

    def midpoint(self):
        """Calculate midpoint of the segment."""
        return (self._start + self._end) / 2.0

    def point_at(self, t):
        """
        Get point along segment at parameter t.

        Args:
            t: Parameter value (0 = start, 1 = end); values outside [0, 1]
               lie on the infinite line beyond the segment

        Returns
        -------
        np.ndarray
            Point at parameter t

        """
        return self._start + t * (self._end - self._start)

    def parameter_of(self, point):
        """Parameter t of the projection of ``point`` onto the segment's line."""
        span = self._end - self._start
        return float(np.dot(as_point(point) - self._start, span) / np.dot(span, span))

    def with_endpoint(self, index, point):
        """Return a copy of this segment with endpoint ``index`` replaced."""
        if index == 0:
            return LineSegment(point, self._end)
        if index == 1:
            return LineSegment(self._start, point)
        raise IndexError(f"Endpoint index must be 0 or 1, got {index}")

    def to_dict(self):
        return {
            'start': self._start.tolist(),
            'end': self._end.tolist(),
            'length': self.length(),
        }

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self

    def __eq__(self, other):
        if not isinstance(other, LineSegment):
            return NotImplemented
        return np.array_equal(self._start, other._start) and np.array_equal(self._end, other._end)

    def __hash__(self):
        return hash((self._start.tobytes(), self._end.tobytes()))

    def __repr__(self):
        """Return string representation of line segment."""
        return (
            f"LineSegment(start={self._start.tolist()}, end={self._end.tolist()}, "
            f"length={self.length():.3f})"
        )
