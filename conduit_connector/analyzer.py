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

"""Segment pair analyzer - classifies two conduit centerlines as parallel, intersecting or skew."""

import logging
import math
from enum import Enum

import numpy as np

from .errors import NumericallyUnstable
from .vector_utils import distance, project_onto_line

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.001
DEFAULT_ANGULAR_TOLERANCE = 0.001

# Floor for the closest-point denominator (|dirA x dirB|^2 for unit directions).
MIN_DENOMINATOR = 1e-15


class Relationship(Enum):
    """Geometric relationship between the infinite lines of two segments."""

    PARALLEL = 'parallel'
    INTERSECTING = 'intersecting'
    SKEW = 'skew'


class Classification:
    """
    Result of analyzing a segment pair.

    Holds the relationship, the offset between the lines and the points of
    nearest approach. For parallel lines every perpendicular pair is a valid
    nearest approach; ``point_on_a`` is then segment A's start and
    ``point_on_b`` its projection onto line B.
    """

    def __init__(self, relationship, offset, point_on_a, point_on_b,
                 direction_a, direction_b, tolerance):
        self.relationship = relationship
        self.offset = float(offset)
        self.point_on_a = point_on_a
        self.point_on_b = point_on_b
        self.direction_a = direction_a
        self.direction_b = direction_b
        self.tolerance = float(tolerance)

    @property
    def has_offset(self):
        """True when the lines are separated by more than the tolerance."""
        return self.offset > self.tolerance

    @property
    def angle_deg(self):
        """Acute angle between the two lines in degrees."""
        cos_angle = abs(float(np.dot(self.direction_a, self.direction_b)))
        return math.degrees(math.acos(min(1.0, cos_angle)))

    def to_dict(self):
        return {
            'relationship': self.relationship.value,
            'offset': self.offset,
            'angle_deg': self.angle_deg,
            'point_on_a': self.point_on_a.tolist(),
            'point_on_b': self.point_on_b.tolist(),
            'tolerance': self.tolerance,
        }

    def __repr__(self):
        return f"Classification({self.relationship.value}, offset={self.offset:.6g})"


def _validate_tolerance(name, value):
    value = float(value)
    if not math.isfinite(value) or value <= 0.0:
        raise ValueError(f"{name} must be a positive finite number, got {value}")
    return value


class SegmentPairAnalyzer:
    """Classify the relationship between two line segments."""

    def __init__(self, tolerance=DEFAULT_TOLERANCE, angular_tolerance=DEFAULT_ANGULAR_TOLERANCE):
        """
        Initialize analyzer with distance and angular tolerances.

        Args:
            tolerance : float
                Distance below which points coincide and segments are degenerate
            angular_tolerance : float
                Cross product magnitude of the unit directions below which
                the lines are treated as parallel

        """
        self.tolerance = _validate_tolerance('tolerance', tolerance)
        self.angular_tolerance = _validate_tolerance('angular_tolerance', angular_tolerance)
        if self.angular_tolerance >= 1.0:
            raise ValueError(f"angular_tolerance must be below 1, got {self.angular_tolerance}")

    def analyze(self, a, b):
        """
        Classify two segments.

        Args:
            a : LineSegment
                First segment
            b : LineSegment
                Second segment

        Returns
        -------
        Classification
            Relationship, offset and nearest approach points

        Raises
        ------
        DegenerateSegment
            If either segment is shorter than the tolerance
        NumericallyUnstable
            If the closest-point system cannot be solved

        """
        dir_a = a.tangent(self.tolerance)
        dir_b = b.tangent(self.tolerance)

        cross_mag = float(np.linalg.norm(np.cross(dir_a, dir_b)))
        if cross_mag < self.angular_tolerance:
            classification = self._classify_parallel(a, b, dir_a, dir_b)
        else:
            classification = self._classify_non_parallel(a, b, dir_a, dir_b)

        logger.debug("Classified %r / %r as %r", a, b, classification)
        return classification

    def _classify_parallel(self, a, b, dir_a, dir_b):
        v = b.start - a.start
        perpendicular = v - np.dot(v, dir_a) * dir_a
        offset = float(np.linalg.norm(perpendicular))

        point_on_a = np.array(a.start)
        point_on_b = project_onto_line(point_on_a, b.start, dir_b)

        return Classification(
            Relationship.PARALLEL, offset, point_on_a, point_on_b,
            dir_a, dir_b, self.tolerance,
        )

    def _classify_non_parallel(self, a, b, dir_a, dir_b):
        w = a.start - b.start
        aa = np.dot(dir_a, dir_a)
        ab = np.dot(dir_a, dir_b)
        bb = np.dot(dir_b, dir_b)
        aw = np.dot(dir_a, w)
        bw = np.dot(dir_b, w)

        denominator = aa * bb - ab * ab
        if not math.isfinite(denominator) or denominator < MIN_DENOMINATOR:
            raise NumericallyUnstable(
                f"Closest point denominator {denominator!r} is too small to solve"
            )

        s = (ab * bw - bb * aw) / denominator
        t = (aa * bw - ab * aw) / denominator

        point_on_a = a.start + s * dir_a
        point_on_b = b.start + t * dir_b
        offset = distance(point_on_a, point_on_b)

        # Ties go to the simpler connection.
        if offset <= self.tolerance:
            relationship = Relationship.INTERSECTING
        else:
            relationship = Relationship.SKEW

        return Classification(
            relationship, offset, point_on_a, point_on_b,
            dir_a, dir_b, self.tolerance,
        )


def analyze(a, b, tolerance=DEFAULT_TOLERANCE, angular_tolerance=DEFAULT_ANGULAR_TOLERANCE):
    """Classify two segments with the given tolerances."""
    return SegmentPairAnalyzer(tolerance, angular_tolerance).analyze(a, b)
