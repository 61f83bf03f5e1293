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

"""Connection strategies - compute the geometry that joins a classified segment pair."""

from enum import Enum

import numpy as np

from .analyzer import Relationship
from .connection_plan import (
    SEGMENT_A,
    SEGMENT_B,
    ConnectionPlan,
    EndpointUpdate,
    JointPoint,
    SegmentEnd,
    link_key,
)
from .errors import AmbiguousEndpoint, DegenerateSegment, FreeEndMismatch, InapplicableStrategy
from .line_segment import LineSegment
from .vector_utils import as_point, distance, project_onto_line


class StrategyKind(Enum):
    """Closed set of ways two segments can be joined."""

    DIRECT_JOIN = 'DirectJoin'
    PARALLEL_OFFSET = 'ParallelOffset'
    SKEW_KICK = 'SkewKick'


def resolve_free_end_index(segment, free_end, tolerance):
    """
    Match a caller-supplied free end to an endpoint index of ``segment``.

    Args:
        segment : LineSegment
            Segment owning the free end
        free_end : array-like
            Point reported by the host as the open end
        tolerance : float
            Maximum distance between the point and the endpoint

    Returns
    -------
    int
        0 for start, 1 for end

    Raises
    ------
    FreeEndMismatch
        If the point is not within tolerance of either endpoint
    AmbiguousEndpoint
        If the point is within tolerance of both endpoints

    """
    point = as_point(free_end)
    matches = [
        index for index, endpoint in enumerate(segment.endpoints())
        if distance(endpoint, point) <= tolerance
    ]
    if not matches:
        raise FreeEndMismatch(
            f"Free end {point.tolist()} is not an endpoint of {segment!r}"
        )
    if len(matches) == 2:
        raise AmbiguousEndpoint(
            f"Free end {point.tolist()} matches both endpoints of {segment!r}"
        )
    return matches[0]


def nearer_endpoint_index(segment, point, tolerance):
    """
    Index of the endpoint to replace when moving ``segment`` to ``point``.

    The endpoint farther from ``point`` is retained and the nearer one is
    replaced. Endpoints equidistant within tolerance cannot be told apart.
    """
    d_start = distance(segment.start, point)
    d_end = distance(segment.end, point)
    if abs(d_start - d_end) <= tolerance:
        raise AmbiguousEndpoint(
            f"Both endpoints of {segment!r} are {d_start:.6g} from {np.asarray(point).tolist()}"
        )
    return 0 if d_start < d_end else 1


def _closest_endpoint_pair(a, b, tolerance):
    candidates = sorted(
        (distance(pa, pb), ia, ib)
        for ia, pa in enumerate(a.endpoints())
        for ib, pb in enumerate(b.endpoints())
    )
    best, runner_up = candidates[0], candidates[1]
    if runner_up[0] - best[0] <= tolerance:
        raise AmbiguousEndpoint(
            "Cannot tell which ends face each other: two endpoint pairs are "
            f"{best[0]:.6g} apart"
        )
    return best[1], best[2]


def free_end_indices(a, b, free_end_a, free_end_b, tolerance):
    """
    Endpoint indices of the free ends of two parallel segments.

    Supplied free ends win. A missing free end is the endpoint nearer to the
    other segment's free end; with neither supplied the closest endpoint
    pair between the segments is used.
    """
    index_a = None if free_end_a is None else resolve_free_end_index(a, free_end_a, tolerance)
    index_b = None if free_end_b is None else resolve_free_end_index(b, free_end_b, tolerance)

    if index_a is None and index_b is None:
        return _closest_endpoint_pair(a, b, tolerance)
    if index_a is None:
        index_a = nearer_endpoint_index(a, b.endpoint(index_b), tolerance)
    if index_b is None:
        index_b = nearer_endpoint_index(b, a.endpoint(index_a), tolerance)
    return index_a, index_b


def _replaced_index(segment, free_end, target, tolerance):
    if free_end is not None:
        return resolve_free_end_index(segment, free_end, tolerance)
    return nearer_endpoint_index(segment, target, tolerance)


def _checked(segment, label, tolerance):
    if segment.length() < tolerance:
        raise DegenerateSegment(
            f"Connection would collapse segment {label} to length {segment.length():.3g}"
        )
    return segment


def _update(key, segment, index, new_point, tolerance):
    """
    Build the endpoint update that moves endpoint ``index`` to ``new_point``.

    The retained endpoint must not be nearer to ``new_point`` than the
    replaced one, otherwise the segment would fold back over its fixed end.
    """
    kept = distance(segment.endpoint(1 - index), new_point)
    replaced = distance(segment.endpoint(index), new_point)
    if kept < replaced - tolerance:
        raise FreeEndMismatch(
            f"Free end {segment.endpoint(index).tolist()} of segment {key} points away from "
            f"the joint at {np.asarray(new_point).tolist()}; its fixed end is nearer"
        )
    update = EndpointUpdate(key, segment, index, new_point, tolerance)
    _checked(update.segment, key, tolerance)
    return update



def _joint(location, segments, first, second):
    location = np.asarray(location, dtype=float)
    away_first = segments[first.segment].endpoint(1 - first.index) - location
    away_second = segments[second.segment].endpoint(1 - second.index) - location
    return JointPoint(location, first, second, away_first, away_second)


class ConnectionStrategy:
    """
    Base class for connection strategies.

    Subclasses declare the classification they handle in ``can_apply`` and
    build the plan in ``_plan``.
    """

    kind = None

    def can_apply(self, classification):
        raise NotImplementedError

    def plan(self, a, b, classification, free_end_a=None, free_end_b=None):
        """
        Compute the connection plan for a classified pair.

        Args:
            a : LineSegment
                First segment
            b : LineSegment
                Second segment
            classification : Classification
                Result of analyzing ``a`` and ``b``
            free_end_a, free_end_b : array-like, optional
                Open endpoints reported by the host

        Returns
        -------
        ConnectionPlan
            Endpoint updates, intermediate segments and joint points

        Raises
        ------
        InapplicableStrategy
            If this strategy does not handle the classification

        """
        if not self.can_apply(classification):
            raise InapplicableStrategy(
                f"{self.kind.value} cannot connect a {classification.relationship.value} pair "
                f"with offset {classification.offset:.6g}"
            )
        return self._plan(a, b, classification, free_end_a, free_end_b)

    def _plan(self, a, b, classification, free_end_a, free_end_b):
        raise NotImplementedError

    def _two_joint_plan(self, a, b, index_a, index_b, point_a, point_b, tolerance):
        """Trim both segments and bridge ``point_a`` to ``point_b`` with one link."""
        update_a = _update(SEGMENT_A, a, index_a, point_a, tolerance)
        update_b = _update(SEGMENT_B, b, index_b, point_b, tolerance)
        link = _checked(LineSegment(point_a, point_b), link_key(0), tolerance)

        plan = ConnectionPlan(self.kind, update_a, update_b, [link], [])
        segments = plan.segments()
        plan.joints = [
            _joint(point_a, segments, update_a.segment_end, SegmentEnd(link_key(0), 0)),
            _joint(point_b, segments, SegmentEnd(link_key(0), 1), update_b.segment_end),
        ]
        return plan

    def __repr__(self):
        return f"{type(self).__name__}()"


class DirectJoin(ConnectionStrategy):
    """Meet both free ends at a single joint point."""

    kind = StrategyKind.DIRECT_JOIN

    def can_apply(self, classification):
        if classification.relationship is Relationship.INTERSECTING:
            return True
        return classification.relationship is Relationship.PARALLEL and not classification.has_offset

    def _plan(self, a, b, classification, free_end_a, free_end_b):
        tolerance = classification.tolerance

        if classification.relationship is Relationship.INTERSECTING:
            location = (classification.point_on_a + classification.point_on_b) / 2.0
            index_a = _replaced_index(a, free_end_a, location, tolerance)
            index_b = _replaced_index(b, free_end_b, location, tolerance)
        else:
            # Collinear: meet halfway between the facing ends.
            index_a, index_b = free_end_indices(a, b, free_end_a, free_end_b, tolerance)
            location = (a.endpoint(index_a) + b.endpoint(index_b)) / 2.0

        update_a = _update(SEGMENT_A, a, index_a, location, tolerance)
        update_b = _update(SEGMENT_B, b, index_b, location, tolerance)

        plan = ConnectionPlan(self.kind, update_a, update_b, [], [])
        plan.joints = [
            _joint(location, plan.segments(), update_a.segment_end, update_b.segment_end),
        ]
        return plan


class ParallelOffset(ConnectionStrategy):
    """Join two offset parallel segments with a perpendicular jog."""

    kind = StrategyKind.PARALLEL_OFFSET

    def can_apply(self, classification):
        return classification.relationship is Relationship.PARALLEL and classification.has_offset

    def _plan(self, a, b, classification, free_end_a, free_end_b):
        tolerance = classification.tolerance
        index_a, index_b = free_end_indices(a, b, free_end_a, free_end_b, tolerance)

        end_b = np.array(b.endpoint(index_b))
        projected = project_onto_line(end_b, a.start, classification.direction_a)

        return self._two_joint_plan(a, b, index_a, index_b, projected, end_b, tolerance)


class SkewKick(ConnectionStrategy):
    """Bridge two skew segments along their common perpendicular."""

    kind = StrategyKind.SKEW_KICK

    def can_apply(self, classification):
        return classification.relationship is Relationship.SKEW

    def _plan(self, a, b, classification, free_end_a, free_end_b):
        tolerance = classification.tolerance
        point_a = classification.point_on_a
        point_b = classification.point_on_b

        index_a = _replaced_index(a, free_end_a, point_a, tolerance)
        index_b = _replaced_index(b, free_end_b, point_b, tolerance)

        return self._two_joint_plan(a, b, index_a, index_b, point_a, point_b, tolerance)


STRATEGIES = {
    StrategyKind.DIRECT_JOIN: DirectJoin(),
    StrategyKind.PARALLEL_OFFSET: ParallelOffset(),
    StrategyKind.SKEW_KICK: SkewKick(),
}
