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


"""Connection planner - classifies a conduit pair and picks the strategy that joins it."""

import logging

from .analyzer import (
    DEFAULT_ANGULAR_TOLERANCE,
    DEFAULT_TOLERANCE,
    Relationship,
    SegmentPairAnalyzer,
)
from .strategies import STRATEGIES, StrategyKind

logger = logging.getLogger(__name__)


class ConnectionOutcome:
    """Classification, chosen strategy and resulting plan of one connect call."""

    def __init__(self, classification, strategy, plan):
        self.classification = classification
        self.strategy = strategy
        self.plan = plan

    @property
    def strategy_name(self):
        return self.strategy.value

    def to_dict(self):
        return {
            'classification': self.classification.to_dict(),
            'strategy': self.strategy_name,
            'plan': self.plan.to_dict(),
        }

    def __repr__(self):
        return f"ConnectionOutcome({self.strategy_name}, {self.classification!r})"


def select_strategy(classification):
    """
    Map a classification to the strategy that connects it.

    Returns
    -------
    StrategyKind
        DIRECT_JOIN for intersecting or collinear pairs, PARALLEL_OFFSET for
        offset parallel pairs, SKEW_KICK for skew pairs

    """
    relationship = classification.relationship
    if relationship is Relationship.INTERSECTING:
        return StrategyKind.DIRECT_JOIN
    elif relationship is Relationship.PARALLEL:
        if classification.has_offset:
            return StrategyKind.PARALLEL_OFFSET
        return StrategyKind.DIRECT_JOIN
    elif relationship is Relationship.SKEW:
        return StrategyKind.SKEW_KICK
    else:
        raise ValueError(f"Unknown relationship: {relationship!r}")


def _free_end_point(segment, free_end):
    if callable(free_end):
        return free_end(segment)
    return free_end


class ConnectionPlanner:
    """
    Plan the connection of two conduit segments.

    Pure: the planner never touches a host model. Callers apply the
    returned plan themselves.
    """

    def __init__(self, parameters=None):
        """
        Initialize planner with connection parameters.

        Args:
            parameters : dict, optional
                Dictionary with optional keys:
                - tolerance: Distance tolerance in model units
                - angular_tolerance: Parallel threshold on |dirA x dirB|

        """
        parameters = parameters or {}
        self.tolerance = float(parameters.get('tolerance', DEFAULT_TOLERANCE))
        self.angular_tolerance = float(
            parameters.get('angular_tolerance', DEFAULT_ANGULAR_TOLERANCE)
        )
        self.analyzer = SegmentPairAnalyzer(self.tolerance, self.angular_tolerance)

    def connect(self, a, b, free_end_a=None, free_end_b=None):
        """
        Classify two segments and plan their connection.

        Args:
            a : LineSegment
                First segment
            b : LineSegment
                Second segment
            free_end_a, free_end_b : array-like or callable, optional
                Open endpoint of each segment, or a selector called with the
                segment that returns it. When omitted the endpoint nearer the
                joint is used.

        Returns
        -------
        ConnectionOutcome
            Classification, chosen strategy and plan

        Raises
        ------
        ConduitConnectionError
            If the segments are degenerate or the free ends cannot be resolved

        """
        free_end_a = _free_end_point(a, free_end_a)
        free_end_b = _free_end_point(b, free_end_b)

        classification = self.analyzer.analyze(a, b)
        kind = select_strategy(classification)
        logger.debug("Selected %s for %r", kind.value, classification)

        plan = STRATEGIES[kind].plan(a, b, classification, free_end_a, free_end_b)
        return ConnectionOutcome(classification, kind, plan)


def connect(a, b, free_end_a=None, free_end_b=None, tolerance=DEFAULT_TOLERANCE,
            angular_tolerance=DEFAULT_ANGULAR_TOLERANCE):
    """Plan the connection of two segments with the given tolerances."""
    planner = ConnectionPlanner({'tolerance': tolerance, 'angular_tolerance': angular_tolerance})
    return planner.connect(a, b, free_end_a, free_end_b)
