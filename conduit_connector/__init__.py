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

"""Classify straight conduit pairs and plan the geometry that joins them."""

from .analyzer import Classification, Relationship, SegmentPairAnalyzer, analyze
from .connection_plan import ConnectionPlan, EndpointUpdate, JointPoint, SegmentEnd
from .connection_planner import ConnectionOutcome, ConnectionPlanner, connect, select_strategy
from .errors import (
    AmbiguousEndpoint,
    ConduitConnectionError,
    DegenerateSegment,
    FreeEndMismatch,
    InapplicableStrategy,
    NumericallyUnstable,
    TransactionError,
)
from .line_segment import LineSegment
from .strategies import DirectJoin, ParallelOffset, SkewKick, StrategyKind

__version__ = '0.1.0'
