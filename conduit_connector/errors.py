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

"""Typed failures raised while analyzing and planning conduit connections."""


class ConduitConnectionError(ValueError):
    """Base class for every failure of the connection core."""


class DegenerateSegment(ConduitConnectionError):
    """A segment is shorter than the tolerance (or would become so)."""


class NumericallyUnstable(ConduitConnectionError):
    """Closest-point solve denominator is too small to divide by."""


class AmbiguousEndpoint(ConduitConnectionError):
    """Both endpoints of a segment are equally valid trim candidates."""


class InapplicableStrategy(ConduitConnectionError):
    """A strategy was invoked with a classification it does not handle."""


class FreeEndMismatch(ConduitConnectionError):
    """A supplied free end is not an endpoint, or the joint lies behind its fixed end."""


class TransactionError(RuntimeError):
    """Applying a plan to the conduit model failed and was rolled back."""
