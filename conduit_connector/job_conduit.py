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

"""JobConduit - Conduit entry of a connection job with its geometry and free end."""

from .line_segment import LineSegment
from .vector_utils import as_point


class JobConduit:
    """
    Represent one conduit of a connection job.

    Wraps a LineSegment for geometry and holds the job-level data: id,
    diameter and which end is free.
    """

    FREE_END_NAMES = {'start': 0, 'end': 1}

    def __init__(self, conduit_dict):
        """
        Initialize conduit from YAML dictionary.

        Args:
            conduit_dict : dict
                Dictionary with 'id', 'start' and 'end' keys and optional
                'diameter' and 'free_end' ('start', 'end' or a point)

        Raises
        ------
        ValueError
            If the free end is neither an endpoint name nor a 3D point

        """
        self.element_id = str(conduit_dict['id'])
        self.line_segment = LineSegment(conduit_dict['start'], conduit_dict['end'])
        self.diameter = conduit_dict.get('diameter')
        self.free_end = self._parse_free_end(conduit_dict.get('free_end'))

    def _parse_free_end(self, value):
        if value is None:
            return None
        if isinstance(value, str):
            name = value.lower()
            if name not in self.FREE_END_NAMES:
                raise ValueError(
                    f"Conduit {self.element_id}: free_end must be 'start', 'end' or a point, got '{value}'"
                )
            return self.line_segment.endpoint(self.FREE_END_NAMES[name]).copy()
        return as_point(value)

    def to_dict(self):
        return {
            'id': self.element_id,
            'start': self.line_segment.start.tolist(),
            'end': self.line_segment.end.tolist(),
            'diameter': self.diameter,
            'free_end': None if self.free_end is None else self.free_end.tolist(),
        }

    def __repr__(self):
        """Return string representation of job conduit."""
        return f"JobConduit({self.element_id}, length={self.line_segment.length():.3f})"
