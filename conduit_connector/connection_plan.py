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

"""Connection plan - endpoint updates, intermediate segments and joint points."""

from collections import namedtuple

import numpy as np
from scipy.spatial.transform import Rotation

from .vector_utils import angle_between, any_perpendicular, distance, normalize

SEGMENT_A = 'a'
SEGMENT_B = 'b'

# Bends below this are straight couplings rather than elbows.
STRAIGHT_BEND_DEG = 0.1


def link_key(index):
    """Key of the intermediate segment at ``index`` in a plan."""
    return f"link{index}"


SegmentEnd = namedtuple('SegmentEnd', ['segment', 'index'])
SegmentEnd.__doc__ = """Reference to one end of a plan segment (0 = start, 1 = end)."""


class EndpointUpdate:
    """Replacement of one endpoint of an original segment."""

    def __init__(self, segment_key, original, index, new_point, tolerance):
        self.segment_key = segment_key
        self.original = original
        self.index = index
        self.new_point = np.array(new_point, dtype=float)
        self.tolerance = tolerance
        self.segment = original.with_endpoint(index, self.new_point)

    @property
    def old_point(self):
        return self.original.endpoint(self.index)

    @property
    def fixed_point(self):
        return self.original.endpoint(1 - self.index)

    @property
    def kind(self):
        """
        Describe the update.

        Returns
        -------
        str
            ``"keep"`` when the endpoint does not move, ``"trim"`` when it
            moves inside the original segment and ``"extend"`` otherwise

        """
        if distance(self.old_point, self.new_point) <= self.tolerance:
            return 'keep'
        t = self.original.parameter_of(self.new_point)
        if 0.0 <= t <= 1.0:
            return 'trim'
        return 'extend'

    @property
    def segment_end(self):
        return SegmentEnd(self.segment_key, self.index)

    def to_dict(self):
        return {
            'segment': self.segment_key,
            'endpoint_index': self.index,
            'old_point': self.old_point.tolist(),
            'new_point': self.new_point.tolist(),
            'kind': self.kind,
            'result': self.segment.to_dict(),
        }

    def __repr__(self):
        return f"EndpointUpdate({self.segment_key}[{self.index}] {self.kind})"


class JointPoint:
    """
    Location where two segment ends meet and a fitting must be created.

    ``direction_first`` and ``direction_second`` point from the joint along
    each joined segment, away from the joint.
    """

    def __init__(self, location, first, second, direction_first, direction_second):
        self.location = np.array(location, dtype=float)
        self.first = first
        self.second = second
        self.direction_first = normalize(np.asarray(direction_first, dtype=float))
        self.direction_second = normalize(np.asarray(direction_second, dtype=float))

    @property
    def bend_angle_deg(self):
        """Deflection of the run through the joint; 0 for a straight run."""
        return 180.0 - np.degrees(angle_between(self.direction_first, self.direction_second))

    @property
    def fitting_kind(self):
        if self.bend_angle_deg < STRAIGHT_BEND_DEG:
            return 'coupling'
        return 'elbow'

    def frame(self):
        """
        Build the fitting frame at the joint.

        Returns
        -------
        np.ndarray
            3x3 rotation matrix whose columns are x (incoming run direction),
            y and z (normal of the bend plane)

        """
        x_axis = -self.direction_first
        z_axis = np.cross(x_axis, self.direction_second)
        if np.linalg.norm(z_axis) < 1e-9:
            z_axis = any_perpendicular(x_axis)
        z_axis = normalize(z_axis)
        y_axis = np.cross(z_axis, x_axis)
        return np.column_stack([x_axis, y_axis, z_axis])

    def pose(self, index=0):
        """
        Build pose data dictionary with position, quaternion, and transformation matrix.

        Args:
            index : int
                Joint index within the plan

        Returns
        -------
        dict
            Dictionary with pose data

        """
        rot_matrix = self.frame()

        quat = Rotation.from_matrix(rot_matrix).as_quat()  # [x, y, z, w]

        transform_matrix = np.eye(4)
        transform_matrix[:3, :3] = rot_matrix
        transform_matrix[:3, 3] = self.location

        return {
            "index": index,
            "position": self.location.tolist(),
            "quaternion": quat.tolist(),
            "matrix": transform_matrix.tolist(),
        }

    def to_dict(self, index=0):
        return {
            'location': self.location.tolist(),
            'first': {'segment': self.first.segment, 'endpoint_index': self.first.index},
            'second': {'segment': self.second.segment, 'endpoint_index': self.second.index},
            'bend_angle_deg': self.bend_angle_deg,
            'fitting_kind': self.fitting_kind,
            'pose': self.pose(index),
        }

    def __repr__(self):
        return (
            f"JointPoint({self.location.tolist()}, {self.first.segment}/{self.second.segment}, "
            f"{self.bend_angle_deg:.1f} deg)"
        )


class ConnectionPlan:
    """
    Everything the host needs to physically join two segments.

    Holds the endpoint update of each original segment, the ordered
    intermediate segments to create and the ordered joint points.
    """

    def __init__(self, strategy, update_a, update_b, intermediates, joints):
        self.strategy = strategy
        self.update_a = update_a
        self.update_b = update_b
        self.intermediates = list(intermediates)
        self.joints = list(joints)

    def segments(self):
        """Map every plan segment key to its post-connection geometry."""
        result = {
            SEGMENT_A: self.update_a.segment,
            SEGMENT_B: self.update_b.segment,
        }
        for i, segment in enumerate(self.intermediates):
            result[link_key(i)] = segment
        return result

    def to_dict(self):
        return {
            'strategy': self.strategy.value,
            'updates': [self.update_a.to_dict(), self.update_b.to_dict()],
            'intermediates': [
                dict(segment.to_dict(), key=link_key(i))
                for i, segment in enumerate(self.intermediates)
            ],
            'joints': [joint.to_dict(i) for i, joint in enumerate(self.joints)],
        }

    def __repr__(self):
        return (
            f"ConnectionPlan({self.strategy.value}, {len(self.intermediates)} intermediate(s), "
            f"{len(self.joints)} joint(s))"
        )
