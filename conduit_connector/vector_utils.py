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

"""Small vector helpers shared by the analyzer and the strategies."""

import numpy as np

ZERO_LENGTH = 1e-12


def as_point(value) -> np.ndarray:
    """
    Convert a 3-sequence to a float numpy array.

    Raises
    ------
    ValueError
        If the value is not a 3D point

    """
    point = np.array(value, dtype=float)
    if point.shape != (3,):
        raise ValueError(f"Expected a 3D point [x, y, z], got {value!r}")
    return point


def normalize(vector: np.ndarray) -> np.ndarray:
    """Return the unit vector along ``vector``."""
    length = np.linalg.norm(vector)
    if length < ZERO_LENGTH:
        raise ValueError("Cannot normalize a zero-length vector")
    return vector / length


def distance(p: np.ndarray, q: np.ndarray) -> float:
    return float(np.linalg.norm(np.asarray(q, dtype=float) - np.asarray(p, dtype=float)))


def angle_between(u: np.ndarray, v: np.ndarray) -> float:
    """
    Angle between two vectors in radians, in [0, pi].

    The cosine is clipped so rounding on nearly parallel vectors cannot
    push it outside the domain of arccos.
    """
    cos_angle = np.dot(normalize(u), normalize(v))
    return float(np.arccos(np.clip(cos_angle, -1.0, 1.0)))


def project_onto_line(point: np.ndarray, origin: np.ndarray, direction: np.ndarray) -> np.ndarray:
    """
    Project a point onto the infinite line through ``origin``.

    Args:
        point: Point to project
        origin: Any point on the line
        direction: Unit direction of the line

    Returns
    -------
    np.ndarray
        Foot of the perpendicular from ``point`` to the line

    """
    t = np.dot(point - origin, direction)
    return origin + t * direction


def distance_to_line(point: np.ndarray, origin: np.ndarray, direction: np.ndarray) -> float:
    """Perpendicular distance from a point to an infinite line (unit direction)."""
    return distance(point, project_onto_line(point, origin, direction))


def any_perpendicular(direction: np.ndarray) -> np.ndarray:
    """
    Return some unit vector perpendicular to ``direction``.

    Crosses with the world Z axis, falling back to X for vertical directions.
    """
    perpendicular = np.cross(direction, [0.0, 0.0, 1.0])
    if np.linalg.norm(perpendicular) < 1e-6:
        perpendicular = np.cross(direction, [1.0, 0.0, 0.0])
    return normalize(perpendicular)
