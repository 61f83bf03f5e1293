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

"""In-memory conduit model - applies connection plans with all-or-nothing transactions."""

import copy
import logging
from contextlib import contextmanager

import numpy as np

from .analyzer import DEFAULT_TOLERANCE
from .connection_plan import SEGMENT_A, SEGMENT_B, link_key
from .errors import AmbiguousEndpoint, TransactionError
from .vector_utils import as_point, distance

logger = logging.getLogger(__name__)


class Connector:
    """One end of a conduit; may be connected to one other connector."""

    def __init__(self, element_id, index, origin):
        self.element_id = element_id
        self.index = index
        self.origin = np.array(origin, dtype=float)
        self.connected_to = None

    @property
    def key(self):
        return (self.element_id, self.index)

    @property
    def is_connected(self):
        return self.connected_to is not None

    def __repr__(self):
        state = f"-> {self.connected_to}" if self.is_connected else "open"
        return f"Connector({self.element_id}[{self.index}], {state})"


class Conduit:
    """Conduit element: centerline segment, diameter and two connectors."""

    def __init__(self, element_id, segment, diameter=None):
        self.element_id = element_id
        self.segment = segment
        self.diameter = diameter
        self.connectors = [
            Connector(element_id, index, point)
            for index, point in enumerate(segment.endpoints())
        ]

    def set_segment(self, segment):
        """Move the centerline; connectors follow their endpoints."""
        self.segment = segment
        for connector, point in zip(self.connectors, segment.endpoints()):
            connector.origin = np.array(point, dtype=float)

    def to_dict(self):
        return {
            'id': self.element_id,
            'diameter': self.diameter,
            'segment': self.segment.to_dict(),
            'connected_to': [
                list(c.connected_to) if c.is_connected else None for c in self.connectors
            ],
        }

    def __repr__(self):
        return f"Conduit({self.element_id}, {self.segment!r})"


class Fitting:
    """Fitting joining two connectors at a joint point."""

    def __init__(self, kind, location, connector_keys, bend_angle_deg, pose=None):
        self.fitting_id = None
        self.kind = kind
        self.location = np.array(location, dtype=float)
        self.connector_keys = tuple(connector_keys)
        self.bend_angle_deg = float(bend_angle_deg)
        self.pose = pose

    def to_dict(self):
        return {
            'id': self.fitting_id,
            'kind': self.kind,
            'location': self.location.tolist(),
            'connectors': [list(key) for key in self.connector_keys],
            'bend_angle_deg': self.bend_angle_deg,
            'pose': self.pose,
        }

    def __repr__(self):
        return f"Fitting({self.fitting_id}, {self.kind}, {self.bend_angle_deg:.1f} deg)"


def build_fitting(connector1, connector2, joint):
    """Default fitting builder: an elbow or coupling posed at the joint."""
    return Fitting(
        joint.fitting_kind,
        joint.location,
        (connector1.key, connector2.key),
        joint.bend_angle_deg,
        joint.pose(),
    )


class ApplyResult:
    """What applying a plan changed in the model."""

    def __init__(self, element_ids, created_conduits, fittings, skipped_joints):
        self.element_ids = element_ids
        self.created_conduits = created_conduits
        self.fittings = fittings
        self.skipped_joints = skipped_joints

    def to_dict(self):
        return {
            'element_ids': dict(self.element_ids),
            'created_conduits': list(self.created_conduits),
            'fittings': [fitting.to_dict() for fitting in self.fittings],
            'skipped_joints': self.skipped_joints,
        }


class ConduitModel:
    """
    Minimal host document holding conduits and fittings.

    Stands in for a CAD model: resolves element ids to segments, reports
    open ends and applies connection plans inside a transaction.
    """

    def __init__(self, tolerance=DEFAULT_TOLERANCE, fitting_builder=build_fitting):
        self.tolerance = tolerance
        self.fitting_builder = fitting_builder
        self._conduits = {}
        self._fittings = []
        self._next_conduit = 1
        self._next_fitting = 1

    @property
    def conduits(self):
        return list(self._conduits.values())

    @property
    def fittings(self):
        return list(self._fittings)

    def add_conduit(self, segment, diameter=None, element_id=None):
        """
        Add a conduit to the model.

        Args:
            segment : LineSegment
                Centerline of the conduit
            diameter : float, optional
                Nominal diameter, copied onto conduits created from this one
            element_id : str, optional
                Identifier; generated when omitted

        Returns
        -------
        str
            Element id of the new conduit

        Raises
        ------
        ValueError
            If the id is already in use

        """
        if element_id is None:
            element_id = f"C{self._next_conduit}"
            while element_id in self._conduits:
                self._next_conduit += 1
                element_id = f"C{self._next_conduit}"
            self._next_conduit += 1
        elif element_id in self._conduits:
            raise ValueError(f"Duplicate conduit id: {element_id}")

        self._conduits[element_id] = Conduit(element_id, segment, diameter)
        return element_id

    def get(self, element_id):
        try:
            return self._conduits[element_id]
        except KeyError:
            raise KeyError(f"Unknown conduit id: {element_id}") from None

    def segment(self, element_id):
        return self.get(element_id).segment

    def find_connector(self, element_id, point):
        """Return the connector of a conduit closest to ``point``."""
        point = as_point(point)
        return min(self.get(element_id).connectors, key=lambda c: distance(c.origin, point))

    def find_open_connector(self, element_id, point, tolerance=None):
        """
        Return the unconnected connector at ``point``.

        Returns
        -------
        Connector or None
            The closest open connector within tolerance, None when there is none

        """
        tolerance = self.tolerance if tolerance is None else tolerance
        point = as_point(point)
        candidates = [
            c for c in self.get(element_id).connectors
            if not c.is_connected and distance(c.origin, point) <= tolerance
        ]
        if not candidates:
            return None
        return min(candidates, key=lambda c: distance(c.origin, point))

    def free_end(self, element_id):
        """
        Origin of the single open connector of a conduit.

        Raises
        ------
        AmbiguousEndpoint
            If both or neither of the connectors are open

        """
        open_connectors = [c for c in self.get(element_id).connectors if not c.is_connected]
        if len(open_connectors) != 1:
            raise AmbiguousEndpoint(
                f"Conduit {element_id} has {len(open_connectors)} open ends; "
                "a free end must be selected explicitly"
            )
        return open_connectors[0].origin.copy()

    def connect_connectors(self, connector1, connector2):
        connector1.connected_to = connector2.key
        connector2.connected_to = connector1.key

    @contextmanager
    def transaction(self, name):
        """
        Run a block of edits atomically.

        Any exception restores the model to its state at entry and is
        re-raised as TransactionError.
        """
        snapshot = (
            copy.deepcopy(self._conduits),
            list(self._fittings),
            self._next_conduit,
            self._next_fitting,
        )
        try:
            yield self
        except Exception as e:
            self._conduits, self._fittings, self._next_conduit, self._next_fitting = snapshot
            logger.warning("Transaction '%s' rolled back: %s", name, e)
            raise TransactionError(f"{name} failed and was rolled back: {e}") from e
        logger.info("Transaction '%s' committed", name)

    def apply_plan(self, plan, id_a, id_b):
        """
        Apply a connection plan to two conduits.

        Updates both conduits, creates the intermediate conduits with the
        diameter of conduit A and creates one fitting per joint point. A
        joint whose connectors are already joined to each other is skipped.

        Args:
            plan : ConnectionPlan
                Plan returned by the planner
            id_a : str
                Element id of segment A
            id_b : str
                Element id of segment B

        Returns
        -------
        ApplyResult
            Element ids per plan segment, created conduits and fittings

        Raises
        ------
        TransactionError
            If any step fails; the model is left unchanged

        """
        with self.transaction(f"Connect {id_a} and {id_b}"):
            element_ids = {SEGMENT_A: id_a, SEGMENT_B: id_b}
            conduit_a = self.get(id_a)
            conduit_b = self.get(id_b)
            conduit_a.set_segment(plan.update_a.segment)
            conduit_b.set_segment(plan.update_b.segment)

            created = []
            for i, segment in enumerate(plan.intermediates):
                new_id = self.add_conduit(segment, diameter=conduit_a.diameter)
                element_ids[link_key(i)] = new_id
                created.append(new_id)

            fittings = []
            skipped = 0
            for joint in plan.joints:
                connector1 = self._joint_connector(element_ids, joint.first, joint.location)
                connector2 = self._joint_connector(element_ids, joint.second, joint.location)

                if connector1.connected_to == connector2.key:
                    logger.warning(
                        "Joint at %s already connects %s and %s; skipping",
                        joint.location.tolist(), connector1.key, connector2.key,
                    )
                    skipped += 1
                    continue
                for connector in (connector1, connector2):
                    if connector.is_connected:
                        raise ValueError(
                            f"Connector {connector.key} is already connected to {connector.connected_to}"
                        )

                fitting = self.fitting_builder(connector1, connector2, joint)
                fitting.fitting_id = f"F{self._next_fitting}"
                self._next_fitting += 1
                self._fittings.append(fitting)
                self.connect_connectors(connector1, connector2)
                fittings.append(fitting)

        logger.info(
            "Applied %s plan: %d new conduit(s), %d fitting(s)",
            plan.strategy.value, len(created), len(fittings),
        )
        return ApplyResult(element_ids, created, fittings, skipped)

    def _joint_connector(self, element_ids, segment_end, location):
        element_id = element_ids[segment_end.segment]
        connector = self.find_open_connector(element_id, location)
        if connector is None:
            # Already joined; apply_plan decides between skipping and conflict.
            connector = self.find_connector(element_id, location)
            if distance(connector.origin, location) > self.tolerance:
                raise ValueError(
                    f"Conduit {element_id} has no connector at joint {np.asarray(location).tolist()}"
                )
        if connector.key != (element_id, segment_end.index):
            raise ValueError(
                f"Connector {connector.key} at {connector.origin.tolist()} is not the "
                f"planned end {segment_end.index} of conduit {element_id}"
            )
        return connector
