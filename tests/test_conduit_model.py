"""Tests for the in-memory conduit model and plan application."""

import numpy as np
import pytest

from conduit_connector.conduit_model import ConduitModel, build_fitting
from conduit_connector.connection_planner import ConnectionPlanner
from conduit_connector.errors import AmbiguousEndpoint, TransactionError
from conduit_connector.line_segment import LineSegment


@pytest.fixture
def skew_model(skew_pair):
    model = ConduitModel()
    a, b = skew_pair
    model.add_conduit(a, diameter=0.75, element_id='run')
    model.add_conduit(b, diameter=1.0, element_id='riser')
    return model


class TestConduitModel:
    """Element bookkeeping and connector lookup."""

    def test_generated_ids_skip_taken_ones(self):
        model = ConduitModel()
        model.add_conduit(LineSegment([0, 0, 0], [1, 0, 0]), element_id='C1')
        assert model.add_conduit(LineSegment([0, 0, 0], [0, 1, 0])) == 'C2'

    def test_duplicate_id(self, skew_model):
        with pytest.raises(ValueError):
            skew_model.add_conduit(LineSegment([0, 0, 0], [1, 0, 0]), element_id='run')

    def test_unknown_id(self, skew_model):
        with pytest.raises(KeyError):
            skew_model.get('missing')

    def test_find_connector(self, skew_model):
        connector = skew_model.find_connector('run', [4.5, 0, 0])
        assert connector.key == ('run', 1)

    def test_find_open_connector(self, skew_model):
        assert skew_model.find_open_connector('run', [5, 0, 0]).key == ('run', 1)
        assert skew_model.find_open_connector('run', [4.5, 0, 0]) is None

    def test_free_end_needs_single_open_end(self, skew_model):
        with pytest.raises(AmbiguousEndpoint):
            skew_model.free_end('run')


class TestApplyPlan:
    """Transactional application of connection plans."""

    def test_apply_skew_kick(self, skew_model, skew_pair):
        outcome = ConnectionPlanner().connect(*skew_pair, [5, 0, 0], [5, 3, 0])
        result = skew_model.apply_plan(outcome.plan, 'run', 'riser')

        assert len(skew_model.conduits) == 3
        assert result.created_conduits == ['C1']
        link = skew_model.get('C1')
        assert link.diameter == 0.75
        assert link.segment.length() == pytest.approx(3.0)

        assert len(result.fittings) == 2
        assert [f.fitting_id for f in skew_model.fittings] == ['F1', 'F2']
        assert all(f.kind == 'elbow' for f in result.fittings)
        assert skew_model.get('run').connectors[1].connected_to == ('C1', 0)
        assert skew_model.get('riser').connectors[0].connected_to == ('C1', 1)

        np.testing.assert_allclose(skew_model.free_end('run'), [0, 0, 0])
        np.testing.assert_allclose(skew_model.free_end('riser'), [5, 3, 5])

    def test_updates_segments(self):
        model = ConduitModel()
        a = LineSegment([0, 0, 0], [3, 0, 0])
        b = LineSegment([5, -2, 0], [5, -5, 0])
        model.add_conduit(a, element_id='A')
        model.add_conduit(b, element_id='B')

        outcome = ConnectionPlanner().connect(a, b)
        model.apply_plan(outcome.plan, 'A', 'B')

        np.testing.assert_allclose(model.segment('A').end, [5, 0, 0], atol=1e-12)
        np.testing.assert_allclose(model.get('A').connectors[1].origin, [5, 0, 0], atol=1e-12)
        np.testing.assert_allclose(model.segment('B').start, [5, 0, 0], atol=1e-12)
        assert len(model.fittings) == 1

    def test_reapplying_direct_join_is_idempotent(self, corner_pair):
        model = ConduitModel()
        model.add_conduit(corner_pair[0], element_id='A')
        model.add_conduit(corner_pair[1], element_id='B')
        outcome = ConnectionPlanner().connect(*corner_pair, [5, 0, 0], [5, 0, 0])

        first = model.apply_plan(outcome.plan, 'A', 'B')
        second = model.apply_plan(outcome.plan, 'A', 'B')

        assert len(first.fittings) == 1
        assert second.fittings == []
        assert second.skipped_joints == 1
        assert len(model.fittings) == 1

    def test_failure_rolls_back_everything(self, skew_model, skew_pair):
        calls = []

        def flaky_builder(connector1, connector2, joint):
            calls.append(joint)
            if len(calls) == 2:
                raise RuntimeError("fitting family not loaded")
            return build_fitting(connector1, connector2, joint)

        skew_model.fitting_builder = flaky_builder
        outcome = ConnectionPlanner().connect(*skew_pair, [5, 0, 0], [5, 3, 0])

        with pytest.raises(TransactionError, match="fitting family not loaded"):
            skew_model.apply_plan(outcome.plan, 'run', 'riser')

        assert len(calls) == 2
        assert [c.element_id for c in skew_model.conduits] == ['run', 'riser']
        assert skew_model.fittings == []
        assert skew_model.segment('run') == skew_pair[0]
        assert not any(c.is_connected for c in skew_model.get('run').connectors)

        # Ids consumed by the failed attempt are handed out again.
        skew_model.fitting_builder = build_fitting
        result = skew_model.apply_plan(outcome.plan, 'run', 'riser')
        assert result.created_conduits == ['C1']

    def test_conflicting_connection_rolls_back(self, skew_model, skew_pair):
        outcome = ConnectionPlanner().connect(*skew_pair, [5, 0, 0], [5, 3, 0])
        skew_model.apply_plan(outcome.plan, 'run', 'riser')

        with pytest.raises(TransactionError, match="already connected"):
            skew_model.apply_plan(outcome.plan, 'run', 'riser')
        assert len(skew_model.conduits) == 3
        assert len(skew_model.fittings) == 2

    def test_fitting_pose(self, corner_pair):
        model = ConduitModel()
        model.add_conduit(corner_pair[0], element_id='A')
        model.add_conduit(corner_pair[1], element_id='B')
        outcome = ConnectionPlanner().connect(*corner_pair, [5, 0, 0], [5, 0, 0])
        fitting = model.apply_plan(outcome.plan, 'A', 'B').fittings[0]

        assert fitting.bend_angle_deg == pytest.approx(90.0)
        np.testing.assert_allclose(fitting.pose['position'], [5, 0, 0], atol=1e-12)
        np.testing.assert_allclose(fitting.pose['quaternion'], [0, 0, 0, 1], atol=1e-9)
        assert fitting.to_dict()['connectors'] == [['A', 1], ['B', 0]]

    def test_joint_away_from_connectors_rolls_back(self, corner_pair):
        model = ConduitModel()
        model.add_conduit(corner_pair[0], element_id='A')
        model.add_conduit(corner_pair[1], element_id='B')
        outcome = ConnectionPlanner().connect(*corner_pair, [5, 0, 0], [5, 0, 0])
        outcome.plan.joints[0].location = np.array([9.0, 9.0, 0.0])

        with pytest.raises(TransactionError, match="no connector at joint"):
            model.apply_plan(outcome.plan, 'A', 'B')
        assert model.fittings == []

    def test_joint_connector_joined_elsewhere_conflicts(self, corner_pair):
        model = ConduitModel()
        model.add_conduit(corner_pair[0], element_id='A')
        model.add_conduit(corner_pair[1], element_id='B')
        model.add_conduit(LineSegment([5, 0, 0], [5, -4, 0]), element_id='D')
        model.connect_connectors(model.get('A').connectors[1], model.get('D').connectors[0])
        outcome = ConnectionPlanner().connect(*corner_pair, [5, 0, 0], [5, 0, 0])

        with pytest.raises(TransactionError, match="already connected"):
            model.apply_plan(outcome.plan, 'A', 'B')
        assert model.get('B').connectors[0].connected_to is None
        assert model.get('A').connectors[1].connected_to == ('D', 0)
