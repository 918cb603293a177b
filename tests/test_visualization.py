"""
Unit tests for draw-instance generation.
Validates node placement and connector geometry for renderers.
"""

import numpy as np
import pytest

from thermal_network import Connection, Simulation
from thermal_network.visualization import (
    build_connection_instances,
    build_node_instances,
    connection_instance,
    node_instance,
    rotation_between,
    temperature_color,
)


def _apply(matrix, point):
    """Transform a 3D point by a 4x4 model matrix."""
    return (matrix @ np.append(np.asarray(point, dtype=float), 1.0))[:3]


class TestNodeInstances:

    def test_node_placed_and_scaled(self):
        instance = node_instance(np.array([1.0, -2.0, 0.5]))

        np.testing.assert_allclose(instance.translation, [1.0, -2.0, 0.5])
        np.testing.assert_allclose(np.diag(instance.model_matrix)[:3], [0.1, 0.1, 0.1])
        np.testing.assert_allclose(instance.color, [1.0, 0.0, 0.0, 1.0])

    def test_one_instance_per_node(self):
        sim = Simulation()
        for x in (-1.0, 0.0, 1.0):
            sim.add_node(1.0, 20.0, 0.5, 10.0, (x, 0.0, 0.0))

        instances = build_node_instances(sim)

        assert len(instances) == 3
        np.testing.assert_allclose([i.translation[0] for i in instances], [-1.0, 0.0, 1.0])


class TestConnectionInstances:

    def test_spans_between_endpoints(self):
        """Unit mesh top (0, 1, 0) lands on a, bottom (0, -1, 0) on b"""
        a = np.array([-0.5, 0.0, 0.0])
        b = np.array([0.5, 0.0, 0.0])

        instance = connection_instance(a, b, radial_scale=0.02)

        np.testing.assert_allclose(instance.translation, [0.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(_apply(instance.model_matrix, [0, 1, 0]), a, atol=1e-12)
        np.testing.assert_allclose(_apply(instance.model_matrix, [0, -1, 0]), b, atol=1e-12)

    def test_radial_scale(self):
        instance = connection_instance([0, 0, 0], [3, 4, 0], radial_scale=0.05)
        columns = np.linalg.norm(instance.model_matrix[:3, :3], axis=0)

        np.testing.assert_allclose(columns, [0.05, 2.5, 0.05])

    def test_coincident_endpoints(self):
        """Zero-length connector keeps the default orientation"""
        instance = connection_instance([1, 1, 1], [1, 1, 1], radial_scale=0.02)

        np.testing.assert_allclose(instance.translation, [1, 1, 1])
        np.testing.assert_allclose(instance.model_matrix[:3, :3], np.diag([0.02, 0.0, 0.02]))

    def test_antiparallel_direction(self):
        """Direction straight down still maps the mesh onto the segment"""
        a = np.array([0.0, 0.0, 0.0])
        b = np.array([0.0, 1.0, 0.0])

        instance = connection_instance(a, b, radial_scale=0.02)

        np.testing.assert_allclose(_apply(instance.model_matrix, [0, 1, 0]), a, atol=1e-12)
        np.testing.assert_allclose(_apply(instance.model_matrix, [0, -1, 0]), b, atol=1e-12)

    def test_thickness_follows_flow_rate(self):
        sim = Simulation()
        a = sim.add_node(1.0, 20.0, 0.5, 10.0, (0.0, 0.0, 0.0))
        b = sim.add_node(1.0, 20.0, 0.5, 10.0, (0.0, 0.0, 2.0))
        sim.connect_node(a, b, 1.0)
        sim.connect_node(b, a, 3.0)

        instances = build_connection_instances(sim)
        radii = [np.linalg.norm(i.model_matrix[:3, 0]) for i in instances]

        assert radii == pytest.approx([0.02, 0.06])

    def test_stale_connections_not_drawn(self):
        sim = Simulation()
        a = sim.add_node(1.0, 20.0, 0.5, 10.0, (0.0, 0.0, 0.0))
        b = sim.add_node(1.0, 20.0, 0.5, 10.0, (1.0, 0.0, 0.0))
        sim.connect_node(a, b, 1.0)
        sim.connections().append(Connection(input=a, output=9, flow_rate=1.0))

        assert len(build_connection_instances(sim)) == 1


class TestHelpers:

    def test_rotation_is_orthonormal(self):
        direction = np.array([1.0, 2.0, -2.0]) / 3.0
        r = rotation_between(np.array([0.0, 1.0, 0.0]), direction)

        np.testing.assert_allclose(r @ r.T, np.eye(3), atol=1e-12)
        np.testing.assert_allclose(r @ [0.0, 1.0, 0.0], direction, atol=1e-12)
        assert np.linalg.det(r) == pytest.approx(1.0)

    def test_temperature_color_range(self):
        assert temperature_color(-10.0, 0.0, 100.0) == (0.0, 0.0, 1.0)
        assert temperature_color(150.0, 0.0, 100.0) == (1.0, 0.0, 0.0)
        assert temperature_color(50.0, 0.0, 100.0) == pytest.approx((0.5, 0.0, 0.5))


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
