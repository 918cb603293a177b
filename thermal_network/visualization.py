"""
Renderer-neutral draw instances for a Simulation.

Nodes are drawn as a unit mesh scaled down and placed at the node position.
Connections are drawn as a unit Y-aligned mesh (spanning y in [-1, 1])
stretched between the two node positions, with a thickness proportional to
the connection's flow rate. Each instance carries an RGBA colour and a 4x4
model matrix (translation * rotation * scale), so any front end can consume
them without calling back into the simulation.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

from .simulation import Simulation

NODE_SCALE = 0.1
CONNECTION_RADIUS_PER_FLOW = 0.02
DEFAULT_COLOR = (1.0, 0.0, 0.0)

_UP = np.array([0.0, 1.0, 0.0])


@dataclass
class ColoredInstance:
    color: np.ndarray          # RGBA
    model_matrix: np.ndarray   # 4x4

    @property
    def translation(self) -> np.ndarray:
        return self.model_matrix[:3, 3]


def _rgba(color: Sequence[float]) -> np.ndarray:
    r, g, b = color
    return np.array([r, g, b, 1.0])


def rotation_between(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Rotation matrix taking unit vector a onto unit vector b along the
    shortest arc.
    """
    v = np.cross(a, b)
    c = float(np.dot(a, b))

    if c < -1.0 + 1e-9:
        # Antiparallel: half turn about any axis orthogonal to a
        axis = np.cross(a, [1.0, 0.0, 0.0])
        if np.linalg.norm(axis) < 1e-9:
            axis = np.cross(a, [0.0, 0.0, 1.0])
        axis /= np.linalg.norm(axis)
        return 2.0 * np.outer(axis, axis) - np.eye(3)

    vx = np.array([
        [0.0, -v[2], v[1]],
        [v[2], 0.0, -v[0]],
        [-v[1], v[0], 0.0],
    ])
    return np.eye(3) + vx + vx @ vx / (1.0 + c)


def compose(scale: np.ndarray, rotation: np.ndarray, translation: np.ndarray) -> np.ndarray:
    """Model matrix applying scale, then rotation, then translation."""
    m = np.eye(4)
    m[:3, :3] = rotation @ np.diag(scale)
    m[:3, 3] = translation
    return m


def node_instance(position: np.ndarray, color=DEFAULT_COLOR, scale: float = NODE_SCALE) -> ColoredInstance:
    return ColoredInstance(
        color=_rgba(color),
        model_matrix=compose(np.full(3, scale), np.eye(3), np.asarray(position, dtype=float)),
    )


def connection_instance(a: np.ndarray, b: np.ndarray, radial_scale: float,
                        color=DEFAULT_COLOR) -> ColoredInstance:
    """Stretch the unit connector mesh so it spans from a to b."""
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)

    ab = a - b
    dist = float(np.linalg.norm(ab))
    direction = _UP if dist == 0.0 else ab / dist

    scale = np.array([radial_scale, dist * 0.5, radial_scale])
    return ColoredInstance(
        color=_rgba(color),
        model_matrix=compose(scale, rotation_between(_UP, direction), (a + b) * 0.5),
    )


def temperature_color(temp: float, cold: float = 0.0, hot: float = 100.0) -> Tuple[float, float, float]:
    """Blue at or below `cold`, red at or above `hot`, linear in between."""
    if hot <= cold:
        return DEFAULT_COLOR
    t = float(np.clip((temp - cold) / (hot - cold), 0.0, 1.0))
    return (t, 0.0, 1.0 - t)


def build_node_instances(simulation: Simulation, color=DEFAULT_COLOR) -> List[ColoredInstance]:
    return [node_instance(node.position, color) for node in simulation.nodes()]


def build_connection_instances(simulation: Simulation, color=DEFAULT_COLOR) -> List[ColoredInstance]:
    return [
        connection_instance(
            source.position, target.position,
            CONNECTION_RADIUS_PER_FLOW * flow_rate,
            color,
        )
        for flow_rate, source, target in simulation.connected_nodes()
    ]
