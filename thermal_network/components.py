"""
Data model for the thermal network: reservoirs, conduits, panels and the
ambient conditions supplied to each tick.

Network layout:
  [Node] --Connection(flow_rate)--> [Node]
     ^
  [SolarPanel] (optional, one per node)
"""

from dataclasses import dataclass, field
import math

import numpy as np

from .fluid import Fluid


# ============================================================================
# NODE
# ============================================================================

@dataclass(eq=False)
class Node:
    """
    Lumped fluid reservoir.

    Capacity is only respected by the transfer logic; assigning to
    fluid.volume directly is not clamped. Position is used by renderers only.
    """
    fluid: Fluid
    capacity: float = 0.0
    insulation: float = 0.0           # 0 = no insulation, 1 = perfect
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))

    @property
    def free_space(self) -> float:
        return self.capacity - self.fluid.volume

    def __eq__(self, other):
        if not isinstance(other, Node):
            return NotImplemented
        return (self.fluid == other.fluid
                and self.capacity == other.capacity
                and self.insulation == other.insulation
                and np.array_equal(self.position, other.position))


# ============================================================================
# CONNECTION
# ============================================================================

@dataclass
class Connection:
    """Directed conduit from one node index to another."""
    input: int
    output: int
    flow_rate: float = 0.0            # volume per unit time

    @property
    def is_self_loop(self) -> bool:
        return self.input == self.output


# ============================================================================
# SOLAR PANEL
# ============================================================================

@dataclass
class SolarPanel:
    """
    Collector attached to a single node. Absorbed energy goes straight into
    the node's fluid; there is no separate collector thermal mass.
    """
    area: float = 1.0                 # m²
    efficiency: float = 0.75          # fraction of incident energy absorbed


# ============================================================================
# ENVIRONMENT
# ============================================================================

@dataclass(frozen=True)
class Environment:
    """
    Ambient and solar conditions for one tick. Owned by the caller and
    passed explicitly to Simulation.tick.
    """
    sun_angle: float = math.pi / 2    # rad above the horizon (pi/2 = overhead)
    sun_irradiance: float = 1000.0    # W/m²
    cloud_cover: float = 0.0          # 0 = clear, 1 = overcast
    ambient_temp: float = 20.0        # °C

    @property
    def effective_irradiance(self) -> float:
        """
        Irradiance reaching a horizontal panel. A sun below the horizon
        contributes nothing rather than a negative amount.
        """
        elevation = max(math.sin(self.sun_angle), 0.0)
        return self.sun_irradiance * elevation * (1.0 - self.cloud_cover)
