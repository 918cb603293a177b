"""
Discrete-time simulation of a thermal fluid network.

The Simulation owns an append-only list of nodes, an append-only list of
connections and an index-keyed mapping of solar panels. Each call to tick()
advances the whole network by one caller-supplied time step in three
sequential passes:

  1. heat loss to ambient   (every node)
  2. solar heating          (every node with a panel)
  3. fluid transfer         (every connection, in insertion order)

Each pass sees the mutations made by the previous one.
"""

import copy
import logging
from typing import Dict, Any, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from .components import Connection, Environment, Node, SolarPanel
from .fluid import Fluid, FluidProperties, WATER

logger = logging.getLogger(__name__)


class Simulation:
    """
    Thermal fluid network advanced one step per tick().

    Node indices returned by add_node() are stable for the lifetime of the
    simulation since nodes are never removed. Out-of-range ids passed to the
    graph-building methods are ignored rather than raising.
    """

    def __init__(self, fluid_properties: FluidProperties = WATER):
        self.fluid_properties = fluid_properties
        self._nodes: List[Node] = []
        self._connections: List[Connection] = []
        self._solar_panels: Dict[int, SolarPanel] = {}

    # ------------------------------------------------------------------
    # Graph building
    # ------------------------------------------------------------------

    def add_node(
        self,
        volume: float,
        temp: float,
        insulation: float,
        capacity: float,
        position: Sequence[float] = (0.0, 0.0, 0.0),
    ) -> int:
        """Append a node and return its index. Values are not range checked."""
        node_id = len(self._nodes)
        self._nodes.append(Node(
            fluid=Fluid(volume=volume, temp=temp),
            capacity=capacity,
            insulation=insulation,
            position=np.asarray(position, dtype=float),
        ))
        return node_id

    def connect_node(self, input_id: int, output_id: int, flow_rate: float):
        """Connect two existing nodes. Does nothing if either id is invalid."""
        if not (self._is_valid(input_id) and self._is_valid(output_id)):
            logger.debug("Ignoring connection %s -> %s: unknown node", input_id, output_id)
            return

        self._connections.append(Connection(
            input=input_id,
            output=output_id,
            flow_rate=flow_rate,
        ))

    def attach_solar_panel(self, node_id: int, panel: SolarPanel):
        """Attach (or replace) the panel heating a node. Ignores unknown ids."""
        if not self._is_valid(node_id):
            logger.debug("Ignoring solar panel for unknown node %s", node_id)
            return

        self._solar_panels[node_id] = panel

    def _is_valid(self, node_id: int) -> bool:
        return 0 <= node_id < len(self._nodes)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_node(self, node_id: int) -> Optional[Node]:
        if not self._is_valid(node_id):
            return None
        return self._nodes[node_id]

    def nodes(self) -> List[Node]:
        return self._nodes

    def connections(self) -> List[Connection]:
        return self._connections

    def solar_panels(self) -> Dict[int, SolarPanel]:
        return self._solar_panels

    def connected_nodes(self) -> "ConnectedNodes":
        """Lazy (flow_rate, input_node, output_node) view over connections."""
        return ConnectedNodes(self)

    def copy(self) -> "Simulation":
        """Independent snapshot of the whole network."""
        return copy.deepcopy(self)

    def get_state(self) -> Dict[str, Any]:
        """Return current network state for monitoring/logging"""
        volumes = np.array([node.fluid.volume for node in self._nodes], dtype=float)
        temps = np.array([node.fluid.temp for node in self._nodes], dtype=float)
        return {
            'num_nodes': len(self._nodes),
            'num_connections': len(self._connections),
            'volumes': volumes,
            'temps': temps,
            'total_volume': float(np.sum(volumes)),
            'total_heat_content': float(np.sum(volumes * temps)),
        }

    # ------------------------------------------------------------------
    # Time stepping
    # ------------------------------------------------------------------

    def tick(self, environment: Environment, dt: float):
        """
        Advance the network by dt.

        dt is not validated. A negative dt runs every pass backwards
        (nodes move away from ambient, fluid flows against its connection).
        """
        self.handle_heat_losses(environment, dt)
        self.handle_solar_panels(environment, dt)
        self.handle_fluid_transfer(dt)

    def run(self, environment: Environment, dt: float, num_ticks: int) -> Dict[str, np.ndarray]:
        """
        Tick num_ticks times under a fixed environment and return the
        per-tick history: 'temps' and 'volumes' arrays of shape
        (num_ticks, num_nodes).
        """
        temps = np.empty((num_ticks, len(self._nodes)))
        volumes = np.empty((num_ticks, len(self._nodes)))
        for step in range(num_ticks):
            self.tick(environment, dt)
            state = self.get_state()
            temps[step] = state['temps']
            volumes[step] = state['volumes']
        return {'temps': temps, 'volumes': volumes}

    def handle_heat_losses(self, environment: Environment, dt: float):
        """
        Relax every node toward ambient temperature.

        Single explicit Euler step: when dt * (1 - insulation) > 1 the
        temperature overshoots past ambient. That limitation is kept as is.
        """
        for node in self._nodes:
            temp_diff = node.fluid.temp - environment.ambient_temp
            node.fluid.temp -= temp_diff * (1.0 - node.insulation) * dt

    def handle_solar_panels(self, environment: Environment, dt: float):
        """Heat every node carrying a panel by the energy absorbed over dt."""
        irradiance = environment.effective_irradiance

        for node_id, panel in self._solar_panels.items():
            node = self._nodes[node_id]
            # empty node has no thermal mass to heat
            if node.fluid.volume == 0.0:
                continue

            q = irradiance * panel.area * panel.efficiency * dt  # J
            node.fluid.temp += q / self.fluid_properties.thermal_mass(node.fluid.volume)

    def handle_fluid_transfer(self, dt: float):
        """
        Move fluid along every connection, in insertion order.

        Connections are processed one at a time against the live node state,
        so two connections sharing a node see each other's effect within the
        same tick and the result depends on insertion order.
        """
        for connection in self._connections:
            if connection.is_self_loop:
                continue
            if not (self._is_valid(connection.input) and self._is_valid(connection.output)):
                continue

            source = self._nodes[connection.input]
            target = self._nodes[connection.output]

            amount_available = min(connection.flow_rate, source.fluid.volume)
            amount_transferred = min(amount_available * dt, target.free_space)

            source.fluid.volume -= amount_transferred
            target.fluid = target.fluid + Fluid(
                volume=amount_transferred,
                temp=source.fluid.temp,
            )


class ConnectedNodes:
    """
    Restartable, read-only view of the connections as
    (flow_rate, input_node, output_node) triples.

    Nothing is materialised: every iteration re-checks each connection
    against the current node count and skips any that point out of range.
    """

    def __init__(self, simulation: Simulation):
        self._simulation = simulation

    def __iter__(self) -> Iterator[Tuple[float, Node, Node]]:
        nodes = self._simulation.nodes()
        for connection in self._simulation.connections():
            num_nodes = len(nodes)
            if 0 <= connection.input < num_nodes and 0 <= connection.output < num_nodes:
                yield connection.flow_rate, nodes[connection.input], nodes[connection.output]
