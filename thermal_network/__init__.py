"""
Lumped thermal fluid network simulator.

Nodes hold fluid, connections move it, solar panels heat it and the
environment cools it, one tick at a time.
"""

from .components import Connection, Environment, Node, SolarPanel
from .fluid import Fluid, FluidProperties, WATER, combine
from .simulation import ConnectedNodes, Simulation

__all__ = [
    "Connection",
    "ConnectedNodes",
    "Environment",
    "Fluid",
    "FluidProperties",
    "Node",
    "Simulation",
    "SolarPanel",
    "WATER",
    "combine",
]
