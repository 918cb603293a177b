"""
Fluid value type and the conservation-respecting mixing rule.

A Fluid is a lumped quantity of liquid: a volume at a single temperature.
Mixing two fluids sums the volumes and takes the volume-weighted average
temperature, so total volume * temperature is preserved up to rounding.
"""

from dataclasses import dataclass


# ============================================================================
# FLUID PROPERTIES
# ============================================================================

@dataclass(frozen=True)
class FluidProperties:
    """
    Thermophysical properties used to turn absorbed energy into a
    temperature change. Units follow the node volumes (mL / g).
    """
    density: float = 1.0              # g/mL
    specific_heat: float = 4.186      # J/(g·K)

    def thermal_mass(self, volume: float) -> float:
        """Heat capacity of a volume of this fluid in J/K."""
        return volume * self.density * self.specific_heat


WATER = FluidProperties()


# ============================================================================
# FLUID
# ============================================================================

@dataclass
class Fluid:
    """A quantity of liquid with volume and temperature."""
    volume: float = 0.0
    temp: float = 0.0

    def __add__(self, other: "Fluid") -> "Fluid":
        return combine(self, other)

    @property
    def heat_content(self) -> float:
        """volume * temp, the quantity conserved by mixing."""
        return self.volume * self.temp


def combine(a: Fluid, b: Fluid) -> Fluid:
    """
    Mix two fluids.

    Volume is the sum of both volumes. Temperature is the volume-weighted
    average, defined as 0 when the combined volume is exactly 0.
    """
    volume = a.volume + b.volume
    if volume == 0.0:
        return Fluid(volume=volume, temp=0.0)

    temp = a.temp * a.volume / volume + b.temp * b.volume / volume
    return Fluid(volume=volume, temp=temp)
