"""
Battery sample sources.

The collector only needs two reads from the platform: a cheap one
(percentage and charging state) taken every cycle and an expensive one
(capacities, cycle count, temperature, electrical readings) taken on a
slower cadence. Platform-specific implementations live outside batmon;
SimulatedBatterySource drives demos and tests.
"""

from abc import ABC, abstractmethod
from typing import Tuple

from batmon.models import DetailedReading


class SampleSource(ABC):
    """Something that can read the current battery state on demand."""

    name = "source"

    @abstractmethod
    def read_basic(self) -> Tuple[int, str]:
        """Return (percentage, state)."""

    @abstractmethod
    def read_detailed(self) -> DetailedReading:
        """Return the expensive metrics."""


class SimulatedBatterySource(SampleSource):
    """
    Deterministic laptop battery that discharges to a floor, charges back
    to full, and loses a little full-charge capacity every cycle.

    Each read_basic() call advances the simulation by one step.
    """

    name = "simulated"

    def __init__(
        self,
        design_capacity: int = 5200,
        full_charge_capacity: int = 5000,
        start_percent: int = 100,
        discharge_step: int = 1,
        charge_step: int = 2,
        floor_percent: int = 20,
        capacity_loss_per_cycle: int = 2,
        temperature: int = 31,
        cycle_count: int = 0,
    ):
        self.design_capacity = design_capacity
        self.full_charge_capacity = full_charge_capacity
        self.percentage = start_percent
        self.discharge_step = discharge_step
        self.charge_step = charge_step
        self.floor_percent = floor_percent
        self.capacity_loss_per_cycle = capacity_loss_per_cycle
        self.temperature = temperature
        self.cycle_count = cycle_count
        self.state = "discharging"

    def _step(self) -> None:
        if self.state == "discharging":
            self.percentage = max(self.percentage - self.discharge_step, 0)
            if self.percentage <= self.floor_percent:
                self.state = "charging"
        elif self.state == "charging":
            self.percentage = min(self.percentage + self.charge_step, 100)
            if self.percentage >= 100:
                self.state = "charged"
                self.cycle_count += 1
                self.full_charge_capacity -= self.capacity_loss_per_cycle
        else:
            self.state = "discharging"

    def read_basic(self) -> Tuple[int, str]:
        self._step()
        return self.percentage, self.state

    def read_detailed(self) -> DetailedReading:
        if self.state == "charging":
            amperage = 2000
        elif self.state == "discharging":
            amperage = -1200
        else:
            amperage = 0

        return DetailedReading(
            cycle_count=self.cycle_count,
            full_charge_capacity=self.full_charge_capacity,
            design_capacity=self.design_capacity,
            current_capacity=self.full_charge_capacity * self.percentage // 100,
            temperature=self.temperature,
            voltage=11100 + self.percentage * 15,
            amperage=amperage,
        )
