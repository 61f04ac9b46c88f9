"""
Data model for batmon.

Value records (Measurement and everything derived from it) are frozen
dataclasses: the analysis engine never mutates its input and every derived
record exists only as a function return value.

MeasurementRecord is the SQLAlchemy row backing the measurements table.
"""

from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import Column, Integer, String, Text, create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

Base = declarative_base()


@dataclass(frozen=True)
class Measurement:
    """
    One sampled observation of battery state.

    Capacities, temperature, voltage, amperage and power use 0 for
    "not sampled this round": expensive metrics are fetched less often
    than percentage and state.
    """

    timestamp: str  # RFC 3339 UTC
    percentage: int = 0
    state: str = ""
    cycle_count: int = 0
    full_charge_capacity: int = 0  # mAh
    design_capacity: int = 0  # mAh
    current_capacity: int = 0  # mAh
    temperature: int = 0  # °C, 0 = unknown
    voltage: int = 0  # mV
    amperage: int = 0  # mA, positive = charging
    power: int = 0  # mW
    apple_condition_label: str = ""

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "Measurement":
        """Build a Measurement from a dict, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known and v is not None})


@dataclass(frozen=True)
class DetailedReading:
    """Expensive battery metrics read from the hardware on a slower cadence."""

    cycle_count: int = 0
    full_charge_capacity: int = 0
    design_capacity: int = 0
    current_capacity: int = 0
    temperature: int = 0
    voltage: int = 0
    amperage: int = 0
    apple_condition_label: str = ""


@dataclass(frozen=True)
class ChargeCycle:
    """A charge or discharge segment between two state transitions."""

    start_time: datetime
    end_time: datetime
    start_percent: int
    end_percent: int
    cycle_type: str
    capacity_loss: int = 0

    def to_dict(self):
        return {
            'start_time': self.start_time.isoformat(),
            'end_time': self.end_time.isoformat(),
            'start_percent': self.start_percent,
            'end_percent': self.end_percent,
            'cycle_type': self.cycle_type,
            'capacity_loss': self.capacity_loss,
        }


@dataclass(frozen=True)
class TrendAnalysis:
    """Long-horizon capacity degradation estimate."""

    degradation_rate: float = 0.0  # % of design capacity per month, negative = degrading
    projected_days: int = 0  # days until 80% of design capacity, 0 = not computable
    is_healthy: bool = True

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class AdvancedMetrics:
    """Voltage, power and charging derived metrics."""

    power_efficiency: float = 0.0
    voltage_stability: float = 0.0
    charging_efficiency: float = 0.0
    power_trend: str = ""
    health_rating: int = 0
    apple_status: str = ""

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class HealthAnalysis:
    """Composite health assessment of a measurement history."""

    wear_percent: float
    cycle_count: int
    health_status: str
    health_score: int
    discharge_rate: float
    valid_intervals: int
    trend: TrendAnalysis
    anomalies: List[str] = field(default_factory=list)
    charge_cycles: List[ChargeCycle] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    @property
    def anomaly_count(self) -> int:
        return len(self.anomalies)

    def to_dict(self):
        return {
            'wear_percent': self.wear_percent,
            'cycle_count': self.cycle_count,
            'health_status': self.health_status,
            'health_score': self.health_score,
            'discharge_rate': self.discharge_rate,
            'valid_intervals': self.valid_intervals,
            'trend': self.trend.to_dict(),
            'anomalies': list(self.anomalies),
            'anomaly_count': self.anomaly_count,
            'charge_cycles': [c.to_dict() for c in self.charge_cycles],
            'recommendations': list(self.recommendations),
        }


@dataclass(frozen=True)
class ReportData:
    """Everything a presentation layer needs to render a battery report."""

    generated_at: datetime
    version: str
    latest: Measurement
    measurements: List[Measurement]
    health: Optional[HealthAnalysis]
    average_rate: float
    robust_rate: float
    valid_intervals: int
    remaining_time: timedelta
    trend: TrendAnalysis
    advanced_metrics: AdvancedMetrics

    def to_dict(self):
        return {
            'generated_at': self.generated_at.isoformat(),
            'version': self.version,
            'latest': self.latest.to_dict(),
            'measurement_count': len(self.measurements),
            'health': self.health.to_dict() if self.health else None,
            'average_rate': self.average_rate,
            'robust_rate': self.robust_rate,
            'valid_intervals': self.valid_intervals,
            'remaining_seconds': self.remaining_time.total_seconds(),
            'trend': self.trend.to_dict(),
            'advanced_metrics': self.advanced_metrics.to_dict(),
        }


class MeasurementRecord(Base):
    """Persisted battery measurement."""

    __tablename__ = 'measurements'

    id = Column(Integer, primary_key=True, autoincrement=True)
    timestamp = Column(String(40), nullable=False, index=True)
    percentage = Column(Integer)
    state = Column(String(32))
    cycle_count = Column(Integer)
    full_charge_capacity = Column(Integer)
    design_capacity = Column(Integer)
    current_capacity = Column(Integer)
    temperature = Column(Integer, default=0)
    voltage = Column(Integer, default=0)
    amperage = Column(Integer, default=0)
    power = Column(Integer, default=0)
    apple_condition = Column(Text, default='')

    @classmethod
    def from_measurement(cls, m: Measurement) -> "MeasurementRecord":
        return cls(
            timestamp=m.timestamp,
            percentage=m.percentage,
            state=m.state,
            cycle_count=m.cycle_count,
            full_charge_capacity=m.full_charge_capacity,
            design_capacity=m.design_capacity,
            current_capacity=m.current_capacity,
            temperature=m.temperature,
            voltage=m.voltage,
            amperage=m.amperage,
            power=m.power,
            apple_condition=m.apple_condition_label,
        )

    def to_measurement(self) -> Measurement:
        return Measurement(
            timestamp=self.timestamp,
            percentage=self.percentage or 0,
            state=self.state or '',
            cycle_count=self.cycle_count or 0,
            full_charge_capacity=self.full_charge_capacity or 0,
            design_capacity=self.design_capacity or 0,
            current_capacity=self.current_capacity or 0,
            temperature=self.temperature or 0,
            voltage=self.voltage or 0,
            amperage=self.amperage or 0,
            power=self.power or 0,
            apple_condition_label=self.apple_condition or '',
        )

    def to_dict(self):
        return {'id': self.id, **self.to_measurement().to_dict()}


def get_engine(database_url):
    """Create database engine.

    In-memory SQLite gets a single shared connection so every session sees
    the same database.
    """
    if database_url == "sqlite://" or (database_url.startswith("sqlite") and ":memory:" in database_url):
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(database_url, pool_pre_ping=True)
