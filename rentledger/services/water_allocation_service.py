"""Consumption-based share of a building's water bills.

Each property's consumption over a period is read off its cumulative water
meter: the index at the period start is subtracted from the index at the period
end. The property's dynamic percentage is its consumption over the building
total.

Degraded cases never raise:
- Negative delta (meter replaced or reset): counted as zero, warning
- Property with no reading: 0%, warning
- Zero building consumption: equal split across properties with readings, warning
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, NamedTuple

from rentledger.services.errors import PropertyNotInBuildingError, ValidationError
from rentledger.services.records import PropertyRef, WaterMeterReading

logger = logging.getLogger(__name__)

METERED_CONSUMPTION = "METERED_CONSUMPTION"
EQUAL_SPLIT_FALLBACK = "EQUAL_SPLIT_FALLBACK"

ZERO = Decimal(0)
HUNDRED = Decimal(100)


class PropertyConsumption(NamedTuple):
    """Metered consumption of one property over a period."""

    property_id: int
    consumption: Decimal
    start_reading: WaterMeterReading | None
    end_reading: WaterMeterReading | None

    @property
    def has_readings(self) -> bool:
        return self.end_reading is not None


class WaterAllocation(NamedTuple):
    """Water share of one property within its building."""

    property_id: int
    period_start: date
    period_end: date
    property_consumption: Decimal
    building_total_consumption: Decimal
    dynamic_percentage: Decimal
    calculation_method: str
    consumptions: dict[int, Decimal]
    warnings: list[str]


class WaterConsumptionAllocator:
    """Allocate building water costs from periodic meter readings."""

    def __init__(
        self,
        properties: Iterable[PropertyRef],
        readings: Iterable[WaterMeterReading],
    ):
        self.properties = list(properties)
        self._readings: dict[int, list[WaterMeterReading]] = {}
        for reading in readings:
            self._readings.setdefault(reading.property_id, []).append(reading)
        for property_readings in self._readings.values():
            property_readings.sort(key=lambda r: (r.reading_date, r.id))

    def readings_for(self, property_id: int) -> list[WaterMeterReading]:
        return list(self._readings.get(property_id, []))

    def consumption_for(
        self,
        property_id: int,
        period_start: date,
        period_end: date,
        warnings: list[str],
    ) -> PropertyConsumption:
        """Measure consumption between the readings bracketing the period.

        The start index is the latest reading at or before period_start; when the
        meter was first read inside the period, that first reading is used
        instead. The end index is the latest reading at or before period_end.
        Anomalies are appended to ``warnings``.
        """
        readings = self.readings_for(property_id)
        up_to_end = [r for r in readings if r.reading_date <= period_end]

        if not up_to_end:
            warnings.append(
                f"Property {property_id} has no water meter reading up to "
                f"{period_end.isoformat()}; water share set to 0%"
            )
            return PropertyConsumption(property_id, ZERO, None, None)

        end_reading = up_to_end[-1]
        before_start = [r for r in up_to_end if r.reading_date <= period_start]
        if before_start:
            start_reading = before_start[-1]
        else:
            start_reading = up_to_end[0]
            warnings.append(
                f"Property {property_id} has no water meter reading at or before "
                f"{period_start.isoformat()}; consumption measured from "
                f"{start_reading.reading_date.isoformat()}"
            )

        if start_reading is end_reading:
            warnings.append(
                f"Property {property_id} has a single water meter reading for the period; "
                f"consumption counted as 0"
            )
            return PropertyConsumption(property_id, ZERO, start_reading, end_reading)

        delta = end_reading.meter_reading - start_reading.meter_reading
        if delta < 0:
            warnings.append(
                f"Water meter of property {property_id} went backwards "
                f"({start_reading.meter_reading} on {start_reading.reading_date.isoformat()} -> "
                f"{end_reading.meter_reading} on {end_reading.reading_date.isoformat()}); "
                f"probable meter change, consumption counted as 0"
            )
            delta = ZERO

        return PropertyConsumption(property_id, delta, start_reading, end_reading)

    def allocate(
        self,
        building_id: int,
        property_id: int,
        period_start: date,
        period_end: date,
    ) -> WaterAllocation:
        """Compute the water share of a property over a period.

        Args:
            building_id: Building whose properties share the water bills
            property_id: Property to compute the share for
            period_start: First day of the period
            period_end: Last day of the period

        Returns:
            WaterAllocation with consumption figures, percentage and method

        Raises:
            PropertyNotInBuildingError: If property_id is not in building_id
            ValidationError: If the period is reversed
        """
        if period_end < period_start:
            raise ValidationError("Period end must not precede period start")

        members = [p.id for p in self.properties if p.building_id == building_id]
        if property_id not in members:
            raise PropertyNotInBuildingError(property_id, building_id)

        warnings: list[str] = []
        measured = {
            pid: self.consumption_for(pid, period_start, period_end, warnings) for pid in members
        }
        consumptions = {pid: m.consumption for pid, m in measured.items()}
        total = sum(consumptions.values(), ZERO)
        target = measured[property_id]

        if total > 0:
            method = METERED_CONSUMPTION
            percentage = target.consumption / total * HUNDRED
        else:
            method = EQUAL_SPLIT_FALLBACK
            with_readings = [pid for pid, m in measured.items() if m.has_readings]
            if target.has_readings:
                percentage = HUNDRED / len(with_readings)
            else:
                percentage = ZERO
            warnings.append(
                f"Total metered water consumption of building {building_id} is 0 for "
                f"{period_start.isoformat()}..{period_end.isoformat()}; water split equally "
                f"across {len(with_readings)} properties with readings"
            )

        for message in warnings:
            logger.warning(message)
        logger.debug(
            "Water allocation building=%s property=%s consumption=%s total=%s pct=%s method=%s",
            building_id,
            property_id,
            target.consumption,
            total,
            percentage,
            method,
        )

        return WaterAllocation(
            property_id=property_id,
            period_start=period_start,
            period_end=period_end,
            property_consumption=target.consumption,
            building_total_consumption=total,
            dynamic_percentage=percentage,
            calculation_method=method,
            consumptions=consumptions,
            warnings=warnings,
        )


__all__ = [
    "EQUAL_SPLIT_FALLBACK",
    "METERED_CONSUMPTION",
    "PropertyConsumption",
    "WaterAllocation",
    "WaterConsumptionAllocator",
]
