"""Unit tests for the annual charge settlement."""

from datetime import date
from decimal import Decimal

import pytest

from rentledger.services.charge_share_service import ChargeShareRegistry
from rentledger.services.errors import InvalidAmountError, PropertyNotInBuildingError
from rentledger.services.money import Money
from rentledger.services.records import (
    DocumentCategory,
    FinancialDocument,
    PropertyChargeShare,
    WaterMeterReading,
)
from rentledger.services.settlement_service import (
    FIXED_PERCENTAGE,
    ChargeSettlementEngine,
    one_year_before,
)
from rentledger.services.water_allocation_service import (
    METERED_CONSUMPTION,
    WaterConsumptionAllocator,
)

REFERENCE = date(2024, 12, 31)


@pytest.fixture
def documents():
    return [
        FinancialDocument.create(1, 1, "ELECTRICITY", date(2024, 3, 31), "200.00", "Electricity Q1"),
        FinancialDocument.create(2, 1, "ELECTRICITY", date(2024, 9, 30), "300.00", "Electricity Q3"),
        FinancialDocument.create(3, 1, "WATER", date(2024, 12, 15), "200.00", "Water 2024"),
        FinancialDocument.create(
            4, 1, "REPAIR_WORK", date(2024, 5, 2), "999.00", "Roof", included_in_charges=False
        ),
        FinancialDocument.create(5, 1, "CLEANING", date(2023, 11, 30), "80.00", "Cleaning 2023"),
        FinancialDocument.create(6, 2, "ELECTRICITY", date(2024, 6, 30), "700.00", "Other building"),
    ]


@pytest.fixture
def readings():
    return [
        WaterMeterReading.create(1, 1, date(2023, 12, 31), "100"),
        WaterMeterReading.create(2, 1, date(2024, 12, 31), "130"),
        WaterMeterReading.create(3, 2, date(2023, 12, 31), "500"),
        WaterMeterReading.create(4, 2, date(2024, 12, 31), "570"),
    ]


def make_engine(properties, documents, readings, shares):
    registry = ChargeShareRegistry(properties, shares)
    allocator = WaterConsumptionAllocator(properties, readings)
    return ChargeSettlementEngine(properties, documents, registry, allocator)


@pytest.fixture
def balanced_shares():
    return [
        PropertyChargeShare.create(1, DocumentCategory.ELECTRICITY, 60),
        PropertyChargeShare.create(2, DocumentCategory.ELECTRICITY, 40),
    ]


class TestChargeSettlement:
    """Test settlement of actual charges against provisions."""

    def test_fixed_and_water_shares(self, building_properties, documents, readings, balanced_shares):
        """Test 60% of 500 electricity plus 30% of 200 water."""
        engine = make_engine(building_properties, documents, readings, balanced_shares)

        result = engine.settle(1, 1, REFERENCE, "400.00")

        by_category = {c.category: c for c in result.categories}
        assert list(by_category) == [DocumentCategory.ELECTRICITY, DocumentCategory.WATER]

        electricity = by_category[DocumentCategory.ELECTRICITY]
        assert electricity.total_amount == Money.of("500")
        assert electricity.property_share == Money.of("300")
        assert electricity.calculation_method == FIXED_PERCENTAGE
        assert [d.id for d in electricity.documents] == [1, 2]

        water = by_category[DocumentCategory.WATER]
        assert water.property_share == Money.of("60")
        assert water.calculation_method == METERED_CONSUMPTION
        assert water.water.property_consumption == Decimal(30)

        assert result.total_charges_actual == Money.of("360")
        assert result.total_charges_provisional == Money.of("400")
        assert result.balance == Money.of("40")
        assert result.new_monthly_charges == Money.of("30")
        assert result.warnings == []

    def test_other_property_gets_complement(self, building_properties, documents, readings, balanced_shares):
        engine = make_engine(building_properties, documents, readings, balanced_shares)

        first = engine.settle(1, 1, REFERENCE, "0")
        second = engine.settle(1, 2, REFERENCE, "0")

        assert second.total_charges_actual == Money.of("340")
        assert first.total_charges_actual + second.total_charges_actual == Money.of("700")
        assert second.balance == Money.of("-340")

    def test_unbalanced_shares_warn_and_apply_as_is(self, building_properties, documents, readings):
        """Test a 60/30 split charges 300 and 150 and reports the deviation."""
        shares = [
            PropertyChargeShare.create(1, DocumentCategory.ELECTRICITY, 60),
            PropertyChargeShare.create(2, DocumentCategory.ELECTRICITY, 30),
        ]
        engine = make_engine(building_properties, documents, readings, shares)

        first = engine.settle(1, 1, REFERENCE, "0")
        second = engine.settle(1, 2, REFERENCE, "0")

        assert first.categories[0].property_share == Money.of("300")
        assert second.categories[0].property_share == Money.of("150")
        assert any("ELECTRICITY" in w and "100%" in w for w in first.warnings)

    def test_missing_share_warns_and_charges_nothing(self, building_properties, documents, readings):
        engine = make_engine(building_properties, documents, readings, [])

        result = engine.settle(1, 1, REFERENCE, "0")

        electricity = result.categories[0]
        assert electricity.percentage == Decimal(0)
        assert electricity.property_share == Money.zero()
        assert any("No charge share configured" in w for w in result.warnings)

    def test_period_is_one_year_inclusive(self, building_properties, documents, readings, balanced_shares):
        """Test a bill dated exactly one year before the reference is included."""
        documents.append(
            FinancialDocument.create(7, 1, "ELECTRICITY", date(2023, 12, 31), "100.00", "Electricity Q4")
        )
        engine = make_engine(building_properties, documents, readings, balanced_shares)

        result = engine.settle(1, 1, REFERENCE, "0")

        assert result.period_start == date(2023, 12, 31)
        assert result.categories[0].total_amount == Money.of("600")

    def test_water_bill_consumption_mismatch_warns(self, building_properties, readings, balanced_shares):
        documents = [
            FinancialDocument.create(
                1, 1, "WATER", date(2024, 12, 15), "200.00", "Water 2024", water_consumption="120"
            )
        ]
        engine = make_engine(building_properties, documents, readings, balanced_shares)

        result = engine.settle(1, 1, REFERENCE, "0")

        assert any("report 120 m3" in w for w in result.warnings)

    def test_empty_period_warns(self, building_properties, readings, balanced_shares):
        engine = make_engine(building_properties, [], readings, balanced_shares)

        result = engine.settle(1, 1, REFERENCE, "120")

        assert result.categories == []
        assert result.total_charges_actual == Money.zero()
        assert result.balance == Money.of("120")
        assert len(result.warnings) == 1

    def test_property_outside_building_raises(self, building_properties, documents, readings, balanced_shares):
        engine = make_engine(building_properties, documents, readings, balanced_shares)

        with pytest.raises(PropertyNotInBuildingError):
            engine.settle(1, 3, REFERENCE, "0")

    def test_negative_provisions_raise(self, building_properties, documents, readings, balanced_shares):
        engine = make_engine(building_properties, documents, readings, balanced_shares)

        with pytest.raises(InvalidAmountError):
            engine.settle(1, 1, REFERENCE, "-1")

    def test_new_monthly_charges_rounded_to_cents(self, building_properties, readings):
        documents = [FinancialDocument.create(1, 1, "CLEANING", date(2024, 6, 1), "100.00", "Cleaning")]
        shares = [
            PropertyChargeShare.create(1, DocumentCategory.CLEANING, 50),
            PropertyChargeShare.create(2, DocumentCategory.CLEANING, 50),
        ]
        engine = make_engine(building_properties, documents, readings, shares)

        result = engine.settle(1, 1, REFERENCE, "0")

        assert result.new_monthly_charges == Money.of("4.17")


class TestOneYearBefore:
    def test_plain_date(self):
        assert one_year_before(date(2024, 6, 30)) == date(2023, 6, 30)

    def test_leap_day_maps_to_february_28(self):
        assert one_year_before(date(2024, 2, 29)) == date(2023, 2, 28)
