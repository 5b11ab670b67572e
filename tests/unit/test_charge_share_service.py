"""Unit tests for the fixed charge share registry."""

from decimal import Decimal

import pytest

from rentledger.services.charge_share_service import ChargeShareRegistry
from rentledger.services.errors import InvalidChargeShareError, PropertyNotFoundError
from rentledger.services.records import DocumentCategory, PropertyChargeShare

ELECTRICITY = DocumentCategory.ELECTRICITY


@pytest.fixture
def registry(building_properties):
    return ChargeShareRegistry(
        building_properties,
        [
            PropertyChargeShare.create(1, ELECTRICITY, 60),
            PropertyChargeShare.create(2, ELECTRICITY, 40),
            PropertyChargeShare.create(3, ELECTRICITY, 100),
        ],
    )


class TestChargeShareRegistry:
    """Test share lookups, upserts and the 100% check."""

    def test_share_lookup(self, registry):
        assert registry.share_for(1, ELECTRICITY) == Decimal(60)
        assert registry.share_for(1, DocumentCategory.HEATING) is None

    def test_totals_are_per_building(self, registry):
        assert registry.total_for(1, ELECTRICITY) == Decimal(100)
        assert registry.total_for(2, ELECTRICITY) == Decimal(100)
        assert registry.is_balanced(1, ELECTRICITY)

    def test_balanced_building_has_no_warning(self, registry):
        assert registry.check_building(1) == []

    def test_unbalanced_building_warns(self, registry, caplog):
        """Test a 60/30 split is reported but left as is."""
        registry.set_share(2, ELECTRICITY, 30)

        warnings = registry.check_building(1)

        assert len(warnings) == 1
        assert "ELECTRICITY" in warnings[0]
        assert "90" in warnings[0]
        assert registry.share_for(1, ELECTRICITY) == Decimal(60)
        assert "ELECTRICITY" in caplog.text

    def test_deviation_within_tolerance_is_accepted(self, building_properties):
        registry = ChargeShareRegistry(
            building_properties,
            [
                PropertyChargeShare.create(1, ELECTRICITY, "33.33"),
                PropertyChargeShare.create(2, ELECTRICITY, "66.66"),
            ],
        )
        assert registry.check_building(1) == []

    def test_set_share_is_idempotent(self, registry):
        registry.set_share(1, ELECTRICITY, 60)
        registry.set_share(1, ELECTRICITY, 60)

        assert registry.shares_for(1) == {ELECTRICITY: Decimal(60)}

    def test_set_share_replaces_previous_value(self, registry):
        share = registry.set_share(1, ELECTRICITY, "55.5")

        assert share.percentage == Decimal("55.5")
        assert registry.share_for(1, ELECTRICITY) == Decimal("55.5")

    def test_set_share_rejects_water(self, registry):
        with pytest.raises(InvalidChargeShareError):
            registry.set_share(1, DocumentCategory.WATER, 50)

    def test_set_share_rejects_unknown_property(self, registry):
        with pytest.raises(PropertyNotFoundError):
            registry.set_share(42, ELECTRICITY, 50)

    def test_categories_in_declaration_order(self, registry):
        registry.set_share(1, DocumentCategory.INSURANCE, 50)
        registry.set_share(2, DocumentCategory.CLEANING, 50)

        assert registry.categories_of(1) == [
            ELECTRICITY,
            DocumentCategory.CLEANING,
            DocumentCategory.INSURANCE,
        ]

    def test_check_skips_metered_category(self, registry):
        assert registry.check_building(1, [DocumentCategory.WATER]) == []
