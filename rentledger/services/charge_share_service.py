"""Fixed percentage shares of building charges, per property and category.

Shares of one category across the properties of a building should total 100%.
The registry never normalizes them: a deviation is reported as a warning and
every property keeps paying its own configured percentage.
"""

import logging
from decimal import Decimal
from typing import Iterable

from rentledger.services.errors import PropertyNotFoundError
from rentledger.services.records import DocumentCategory, PropertyChargeShare, PropertyRef

logger = logging.getLogger(__name__)

FULL_SHARE = Decimal(100)
DEFAULT_TOLERANCE = Decimal("0.01")


class ChargeShareRegistry:
    """Percentage table keyed by (property, category), water excluded."""

    def __init__(
        self,
        properties: Iterable[PropertyRef],
        shares: Iterable[PropertyChargeShare] = (),
        tolerance: Decimal = DEFAULT_TOLERANCE,
    ):
        """Build the registry from a building snapshot.

        Args:
            properties: Properties the registry knows about (one or more buildings)
            shares: Stored share rows; a later row for the same key replaces an earlier one
            tolerance: Allowed deviation from 100% before a warning is raised
        """
        self.tolerance = Decimal(tolerance)
        self._building_of: dict[int, int | None] = {p.id: p.building_id for p in properties}
        self._shares: dict[tuple[int, DocumentCategory], Decimal] = {}
        for share in shares:
            self._shares[(share.property_id, share.category)] = share.percentage

    def set_share(self, property_id: int, category: DocumentCategory | str, percentage) -> PropertyChargeShare:
        """Insert or replace the share of a property for a category.

        Setting the same value twice leaves the registry unchanged.

        Raises:
            InvalidChargeShareError: For WATER or a percentage outside 0-100
            PropertyNotFoundError: If the property is unknown to the registry
        """
        share = PropertyChargeShare.create(property_id, category, percentage)
        if property_id not in self._building_of:
            raise PropertyNotFoundError(property_id)
        self._shares[(share.property_id, share.category)] = share.percentage
        return share

    def share_for(self, property_id: int, category: DocumentCategory) -> Decimal | None:
        return self._shares.get((property_id, DocumentCategory(category)))

    def shares_for(self, property_id: int) -> dict[DocumentCategory, Decimal]:
        return {
            category: percentage
            for (owner, category), percentage in self._shares.items()
            if owner == property_id
        }

    def properties_of(self, building_id: int) -> list[int]:
        return [pid for pid, bid in self._building_of.items() if bid == building_id]

    def total_for(self, building_id: int, category: DocumentCategory) -> Decimal:
        category = DocumentCategory(category)
        return sum(
            (self._shares.get((pid, category), Decimal(0)) for pid in self.properties_of(building_id)),
            Decimal(0),
        )

    def categories_of(self, building_id: int) -> list[DocumentCategory]:
        members = set(self.properties_of(building_id))
        found = {category for (pid, category) in self._shares if pid in members}
        return [category for category in DocumentCategory if category in found]

    def is_balanced(self, building_id: int, category: DocumentCategory) -> bool:
        return abs(self.total_for(building_id, category) - FULL_SHARE) <= self.tolerance

    def check_building(
        self,
        building_id: int,
        categories: Iterable[DocumentCategory] | None = None,
    ) -> list[str]:
        """Return one warning per category whose shares do not total 100%.

        Args:
            building_id: Building to check
            categories: Categories to check (default: every category with a share)
        """
        if categories is None:
            categories = self.categories_of(building_id)

        warnings = []
        for category in categories:
            category = DocumentCategory(category)
            if category.is_metered or self.is_balanced(building_id, category):
                continue
            total = self.total_for(building_id, category)
            message = (
                f"Charge shares for {category.value} total {total}% across building "
                f"{building_id} instead of 100%; configured percentages applied as is"
            )
            logger.warning(message)
            warnings.append(message)
        return warnings


__all__ = ["ChargeShareRegistry", "DEFAULT_TOLERANCE", "FULL_SHARE"]
