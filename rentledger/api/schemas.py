"""Request and response schemas of the ledger API.

Money amounts are Decimal fields and serialize as decimal strings, so no
precision is lost on the wire.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from rentledger.services.prorata_service import CalculationType
from rentledger.services.records import DocumentCategory


class ApplicableRentResponse(BaseModel):
    """Rent and charges in force on a date."""

    lease_id: int
    on_date: date
    rent_amount: Decimal
    charges_amount: Decimal
    total_amount: Decimal
    revision_id: int | None = None
    is_from_revision: bool


class LeaseBalanceResponse(BaseModel):
    """Balance of a lease (positive = credit, negative = tenant owes)."""

    lease_id: int
    reference_date: date
    total_paid: Decimal
    total_expected: Decimal
    balance: Decimal


class PaymentBalanceResponse(BaseModel):
    lease_id: int
    payment_id: int
    payment_amount: Decimal
    balance_before: Decimal
    balance_after: Decimal


class MonthlyRentResponse(BaseModel):
    month: str
    rent_amount: Decimal
    charges_amount: Decimal
    total_amount: Decimal
    revision_id: int | None = None


class StatementLineResponse(BaseModel):
    month: str
    amount_due: Decimal
    charges: Decimal
    paid: Decimal
    balance: Decimal


class PaymentStatusResponse(BaseModel):
    lease_id: int
    is_up_to_date: bool
    is_late: bool
    expected_payment_date: date
    last_payment_date: date | None = None


class SettlementRequest(BaseModel):
    """Body of a charge settlement request."""

    property_id: int
    provisional_charges_paid: Decimal
    reference_date: date | None = None  # today when omitted


class SettlementDocumentResponse(BaseModel):
    id: int
    date: date
    description: str
    amount: Decimal


class WaterDetailsResponse(BaseModel):
    property_consumption: Decimal
    building_total_consumption: Decimal
    dynamic_percentage: Decimal
    calculation_method: str
    period_start: date
    period_end: date


class CategoryChargeResponse(BaseModel):
    category: DocumentCategory
    documents: list[SettlementDocumentResponse]
    total_amount: Decimal
    percentage: Decimal
    property_share: Decimal
    calculation_method: str
    water_details: WaterDetailsResponse | None = None


class SettlementResponse(BaseModel):
    """Charge settlement (positive balance = provisions exceed actual charges)."""

    building_id: int
    property_id: int
    reference_date: date
    period_start: date
    period_end: date
    categories: list[CategoryChargeResponse]
    total_charges_actual: Decimal
    total_charges_provisional: Decimal
    balance: Decimal
    new_monthly_charges: Decimal
    warnings: list[str]


class ChargeShareRequest(BaseModel):
    property_id: int
    category: DocumentCategory
    percentage: Decimal


class ChargeShareResponse(BaseModel):
    property_id: int
    category: DocumentCategory
    percentage: Decimal

    model_config = ConfigDict(from_attributes=True)


class PropertySharesResponse(BaseModel):
    property_id: int
    property_name: str
    shares: dict[DocumentCategory, Decimal]


class BuildingSharesResponse(BaseModel):
    building_id: int
    properties: list[PropertySharesResponse]
    totals: dict[DocumentCategory, Decimal]
    warnings: list[str]


class ProrataRequest(BaseModel):
    monthly_rent: Decimal = Field(ge=0)
    start_date: date
    end_date: date
    calculation_type: CalculationType = CalculationType.MOVE_IN


class ProrataResponse(BaseModel):
    monthly_rent: Decimal
    days_occupied: int
    days_in_month: int
    daily_rate: Decimal
    percentage: Decimal
    amount: Decimal
    calculation_type: CalculationType
