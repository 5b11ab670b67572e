"""Ledger API endpoints: rent schedule, lease balance, charge settlement."""

import logging
import time
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from rentledger.api.errors import raise_ledger_error
from rentledger.api.schemas import (
    ApplicableRentResponse,
    BuildingSharesResponse,
    CategoryChargeResponse,
    ChargeShareRequest,
    ChargeShareResponse,
    LeaseBalanceResponse,
    MonthlyRentResponse,
    PaymentBalanceResponse,
    PaymentStatusResponse,
    PropertySharesResponse,
    ProrataRequest,
    ProrataResponse,
    SettlementDocumentResponse,
    SettlementRequest,
    SettlementResponse,
    StatementLineResponse,
    WaterDetailsResponse,
)
from rentledger.services.config import settings
from rentledger.services.db import get_db
from rentledger.services.errors import LedgerError
from rentledger.services.ledger_service import LedgerService
from rentledger.services.prorata_service import ProrataService
from rentledger.services.repository import SqlLedgerRepository
from rentledger.services.settlement_service import ChargeSettlementResult

logger = logging.getLogger(__name__)


def _log_debug(endpoint: str, start_time: float, **kwargs: Any) -> None:
    """Log API request with timing at DEBUG level.

    Args:
        endpoint: Endpoint name (e.g., 'balance', 'settlement')
        start_time: Request start time from time.time()
        **kwargs: Identifiers to log (lease_id, building_id, ...)
    """
    duration_ms = int((time.time() - start_time) * 1000)
    extra = " ".join(f"{k}={v}" for k, v in kwargs.items())
    logger.debug("ledger.%s: %s duration_ms=%d", endpoint, extra, duration_ms)


def get_ledger_service(db: Session = Depends(get_db)) -> LedgerService:
    """Build a LedgerService over the request's database session."""
    return LedgerService(
        SqlLedgerRepository(db),
        share_tolerance=settings.share_total_tolerance,
        settlement_months=settings.settlement_months,
    )


router = APIRouter(prefix="/api", tags=["ledger"])


def _settlement_response(result: ChargeSettlementResult) -> SettlementResponse:
    categories = []
    for detail in result.categories:
        water_details = None
        if detail.water is not None:
            water_details = WaterDetailsResponse(
                property_consumption=detail.water.property_consumption,
                building_total_consumption=detail.water.building_total_consumption,
                dynamic_percentage=detail.water.dynamic_percentage,
                calculation_method=detail.water.calculation_method,
                period_start=detail.water.period_start,
                period_end=detail.water.period_end,
            )
        categories.append(
            CategoryChargeResponse(
                category=detail.category,
                documents=[
                    SettlementDocumentResponse(
                        id=d.id,
                        date=d.date,
                        description=d.description,
                        amount=d.amount.amount,
                    )
                    for d in detail.documents
                ],
                total_amount=detail.total_amount.amount,
                percentage=detail.percentage,
                property_share=detail.property_share.amount,
                calculation_method=detail.calculation_method,
                water_details=water_details,
            )
        )

    return SettlementResponse(
        building_id=result.building_id,
        property_id=result.property_id,
        reference_date=result.reference_date,
        period_start=result.period_start,
        period_end=result.period_end,
        categories=categories,
        total_charges_actual=result.total_charges_actual.amount,
        total_charges_provisional=result.total_charges_provisional.amount,
        balance=result.balance.amount,
        new_monthly_charges=result.new_monthly_charges.amount,
        warnings=result.warnings,
    )


@router.get("/leases/{lease_id}/applicable-rent", response_model=ApplicableRentResponse)
def get_applicable_rent(
    lease_id: int,
    on_date: date = Query(..., description="Date to resolve (YYYY-MM-DD)"),
    service: LedgerService = Depends(get_ledger_service),
) -> ApplicableRentResponse:
    """Rent and charges contractually due on a date."""
    start_time = time.time()
    try:
        rent = service.get_applicable_rent_for_date(lease_id, on_date)
        _log_debug("applicable_rent", start_time, lease_id=lease_id, on_date=on_date)
        return ApplicableRentResponse(
            lease_id=lease_id,
            on_date=on_date,
            rent_amount=rent.rent_amount.amount,
            charges_amount=rent.charges_amount.amount,
            total_amount=rent.total_amount.amount,
            revision_id=rent.revision_id,
            is_from_revision=rent.is_from_revision,
        )
    except LedgerError as e:
        raise_ledger_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error resolving rent for lease %s: %s", lease_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Server error") from e


@router.get("/leases/{lease_id}/balance", response_model=LeaseBalanceResponse)
def get_lease_balance(
    lease_id: int,
    reference_date: date = Query(..., description="Balance date (YYYY-MM-DD)"),
    include_charges: bool = Query(True, description="Include ad hoc lease charges"),
    service: LedgerService = Depends(get_ledger_service),
) -> LeaseBalanceResponse:
    """Paid minus expected for a lease (positive = credit, negative = owed)."""
    start_time = time.time()
    try:
        result = service.calculate_lease_balance(lease_id, reference_date, include_charges)
        _log_debug("balance", start_time, lease_id=lease_id, reference_date=reference_date)
        return LeaseBalanceResponse(
            lease_id=lease_id,
            reference_date=reference_date,
            total_paid=result.total_paid.amount,
            total_expected=result.total_expected.amount,
            balance=result.balance.amount,
        )
    except LedgerError as e:
        raise_ledger_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error computing balance for lease %s: %s", lease_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Server error") from e


@router.get(
    "/leases/{lease_id}/payments/{payment_id}/balance",
    response_model=PaymentBalanceResponse,
)
def get_payment_balance(
    lease_id: int,
    payment_id: int,
    service: LedgerService = Depends(get_ledger_service),
) -> PaymentBalanceResponse:
    """Lease balance before and after one payment (used on rent receipts)."""
    try:
        result = service.calculate_payment_balance(lease_id, payment_id)
        return PaymentBalanceResponse(
            lease_id=lease_id,
            payment_id=payment_id,
            payment_amount=result.payment_amount.amount,
            balance_before=result.balance_before.amount,
            balance_after=result.balance_after.amount,
        )
    except LedgerError as e:
        raise_ledger_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error computing balance for payment %s: %s", payment_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Server error") from e


@router.get("/leases/{lease_id}/rent-history", response_model=list[MonthlyRentResponse])
def get_rent_history(
    lease_id: int,
    start_month: str = Query(..., pattern=r"^\d{4}-\d{2}$"),
    end_month: str = Query(..., pattern=r"^\d{4}-\d{2}$"),
    service: LedgerService = Depends(get_ledger_service),
) -> list[MonthlyRentResponse]:
    """Amounts due month by month, revisions applied."""
    try:
        history = service.get_rent_history(lease_id, start_month, end_month)
        return [
            MonthlyRentResponse(
                month=item.month,
                rent_amount=item.rent_amount.amount,
                charges_amount=item.charges_amount.amount,
                total_amount=item.total_amount.amount,
                revision_id=item.revision_id,
            )
            for item in history
        ]
    except LedgerError as e:
        raise_ledger_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error building rent history for lease %s: %s", lease_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Server error") from e


@router.get("/leases/{lease_id}/statement", response_model=list[StatementLineResponse])
def get_statement(
    lease_id: int,
    reference_date: date = Query(...),
    service: LedgerService = Depends(get_ledger_service),
) -> list[StatementLineResponse]:
    try:
        lines = service.get_statement(lease_id, reference_date)
        return [
            StatementLineResponse(
                month=line.month,
                amount_due=line.amount_due.amount,
                charges=line.charges.amount,
                paid=line.paid.amount,
                balance=line.balance.amount,
            )
            for line in lines
        ]
    except LedgerError as e:
        raise_ledger_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error building statement for lease %s: %s", lease_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Server error") from e


@router.get("/leases/{lease_id}/payment-status", response_model=PaymentStatusResponse)
def get_payment_status(
    lease_id: int,
    reference_date: date | None = Query(None),
    service: LedgerService = Depends(get_ledger_service),
) -> PaymentStatusResponse:
    reference_date = reference_date or date.today()
    try:
        result = service.check_payment_status(lease_id, reference_date)
        return PaymentStatusResponse(lease_id=lease_id, **result._asdict())
    except LedgerError as e:
        raise_ledger_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error checking payment status for lease %s: %s", lease_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Server error") from e


@router.post("/buildings/{building_id}/settlement", response_model=SettlementResponse)
def calculate_settlement(
    building_id: int,
    request: SettlementRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> SettlementResponse:
    """Annual charge settlement of a property (positive balance = refund due)."""
    start_time = time.time()
    reference_date = request.reference_date or date.today()
    try:
        result = service.calculate_charge_settlement(
            building_id,
            request.property_id,
            reference_date,
            request.provisional_charges_paid,
        )
        _log_debug(
            "settlement",
            start_time,
            building_id=building_id,
            property_id=request.property_id,
            warnings=len(result.warnings),
        )
        return _settlement_response(result)
    except LedgerError as e:
        raise_ledger_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error calculating settlement for building %s: %s", building_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Server error") from e


@router.get("/buildings/{building_id}/charge-shares", response_model=BuildingSharesResponse)
def get_charge_shares(
    building_id: int,
    service: LedgerService = Depends(get_ledger_service),
) -> BuildingSharesResponse:
    try:
        result = service.get_charge_shares(building_id)
        return BuildingSharesResponse(
            building_id=building_id,
            properties=[
                PropertySharesResponse(
                    property_id=p.id,
                    property_name=p.name,
                    shares=result.shares.get(p.id, {}),
                )
                for p in result.properties
            ],
            totals=result.totals,
            warnings=result.warnings,
        )
    except LedgerError as e:
        raise_ledger_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error fetching charge shares for building %s: %s", building_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Server error") from e


@router.post("/buildings/{building_id}/charge-shares", response_model=ChargeShareResponse)
def set_charge_share(
    building_id: int,
    request: ChargeShareRequest,
    service: LedgerService = Depends(get_ledger_service),
) -> ChargeShareResponse:
    """Set (insert or replace) the share of a property for a category."""
    try:
        share = service.set_charge_share(
            building_id, request.property_id, request.category, request.percentage
        )
        return ChargeShareResponse.model_validate(share)
    except LedgerError as e:
        raise_ledger_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error setting charge share for building %s: %s", building_id, e, exc_info=True)
        raise HTTPException(status_code=500, detail="Server error") from e


@router.post("/prorata", response_model=ProrataResponse)
def calculate_prorata(request: ProrataRequest) -> ProrataResponse:
    """Rent owed for a partially occupied month."""
    try:
        result = ProrataService().calculate(
            request.monthly_rent,
            request.start_date,
            request.end_date,
            request.calculation_type,
        )
        return ProrataResponse(
            monthly_rent=result.monthly_rent.amount,
            days_occupied=result.days_occupied,
            days_in_month=result.days_in_month,
            daily_rate=result.daily_rate.amount,
            percentage=result.percentage,
            amount=result.amount.amount,
            calculation_type=result.calculation_type,
        )
    except LedgerError as e:
        raise_ledger_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error("Error calculating prorata: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Server error") from e


__all__ = ["router", "get_ledger_service"]
