"""Custom exception classes for the ledger and settlement engine.

Hard failures abort a computation and surface to the caller as one of these.
Data-quality problems never raise; they are reported as warnings on the result.
"""


class LedgerError(Exception):
    """Base exception for ledger errors."""

    code = "ledger_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(LedgerError):
    """A domain record was built from invalid values."""

    code = "validation_error"


class InvalidAmountError(ValidationError):
    """Amount is not a finite decimal, or is negative where it must not be."""

    code = "invalid_amount"


class InvalidChargeShareError(ValidationError):
    """Charge share percentage out of range or set on a metered category."""

    code = "invalid_charge_share"


class OutOfRangeDateError(LedgerError):
    """Date falls before the start of the lease."""

    code = "out_of_range_date"


class NotFoundError(LedgerError):
    """Requested entity does not exist."""

    code = "not_found"


class LeaseNotFoundError(NotFoundError):
    """Lease does not exist."""

    code = "lease_not_found"

    def __init__(self, lease_id):
        self.lease_id = lease_id
        super().__init__(f"Lease {lease_id} not found")


class PaymentNotFoundError(NotFoundError):
    """Payment does not exist or belongs to another lease."""

    code = "payment_not_found"

    def __init__(self, payment_id):
        self.payment_id = payment_id
        super().__init__(f"Payment {payment_id} not found")


class PropertyNotFoundError(NotFoundError):
    """Property does not exist."""

    code = "property_not_found"

    def __init__(self, property_id):
        self.property_id = property_id
        super().__init__(f"Property {property_id} not found")


class PropertyNotInBuildingError(LedgerError):
    """Property exists but is not attached to the requested building."""

    code = "property_not_in_building"

    def __init__(self, property_id, building_id):
        self.property_id = property_id
        self.building_id = building_id
        super().__init__(f"Property {property_id} does not belong to building {building_id}")
