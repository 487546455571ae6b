class ReconciliationError(Exception):
    code = "reconciliation_error"

    def __init__(self, detail=None, fields=None):
        self.detail = detail or self.__class__.__doc__ or "Reconciliation failed."
        self.fields = fields or {}
        super().__init__(self.detail)


class PayoutValidationError(ReconciliationError, ValueError):
    """The payout request is invalid."""

    code = "invalid_payout"


class InvalidAmount(PayoutValidationError):
    """The payout amount is out of range."""

    code = "invalid_amount"


class MissingReason(PayoutValidationError):
    """A partial payout requires a reason."""

    code = "missing_reason"


class InvalidDisposition(PayoutValidationError):
    """Balance disposition only applies to partial payouts."""

    code = "invalid_disposition"


class NotFoundError(ReconciliationError, LookupError):
    """The requested record does not exist."""

    code = "not_found"


class InconsistentLedgerError(ReconciliationError):
    """Refunded quantity exceeds the quantity sold."""

    code = "inconsistent_ledger"

    def __init__(self, line_id, refunded_quantity, quantity):
        self.line_id = line_id
        self.refunded_quantity = refunded_quantity
        self.quantity = quantity
        super().__init__(
            f"Line {line_id} has {refunded_quantity} unit(s) refunded but only {quantity} sold.",
            fields={"line_id": str(line_id)},
        )


class PayoutConflict(ReconciliationError):
    """Another payout already covers this period."""

    code = "payout_conflict"


class ImmutableRecordError(ReconciliationError):
    """Payouts cannot be modified or deleted."""

    code = "immutable_record"
