"""Invoicing errors that must not be folded into a Result

A use case returns expected business failures as Result errors. The errors
below signal that the FNE authority accepted an operation which could not be
persisted locally, so local and authority state have diverged.
"""

from typing import Any, Optional


class InvoiceStateConflict(Exception):
    """The invoice changed between the precondition read and the commit"""


class ManualReconciliationRequired(Exception):
    """
    The authority accepted a certification or refund but the local commit failed

    Carries what an operator needs to reconcile by hand.
    """

    def __init__(
        self,
        operation: str,
        tenant_id: str,
        invoice_id: Optional[int],
        fne_reference: Optional[str] = None,
        fne_response: Any = None,
    ):
        self.operation = operation
        self.tenant_id = tenant_id
        self.invoice_id = invoice_id
        self.fne_reference = fne_reference
        self.fne_response = fne_response
        super().__init__(
            f"FNE accepted {operation} for invoice {invoice_id} of tenant {tenant_id} "
            f"(reference {fne_reference}) but the local commit failed"
        )
