from __future__ import annotations
import logging
import random
from datetime import date
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)

INVOICE_PREFIX = "INV-"
RECEIPT_PREFIX = "RCT-"


class ValueStore(Protocol):
    def read(self, default: Any = None) -> Any: ...
    def write(self, value: Any) -> None: ...
    def update(self, fn: Callable[[Any], Any], default: Any = None) -> Any: ...


def format_invoice_number(n: int) -> str:
    # 10000 and up just grow, no re-padding
    return f"{INVOICE_PREFIX}{n:04d}"


def receipt_prefix(today: date) -> str:
    return f"{RECEIPT_PREFIX}{today:%Y%m%d}-"


def format_receipt_number(today: date, seq: int) -> str:
    return f"{receipt_prefix(today)}{seq:04d}"


def local_receipt_number(today: Optional[date] = None) -> str:
    """Best-effort receipt number when the sequential counter is out of reach."""
    return f"{receipt_prefix(today or date.today())}{random.randint(1000, 9999)}"


# ---------- invoice numbers (client side) ----------

class InvoiceCounter:
    """
    Next available invoice number, stored as a bare integer.
    peek_next() never mutates; commit() is called once per newly saved invoice.
    """

    def __init__(self, store: ValueStore):
        self.store = store

    @staticmethod
    def _valid(raw: Any) -> int:
        try:
            n = int(raw)
        except (TypeError, ValueError):
            return 1
        return n if n >= 1 else 1

    def peek_next(self) -> int:
        return self._valid(self.store.read(1))

    def peek_next_number(self) -> str:
        return format_invoice_number(self.peek_next())

    def commit(self) -> int:
        """Advance by one; returns the new next value."""
        new_value = self.store.update(lambda raw: self._valid(raw) + 1, default=1)
        logger.debug("Invoice counter advanced to %s", new_value)
        return new_value


# ---------- receipt numbers (server side) ----------

class ReceiptNumberService:
    """
    Sequential receipt numbers RCT-YYYYMMDD-####, the sequence is global
    (never reset per day) and persisted as {"last": n}.
    Any I/O or decode problem degrades to a random suffix and leaves the
    persisted counter untouched.
    """

    def __init__(self, store: ValueStore, today: Callable[[], date] = date.today):
        self.store = store
        self.today = today

    @staticmethod
    def _next_state(raw: Any) -> dict:
        if raw is None:
            raw = {"last": 0}
        if not isinstance(raw, dict):
            raise ValueError(f"receipt counter is not an object: {raw!r}")
        last = raw.get("last", 0)
        if isinstance(last, bool) or not isinstance(last, int):
            raise ValueError(f"receipt counter 'last' is not an integer: {last!r}")
        return {**raw, "last": last + 1}

    def generate_next(self) -> str:
        today = self.today()
        try:
            state = self.store.update(self._next_state, default=None)
        except (OSError, ValueError) as e:
            number = local_receipt_number(today)
            logger.warning("Receipt counter unavailable (%s), using %s", e, number)
            return number
        return format_receipt_number(today, state["last"])
