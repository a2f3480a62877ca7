"""
Payment allocation across outstanding invoices.

Greedy, first-come-first-served: references are paid in list order until
the paid amount runs out. Pure functions plus a small stateful model for
the payment form, where editing the paid amount reallocates everything
and editing a single row does not.
"""

from collections.abc import Iterable, Sequence
from dataclasses import replace

from engine.models import PaymentReference


def allocate(paid_amount: float, references: Sequence[PaymentReference]) -> list[PaymentReference]:
    """
    Distribute paid_amount across references in order.

    Each reference receives min(outstanding_amount, remaining). Once the
    remaining amount is zero or less, every later reference gets 0. A
    negative paid amount is not rejected; it allocates nothing.

    Returns new reference objects; the input is not modified.
    """
    remaining = paid_amount
    allocated = []
    for ref in references:
        if remaining <= 0:
            allocated.append(replace(ref, allocated_amount=0.0))
            continue
        amount = min(ref.outstanding_amount, remaining)
        remaining -= amount
        allocated.append(replace(ref, allocated_amount=amount))
    return allocated


def total_allocated(references: Iterable[PaymentReference]) -> float:
    return sum(ref.allocated_amount or 0.0 for ref in references)


def unallocated_amount(paid_amount: float, references: Iterable[PaymentReference]) -> float:
    """Paid amount not applied to any reference (an on-account remainder)."""
    return paid_amount - total_allocated(references)


class PaymentAllocator:
    """
    Allocation state behind the new-payment form.

    Usage:
        allocator = PaymentAllocator(paid_amount=80)
        allocator.replace_references(refs)    # auto-allocates
        allocator.set_allocated(1, 10)        # manual edit, no recompute
        allocator.paid_amount = 120           # recompute, manual edits lost
    """

    def __init__(self, paid_amount: float = 0.0, references: Sequence[PaymentReference] = ()):
        self._paid_amount = paid_amount
        self._references = allocate(paid_amount, references)

    @property
    def paid_amount(self) -> float:
        return self._paid_amount

    @paid_amount.setter
    def paid_amount(self, value: float) -> None:
        self._paid_amount = value
        self._references = allocate(value, self._references)

    @property
    def references(self) -> list[PaymentReference]:
        return list(self._references)

    def replace_references(self, references: Sequence[PaymentReference]) -> None:
        """Install a freshly fetched reference list and allocate against it."""
        self._references = allocate(self._paid_amount, references)

    def set_allocated(self, index: int, amount: float) -> None:
        """
        Override one row's allocation.

        Neither the row's outstanding amount nor the overall total is
        re-checked.
        """
        self._references[index] = replace(self._references[index], allocated_amount=amount)

    @property
    def total_allocated(self) -> float:
        return total_allocated(self._references)

    @property
    def unallocated(self) -> float:
        return unallocated_amount(self._paid_amount, self._references)

    def submittable_references(self) -> list[PaymentReference]:
        """Rows worth sending with the payment: those with something allocated."""
        return [ref for ref in self._references if ref.allocated_amount > 0]
