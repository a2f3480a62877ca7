"""
Tests for engine/allocation.py - first-come-first-served payment allocation.
"""

import pytest

from engine.allocation import PaymentAllocator, allocate, total_allocated, unallocated_amount
from engine.models import PaymentReference


def _refs(*outstanding):
    return [
        PaymentReference(
            reference_doctype="Sales Invoice",
            reference_name=f"SINV-{i}",
            outstanding_amount=amount,
        )
        for i, amount in enumerate(outstanding, start=1)
    ]


class TestAllocate:
    def test_partial_second_reference(self):
        """80 paid against 50 and 100 outstanding -> 50, 30."""
        refs = allocate(80, _refs(50, 100))

        assert [r.allocated_amount for r in refs] == [50, 30]
        assert unallocated_amount(80, refs) == 0

    def test_zero_paid_allocates_nothing(self):
        refs = allocate(0, _refs(50, 100))

        assert [r.allocated_amount for r in refs] == [0, 0]
        assert unallocated_amount(0, refs) == 0

    def test_negative_paid_allocates_nothing(self):
        refs = allocate(-10, _refs(50))
        assert refs[0].allocated_amount == 0

    def test_overpayment_leaves_remainder(self):
        refs = allocate(200, _refs(50, 100))

        assert [r.allocated_amount for r in refs] == [50, 100]
        assert unallocated_amount(200, refs) == 50

    def test_empty_references(self):
        assert allocate(100, []) == []

    @pytest.mark.parametrize(
        "paid,outstanding",
        [(0, (10, 20)), (15, (10, 20)), (30, (10, 20)), (1000, (10, 20, 30)), (7.5, (2.5, 2.5, 2.5))],
    )
    def test_sum_is_min_of_paid_and_outstanding(self, paid, outstanding):
        refs = allocate(paid, _refs(*outstanding))

        assert total_allocated(refs) == pytest.approx(min(paid, sum(outstanding)))
        for ref in refs:
            assert ref.allocated_amount <= ref.outstanding_amount

    def test_order_sensitive(self):
        forward = allocate(60, _refs(50, 100))
        backward = allocate(60, _refs(100, 50))

        assert [r.allocated_amount for r in forward] == [50, 10]
        assert [r.allocated_amount for r in backward] == [60, 0]

    def test_idempotent_and_does_not_mutate_input(self):
        refs = _refs(50, 100)

        first = allocate(80, refs)
        second = allocate(80, refs)

        assert first == second
        assert all(r.allocated_amount == 0 for r in refs)


class TestPaymentAllocator:
    def test_replace_references_allocates(self):
        allocator = PaymentAllocator(paid_amount=80)
        allocator.replace_references(_refs(50, 100))

        assert [r.allocated_amount for r in allocator.references] == [50, 30]
        assert allocator.total_allocated == 80
        assert allocator.unallocated == 0

    def test_manual_edit_is_not_revalidated(self):
        allocator = PaymentAllocator(80, _refs(50, 100))

        allocator.set_allocated(1, 10)

        assert [r.allocated_amount for r in allocator.references] == [50, 10]
        assert allocator.unallocated == 20

    def test_changing_paid_amount_discards_manual_edits(self):
        allocator = PaymentAllocator(80, _refs(50, 100))
        allocator.set_allocated(0, 1)

        allocator.paid_amount = 120

        assert [r.allocated_amount for r in allocator.references] == [50, 70]

    def test_submittable_references_skip_zero_rows(self):
        allocator = PaymentAllocator(40, _refs(50, 100))

        submittable = allocator.submittable_references()

        assert [r.reference_name for r in submittable] == ["SINV-1"]
