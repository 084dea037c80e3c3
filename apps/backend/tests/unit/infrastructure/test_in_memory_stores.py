"""
Name: In-Memory Store Tests

Responsibilities:
  - InMemorySequenceStore emula UNIQUE y el "mayor código por prefijo y largo"
  - InMemoryOwnershipStore responde pertenencia y autoría
"""

import pytest
from bizops.crosscutting.exceptions import ConflictError
from bizops.domain.sequences import SequenceKind

pytestmark = pytest.mark.unit


def test_last_code_filters_by_prefix_and_kind(sequence_store):
    sequence_store.insert(SequenceKind.INVOICE, "INV-2023-0099")
    sequence_store.insert(SequenceKind.INVOICE, "INV-2024-0002")
    sequence_store.insert(SequenceKind.INVOICE, "INV-2024-0010")
    sequence_store.insert(SequenceKind.SALE, "SALE20240050")

    assert sequence_store.last_code(SequenceKind.INVOICE, "INV-2024-") == "INV-2024-0010"
    assert sequence_store.last_code(SequenceKind.INVOICE, "INV-2025-") is None
    assert sequence_store.last_code(SequenceKind.LOT, "LOT2024") is None


def test_last_code_with_length_skips_other_widths(sequence_store):
    sequence_store.insert(SequenceKind.PRODUCT, "PRD000007")
    sequence_store.insert(SequenceKind.PRODUCT, "PRD1718000000000")

    assert sequence_store.last_code(SequenceKind.PRODUCT, "PRD") == "PRD1718000000000"
    assert sequence_store.last_code(SequenceKind.PRODUCT, "PRD", 9) == "PRD000007"
    assert sequence_store.last_code(SequenceKind.PRODUCT, "PRD", 12) is None


def test_duplicate_insert_conflicts(sequence_store):
    sequence_store.insert(SequenceKind.LOT, "LOT20240001")

    with pytest.raises(ConflictError):
        sequence_store.insert(SequenceKind.LOT, "LOT20240001")

    assert sequence_store.codes(SequenceKind.LOT) == ["LOT20240001"]


def test_same_code_in_different_kinds(sequence_store):
    sequence_store.insert(SequenceKind.PRODUCT, "X1")
    sequence_store.insert(SequenceKind.SALE, "X1")

    assert sequence_store.codes(SequenceKind.PRODUCT) == ["X1"]


def test_ownership_store(ownership_store):
    ownership_store.add_project_member(5, 3)
    ownership_store.add_invoice_creator(8, 2)

    assert ownership_store.is_project_member(5, 3)
    assert not ownership_store.is_project_member(5, 2)
    assert ownership_store.is_invoice_creator(8, 2)
    assert not ownership_store.is_invoice_creator(5, 3)
