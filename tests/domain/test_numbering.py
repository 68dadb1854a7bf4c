"""Tests for invoice and payment number formatting and allocation."""

import threading

import pytest

from invoice_kernel.domain.numbering import (
    DocumentNumber,
    SequentialNumberer,
    format_document_number,
    next_document_number,
    parse_document_number,
)
from invoice_kernel.exceptions import ValidationError


class TestFormatAndParse:

    def test_format(self):
        assert format_document_number("INV", 2025, 42) == "INV-2025-000042"
        assert format_document_number("PAY", 2024, 7, width=4) == "PAY-2024-0007"

    def test_sequence_must_be_positive(self):
        with pytest.raises(ValidationError):
            format_document_number("INV", 2025, 0)

    def test_parse(self):
        assert parse_document_number("INV-2025-000042") == DocumentNumber("INV", 2025, 42)

    @pytest.mark.parametrize("text", ["", "INV2025000042", "inv-2025-1", "INV-25-1", None])
    def test_parse_rejects_malformed(self, text):
        with pytest.raises(ValidationError):
            parse_document_number(text)


class TestNextDocumentNumber:

    def test_first_of_year(self):
        assert next_document_number("INV", 2025, []) == "INV-2025-000001"

    def test_follows_highest(self):
        existing = ["INV-2025-000003", "INV-2025-000010", "INV-2025-000002"]
        assert next_document_number("INV", 2025, existing) == "INV-2025-000011"

    def test_ignores_other_years_prefixes_and_garbage(self):
        existing = ["INV-2024-000099", "PAY-2025-000050", "legacy-7", "INV-2025-000004"]
        assert next_document_number("INV", 2025, existing) == "INV-2025-000005"


class TestSequentialNumberer:

    def test_counters_per_prefix_and_year(self):
        numberer = SequentialNumberer()
        assert numberer.next_number("INV", 2025) == "INV-2025-000001"
        assert numberer.next_number("INV", 2025) == "INV-2025-000002"
        assert numberer.next_number("PAY", 2025) == "PAY-2025-000001"
        assert numberer.next_number("INV", 2026) == "INV-2026-000001"

    def test_seeded(self):
        numberer = SequentialNumberer(issued=["INV-2025-000041", "INV-2025-000007"])
        assert numberer.next_number("INV", 2025) == "INV-2025-000042"

    def test_width(self):
        assert SequentialNumberer(width=3).next_number("INV", 2025) == "INV-2025-001"

    def test_concurrent_allocation_is_unique(self):
        numberer = SequentialNumberer()
        issued: list[str] = []
        lock = threading.Lock()

        def allocate():
            for _ in range(50):
                number = numberer.next_number("INV", 2025)
                with lock:
                    issued.append(number)

        threads = [threading.Thread(target=allocate) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(issued) == 400
        assert len(set(issued)) == 400
        assert max(issued) == "INV-2025-000400"
