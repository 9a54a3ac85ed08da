"""Shared test fixtures for the ingest-service test suite."""

from __future__ import annotations

import pytest


@pytest.fixture
def scenario_policy_text() -> str:
    return "Insured: Test Insured Ltd. UNIQUE MARKET REFERENCE UMR-TEST-123 CERTIFICATE REFERENCE 987654"


@pytest.fixture
def policy_schedule_text() -> str:
    return (
        "CERTIFICATE OF INSURANCE\n"
        "Insured: Harbour Logistics Ltd\n"
        "Unique Market Reference: B0999HL2024\n"
        "Line Slip No: LS-2024-55\n"
        "Certificate Reference: 445566\n"
        "Period of Insurance: 1 January 2024 to 31 December 2024\n"
        "Retroactive Date: 01/01/2015\n"
    )
