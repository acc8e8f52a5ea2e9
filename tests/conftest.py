"""
Shared pytest fixtures for all tests.
"""

import pytest


# ============================================================
# Sample Data Fixtures
# ============================================================


@pytest.fixture
def sample_raw_vessel() -> dict:
    """Raw vessel record as returned by the reports API."""
    return {
        "SHIP_ID": "371584",
        "SHIPNAME": "NORDIC AURORA",
        "IMO": "9321483",
        "MMSI": "538002561",
        "LAT": "36,1234",
        "LON": "-5.3521",
        "SPEED": "12,5",
        "COURSE": "245",
        "DRAUGHT_MAX": "n/a",
        "ETA_UPDATED": "1700000000",
        "FIRST_POS_TIMESTAMP": 1600000000,
        "LAUNCH_DATE": "March 3, 1999",
        "FLAG": "MH",
        "CALLSIGN": None,
    }


@pytest.fixture
def sample_api_payload(sample_raw_vessel) -> dict:
    """Intercepted reports API payload."""
    second = {**sample_raw_vessel, "SHIP_ID": "371585", "SHIPNAME": "NORDIC BOREAS"}
    return {"data": [sample_raw_vessel, second], "totalCount": 2}


# ============================================================
# Normalization Fixtures
# ============================================================


@pytest.fixture
def epoch_cases() -> list[tuple]:
    """Test cases for epoch conversion: (input, expected)."""
    return [
        ("1700000000", "2023-11-14T22:13:20.000Z"),
        (1700000000, "2023-11-14T22:13:20.000Z"),
        ("0", "1970-01-01T00:00:00.000Z"),
        ("2023-11-14 22:13", "2023-11-14 22:13"),
        ("12.5", "12.5"),
    ]


@pytest.fixture
def number_cases() -> list[tuple]:
    """Test cases for decimal-comma parsing: (input, expected)."""
    return [
        ("12,5", 12.5),
        ("-5.3521", -5.3521),
        ("245", 245.0),
        (" 7,25 ", 7.25),
        ("n/a", "n/a"),
        ("", ""),
        ("inf", "inf"),
        (13.1, 13.1),
    ]
