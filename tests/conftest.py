"""Shared fixtures for RemindMe tests."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest

from remindme.coordinator import RemindMeCoordinator
from remindme.store import ReminderStore
from remindme.utils import dt_utils

# 2024-01-01 is a Monday
MONDAY = "2024-01-01"


@pytest.fixture(autouse=True)
def reset_default_timezone() -> Iterator[None]:
    """Keep timezone overrides from leaking between tests."""
    original = dt_utils.get_default_timezone()
    yield
    dt_utils.set_default_timezone(original)


@pytest.fixture
def morning() -> datetime:
    """Fixed `now` early on 2024-01-01."""
    return datetime(2024, 1, 1, 7, 0)


@pytest.fixture
def default_settings() -> dict[str, Any]:
    """Settings with the stock sleep window."""
    return {"sleepStart": "22:00", "sleepEnd": "08:00"}


@pytest.fixture
def multivitamin() -> dict[str, Any]:
    """Recurring course with breakfast and dinner doses."""
    return {
        "id": "1",
        "title": "Multivitamin",
        "category": "medication",
        "schedule": {
            "type": "recurring",
            "startDate": MONDAY,
            "frequency": ["breakfast", "dinner"],
            "times": {"breakfast": "08:00", "dinner": "20:00"},
        },
    }


@pytest.fixture
def daily_pill() -> dict[str, Any]:
    """Legacy daily reminder at 12:00."""
    return {
        "id": "2",
        "title": "Blood pressure pill",
        "type": "medication",
        "date": MONDAY,
        "time": "12:00",
        "frequency": "Daily",
    }


@pytest.fixture
def store_path(tmp_path: Path) -> Path:
    """Location of the JSON document for store-backed tests."""
    return tmp_path / "remindme_buddy_db_guest.json"


@pytest.fixture
def coordinator(store_path: Path) -> Iterator[RemindMeCoordinator]:
    """Coordinator over an empty file-backed store."""
    store = ReminderStore(store_path)
    store.load()
    coord = RemindMeCoordinator(store)
    yield coord
    coord.shutdown()
