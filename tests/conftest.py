from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

SRC_ROOT = ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


@pytest.fixture
def base_vector() -> dict[str, float]:
    return {
        "energy": 5.0,
        "focus": 5.0,
        "mood": 5.0,
        "stress": 5.0,
        "sleepHours": 7.0,
        "social": 5.0,
        "productivity": 5.0,
        "health": 5.0,
        "cashFlow": 0.0,
    }
