from __future__ import annotations

import pathlib
import sys
from collections.abc import Iterator

import pytest

REPO_ROOT = pathlib.Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dynguard import registry  # noqa: E402


@pytest.fixture(scope="session")
def repo_root() -> pathlib.Path:
    return REPO_ROOT


@pytest.fixture(autouse=True)
def _empty_chain() -> Iterator[None]:
    """Every test starts and ends with no interceptor registered."""

    registry.clear()
    yield
    registry.clear()
