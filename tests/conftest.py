"""Shared fixtures for cgeruntime tests."""

from __future__ import annotations

from typing import Any

import pytest
from pyomo.environ import ConcreteModel

from cgeruntime.core import Context


class RecordingSolver:
    """Stand-in solver: records calls and leaves variable values untouched."""

    def __init__(self) -> None:
        self.calls: list[tuple[Any, dict[str, Any]]] = []

    def solve(self, model: Any, **kwargs: Any) -> dict[str, str]:
        self.calls.append((model, kwargs))
        return {"status": "ok"}


@pytest.fixture
def solver() -> RecordingSolver:
    return RecordingSolver()


@pytest.fixture
def ctx() -> Context:
    """Context with an empty Pyomo model attached."""
    return Context(model=ConcreteModel(name="test"))
