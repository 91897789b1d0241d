from __future__ import annotations

import json
from pathlib import Path

import pytest

from cgeruntime.core import Context
from cgeruntime.errors import ConfigurationError
from cgeruntime.signals import (
    ComponentType,
    ConstraintKind,
    ConstraintSense,
    component_type,
    constraint_id,
    constraint_kind,
    constraint_sense,
    to_dualsignals,
)


def _solved_context() -> Context:
    ctx = Context()
    ctx.register_equation("market", "goods", {"indices": ("agr",), "residual": -0.5})
    ctx.register_equation("market", "goods", {"indices": ("mfg",), "residual": 1e-9})
    ctx.register_equation("budget", "households", {"residual": 0.0})
    ctx.register_equation("pending", "goods", {"indices": ("ser",)})
    return ctx


def test_constraint_id_format() -> None:
    assert constraint_id("goods", "market", ("agr", "mfg")) == "goods:market:agr,mfg"
    assert constraint_id("households", "budget", ()) == "households:budget:"


def test_lookup_tables() -> None:
    assert component_type("Other") is ComponentType.OTHER
    assert constraint_kind("balance") is ConstraintKind.BALANCE
    assert constraint_sense(" EQ ") is ConstraintSense.EQ
    with pytest.raises(ConfigurationError, match="Unknown constraint sense"):
        constraint_sense("ne")


def test_to_dualsignals_maps_residuals() -> None:
    dataset = to_dualsignals(
        _solved_context(), dataset_id="base", description="toy run"
    )

    assert dataset.dataset_id == "base"
    assert dataset.metadata.description == "toy run"
    assert [c.component_id for c in dataset.components] == ["goods", "households"]
    assert all(c.component_type is ComponentType.OTHER for c in dataset.components)
    assert [c.constraint_id for c in dataset.constraints] == [
        "goods:market:agr",
        "goods:market:mfg",
        "households:budget:",
    ]
    assert all(c.sense is ConstraintSense.EQ for c in dataset.constraints)
    assert dataset.constraints[0].component_ids == ["goods"]

    slacks = [s.slack for s in dataset.constraint_solutions]
    assert slacks == pytest.approx([0.5, 1e-9, 0.0])
    assert [s.is_binding for s in dataset.constraint_solutions] == [False, True, True]
    assert all(s.dual == 0.0 for s in dataset.constraint_solutions)
    assert dataset.variables is None


def test_to_dualsignals_empty_context() -> None:
    dataset = to_dualsignals(Context())
    assert dataset.dataset_id == "cgeruntime"
    assert dataset.components == []
    assert dataset.constraint_solutions == []


def test_save_json(tmp_path: Path) -> None:
    path = tmp_path / "signals.json"
    to_dualsignals(_solved_context()).save_json(path)
    payload = json.loads(path.read_text())
    assert payload["constraints"][0]["kind"] == "other"
    assert payload["constraint_solutions"][0]["slack"] == 0.5
