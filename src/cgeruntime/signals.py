"""DualSignals dataset export of constraint residuals.

The dataset is a lightweight mapping focused on constraint residuals: one
component per block, one constraint per equation instance with the id
``block:tag:i1,i2``, and one solution record per constraint with the dual
defaulted to 0.0 and the absolute residual as slack.
"""

from __future__ import annotations

import json
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from cgeruntime.errors import ConfigurationError
from cgeruntime.qa.residuals import equation_residuals

if TYPE_CHECKING:
    from cgeruntime.core.context import Context


class ComponentType(str, Enum):
    GENERATOR = "generator"
    LOAD = "load"
    LINE = "line"
    STORAGE = "storage"
    MARKET = "market"
    OTHER = "other"


class ConstraintKind(str, Enum):
    BALANCE = "balance"
    CAPACITY = "capacity"
    LIMIT = "limit"
    POLICY = "policy"
    OTHER = "other"


class ConstraintSense(str, Enum):
    EQ = "eq"
    LE = "le"
    GE = "ge"


class Component(BaseModel):
    component_id: str
    component_type: ComponentType
    name: str | None = None

    model_config = ConfigDict(frozen=True)


class Constraint(BaseModel):
    constraint_id: str
    kind: ConstraintKind
    sense: ConstraintSense
    component_ids: list[str] = Field(default_factory=list)


class ConstraintSolution(BaseModel):
    constraint_id: str
    dual: float = 0.0
    slack: float | None = None
    is_binding: bool | None = None


class DatasetMetadata(BaseModel):
    description: str | None = None


class DualSignalsDataset(BaseModel):
    """Exported dataset."""

    dataset_id: str
    metadata: DatasetMetadata = Field(default_factory=DatasetMetadata)
    components: list[Component] = Field(default_factory=list)
    constraints: list[Constraint] = Field(default_factory=list)
    constraint_solutions: list[ConstraintSolution] = Field(default_factory=list)
    variables: list[dict[str, Any]] | None = None

    def save_json(self, path: Path | str) -> None:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(self.model_dump(mode="json"), indent=2))


# Explicit name -> member tables, checked against the enums at import time
_COMPONENT_TYPES: dict[str, ComponentType] = {
    "generator": ComponentType.GENERATOR,
    "load": ComponentType.LOAD,
    "line": ComponentType.LINE,
    "storage": ComponentType.STORAGE,
    "market": ComponentType.MARKET,
    "other": ComponentType.OTHER,
}
_CONSTRAINT_KINDS: dict[str, ConstraintKind] = {
    "balance": ConstraintKind.BALANCE,
    "capacity": ConstraintKind.CAPACITY,
    "limit": ConstraintKind.LIMIT,
    "policy": ConstraintKind.POLICY,
    "other": ConstraintKind.OTHER,
}
_CONSTRAINT_SENSES: dict[str, ConstraintSense] = {
    "eq": ConstraintSense.EQ,
    "le": ConstraintSense.LE,
    "ge": ConstraintSense.GE,
}


def _check_table(table: dict[str, Any], enum_cls: type[Enum]) -> None:
    if set(table.values()) != set(enum_cls):
        msg = f"Lookup table for {enum_cls.__name__} does not cover all members"
        raise ConfigurationError(msg)


_check_table(_COMPONENT_TYPES, ComponentType)
_check_table(_CONSTRAINT_KINDS, ConstraintKind)
_check_table(_CONSTRAINT_SENSES, ConstraintSense)


def _lookup(table: dict[str, Any], name: str, label: str) -> Any:
    key = str(name).strip().lower()
    if key not in table:
        raise ConfigurationError(f"Unknown {label}: {name}")
    return table[key]


def component_type(name: str) -> ComponentType:
    return _lookup(_COMPONENT_TYPES, name, "component type")


def constraint_kind(name: str) -> ConstraintKind:
    return _lookup(_CONSTRAINT_KINDS, name, "constraint kind")


def constraint_sense(name: str) -> ConstraintSense:
    return _lookup(_CONSTRAINT_SENSES, name, "constraint sense")


def constraint_id(block: str, tag: str, indices: tuple[str, ...]) -> str:
    return f"{block}:{tag}:{','.join(str(i) for i in indices)}"


def to_dualsignals(
    context: Context,
    dataset_id: str = "cgeruntime",
    description: str | None = None,
    tol: float = 1e-6,
) -> DualSignalsDataset:
    """Convert the residuals of ``context`` into a DualSignals dataset."""
    components: dict[str, Component] = {}
    constraints: list[Constraint] = []
    solutions: list[ConstraintSolution] = []

    for entry in equation_residuals(context):
        component_id = entry.block
        if component_id not in components:
            components[component_id] = Component(
                component_id=component_id,
                component_type=component_type("other"),
                name=component_id,
            )
        cid = constraint_id(entry.block, entry.tag, entry.indices)
        constraints.append(
            Constraint(
                constraint_id=cid,
                kind=constraint_kind("other"),
                sense=constraint_sense("eq"),
                component_ids=[component_id],
            )
        )
        slack = abs(entry.residual)
        solutions.append(
            ConstraintSolution(
                constraint_id=cid, dual=0.0, slack=slack, is_binding=slack <= tol
            )
        )

    return DualSignalsDataset(
        dataset_id=dataset_id,
        metadata=DatasetMetadata(description=description),
        components=list(components.values()),
        constraints=constraints,
        constraint_solutions=solutions,
        variables=None,
    )
