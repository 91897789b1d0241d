"""Runtime settings and optimizer configuration.

Settings can be built in code or loaded from a YAML file::

    tol: 1.0e-8
    dataset_id: pep_base
    validation_level: full
    optimizer:
      solver: ipopt
      options:
        max_iter: 500
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from cgeruntime.enums import ValidationLevel
from cgeruntime.errors import ConfigurationError


class OptimizerConfig(BaseModel):
    """Selection of a Pyomo solver and its options.

    Attributes:
        solver: Name passed to ``SolverFactory`` (e.g. 'ipopt', 'path')
        options: Solver options set before solving
        tee: Stream solver output
    """

    solver: str = Field(default="ipopt", min_length=1, description="Solver name")
    options: dict[str, Any] = Field(default_factory=dict, description="Solver options")
    tee: bool = Field(default=False, description="Stream solver output")

    model_config = ConfigDict(frozen=True)

    def create(self) -> Any:
        """Instantiate the Pyomo solver.

        Raises:
            ConfigurationError: If the solver is not available
        """
        from pyomo.environ import SolverFactory

        solver = SolverFactory(self.solver)
        if solver is None or not solver.available(exception_flag=False):
            msg = f"Solver '{self.solver}' is not available"
            raise ConfigurationError(msg)
        for key, val in self.options.items():
            solver.options[key] = val
        return solver

    def solve_kwargs(self) -> dict[str, Any]:
        return {"tee": self.tee}


class KernelSettings(BaseModel):
    """Defaults shared by the run orchestrator, residual summary and validator."""

    tol: float = Field(default=1e-6, gt=0.0, description="Residual tolerance")
    dataset_id: str = Field(
        default="cgeruntime", min_length=1, description="Export dataset id"
    )
    validation_level: ValidationLevel = Field(
        default=ValidationLevel.BASIC, description="Default validation level"
    )
    top_residuals: int = Field(
        default=5, ge=0, description="Worst residuals listed at full level"
    )
    scaling_max: float = Field(
        default=1e6, gt=0.0, description="Large magnitude threshold"
    )
    scaling_min: float = Field(
        default=1e-8, ge=0.0, description="Small magnitude threshold"
    )
    optimizer: OptimizerConfig | None = Field(
        default=None, description="Default optimizer"
    )

    model_config = ConfigDict(frozen=True)

    @field_validator("validation_level", mode="before")
    @classmethod
    def _normalize_level(cls, v: Any) -> ValidationLevel:  # noqa: N805
        return ValidationLevel.from_alias(v)


DEFAULT_SETTINGS = KernelSettings()


def load_settings(config_path: Path | str) -> KernelSettings:
    """Load ``KernelSettings`` from a YAML file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Settings file not found: {path}")
    payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    if payload is None:
        return KernelSettings()
    if not isinstance(payload, dict):
        raise ConfigurationError("Settings YAML must define a top-level mapping")
    optimizer = payload.get("optimizer")
    if optimizer is not None and not isinstance(optimizer, (dict, str)):
        raise ConfigurationError("optimizer must be a mapping or a solver name")
    if isinstance(optimizer, str):
        payload = {**payload, "optimizer": {"solver": optimizer}}
    try:
        return KernelSettings.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings in {path}: {exc}") from exc
