"""Enum definitions for objective senses, validation levels and report categories."""

from __future__ import annotations

from enum import Enum

from cgeruntime.errors import ConfigurationError


class ObjectiveSense(str, Enum):
    """Optimization sense of the single model objective."""

    MAXIMIZE = "maximize"
    MINIMIZE = "minimize"

    @classmethod
    def from_alias(cls, value: str | ObjectiveSense | None) -> ObjectiveSense:
        """Normalize sense aliases; ``None`` means maximize."""
        if isinstance(value, ObjectiveSense):
            return value
        if value is None:
            return cls.MAXIMIZE
        normalized = str(value).strip().lower()
        aliases: dict[str, ObjectiveSense] = {
            "max": cls.MAXIMIZE,
            "maximize": cls.MAXIMIZE,
            "maximise": cls.MAXIMIZE,
            "min": cls.MINIMIZE,
            "minimize": cls.MINIMIZE,
            "minimise": cls.MINIMIZE,
        }
        if normalized not in aliases:
            raise ConfigurationError(f"Unsupported objective sense: {value}")
        return aliases[normalized]


class ValidationLevel(str, Enum):
    """Depth of ``validate_model`` checks."""

    BASIC = "basic"
    FULL = "full"

    @classmethod
    def from_alias(cls, value: str | ValidationLevel | None) -> ValidationLevel:
        """Normalize level aliases into a canonical ``ValidationLevel``."""
        if isinstance(value, ValidationLevel):
            return value
        normalized = str(value or cls.BASIC.value).strip().lower()
        aliases: dict[str, ValidationLevel] = {
            "basic": cls.BASIC,
            "full": cls.FULL,
            "extended": cls.FULL,
        }
        if normalized not in aliases:
            raise ConfigurationError(f"Unsupported validation level: {value}")
        return aliases[normalized]


class ReportCategory(str, Enum):
    """Categories of a validation report."""

    STRUCTURAL = "structural"
    RESIDUALS = "residuals"
    MCP = "mcp"
    SCALING = "scaling"

    @classmethod
    def parse(cls, value: str | ReportCategory) -> ReportCategory:
        if isinstance(value, ReportCategory):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ConfigurationError(f"Unknown report category: {value}") from exc


class ConstraintKindName(str, Enum):
    """Kind of a compiled constraint handle."""

    EQUALITY = "equality"
    COMPLEMENTARITY = "complementarity"
