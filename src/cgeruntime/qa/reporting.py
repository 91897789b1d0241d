"""Report containers for model validation."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cgeruntime.enums import ReportCategory


@dataclass
class ValidationCategory:
    """Messages recorded by one validation check."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, list[str]]:
        return {
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "notes": list(self.notes),
        }


@dataclass
class ValidationReport:
    """Categorized validation report.

    ``ok`` is True iff no category recorded an error; warnings never fail a
    report. Totals are computed by ``finalize``.
    """

    categories: dict[str, ValidationCategory] = field(default_factory=dict)
    ok: bool = True
    errors: int = 0
    warnings: int = 0

    def category(self, name: str | ReportCategory) -> ValidationCategory:
        """Get or create a category entry."""
        key = ReportCategory.parse(name).value
        if key not in self.categories:
            self.categories[key] = ValidationCategory()
        return self.categories[key]

    def finalize(self) -> ValidationReport:
        self.errors = sum(len(cat.errors) for cat in self.categories.values())
        self.warnings = sum(len(cat.warnings) for cat in self.categories.values())
        self.ok = self.errors == 0
        return self

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "errors": self.errors,
            "warnings": self.warnings,
            "categories": {
                name: cat.to_dict() for name, cat in self.categories.items()
            },
        }

    def save_json(self, path: Path | str) -> None:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(self.to_dict(), indent=2))


def format_report_summary(report: ValidationReport) -> str:
    """Compact human-readable summary line."""
    status = "PASS" if report.ok else "FAIL"
    counts = " ".join(
        f"{name}={len(cat.warnings)}w/{len(cat.notes)}n"
        for name, cat in report.categories.items()
    )
    return (
        f"Validation {status} | errors={report.errors} "
        f"warnings={report.warnings} | {counts}"
    )
