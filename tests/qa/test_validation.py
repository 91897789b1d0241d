"""Tests for validate_model and the report containers."""

import json

import pytest
from pyomo.environ import ConcreteModel

from cgeruntime.config import KernelSettings
from cgeruntime.core import Context
from cgeruntime.core.expressions import ERaw, eq, var
from cgeruntime.enums import ValidationLevel
from cgeruntime.errors import ConfigurationError
from cgeruntime.qa import ValidationReport, format_report_summary, validate_model


def _with_residuals(*residuals):
    ctx = Context(model=ConcreteModel())
    ctx.add_variable("x", start=1.0)
    for position, residual in enumerate(residuals):
        ctx.register_equation(
            "market", "goods", {"indices": (f"c{position}",), "residual": residual}
        )
    return ctx


class TestStructuralChecks:
    """Tests for the structural category."""

    def test_empty_context_warns(self):
        report = validate_model(Context())
        structural = report.categories["structural"]
        assert "No equations registered in context" in structural.warnings
        assert "No variables registered in context" in structural.warnings
        assert report.ok
        assert report.warnings == 3

    def test_data_is_noted(self):
        report = validate_model(Context(), data={"sam": None})
        assert "data provided but not used by validate_model yet" in report.categories[
            "structural"
        ].notes


class TestResidualChecks:
    """Tests for the residuals category."""

    def test_missing_residuals_warn(self):
        report = validate_model(Context())
        assert report.categories["residuals"].warnings == [
            "No residuals recorded; call compile_equations and solve before validation"
        ]

    def test_residuals_above_tolerance(self):
        report = validate_model(_with_residuals(0.0, 0.5))
        residuals = report.categories["residuals"]
        assert residuals.notes == ["max_abs=0.5, above_tol=1"]
        assert residuals.warnings == ["Residuals above tolerance: 1"]
        assert report.ok

    def test_within_tolerance(self):
        report = validate_model(_with_residuals(1e-9), tol=1e-6)
        assert report.categories["residuals"].warnings == []

    def test_full_level_lists_worst_residuals(self):
        ctx = _with_residuals(0.1, 0.7, 0.2, 0.6, 0.3, 0.5, 0.4)
        report = validate_model(ctx, level="full")
        notes = report.categories["residuals"].notes
        worst = [n for n in notes if n.startswith("worst")]
        assert len(worst) == 5
        assert worst[0] == "worst 1: goods.market ('c1',) residual=0.7"

    def test_top_residuals_setting(self):
        ctx = _with_residuals(0.1, 0.7, 0.2)
        settings = KernelSettings(top_residuals=2)
        report = validate_model(ctx, level="full", settings=settings)
        notes = report.categories["residuals"].notes
        worst = [n for n in notes if n.startswith("worst")]
        assert len(worst) == 2


class TestMcpChecks:
    """Tests for the complementarity category."""

    def test_no_mcp_equations(self):
        ctx = Context()
        ctx.register_equation("market", "goods", {"expr": eq(var("x"), 1.0)})
        report = validate_model(ctx)
        assert report.categories["mcp"].notes == ["No MCP equations detected"]
        assert report.categories["mcp"].warnings == []

    def test_missing_mcp_var_is_warned(self):
        ctx = Context()
        ctx.register_equation(
            "market",
            "goods",
            {"expr": eq(var("x"), 1.0), "indices": ("a",), "mcp_var": "p_a"},
        )
        ctx.register_equation(
            "profit", "firms", {"expr": eq(var("y"), 1.0), "indices": ("a",)}
        )
        ctx.register_equation("numeraire", "closure", {"expr": eq(var("w"), 1.0)})
        ctx.register_equation("doc", "firms", {"expr": ERaw("y =e= 1")})

        report = validate_model(ctx)
        assert report.categories["mcp"].warnings == [
            "Missing mcp_var for firms.profit ('a',)"
        ]

    def test_exempt_tags_do_not_count_as_mcp(self):
        ctx = Context()
        ctx.register_equation(
            "numeraire", "closure", {"expr": eq(var("w"), 1.0), "mcp_var": "w"}
        )
        ctx.register_equation("market", "goods", {"expr": eq(var("x"), 1.0)})

        report = validate_model(ctx)
        assert report.categories["mcp"].notes == ["No MCP equations detected"]
        assert report.categories["mcp"].warnings == []


class TestScalingChecks:
    """Tests for the scaling category."""

    @pytest.fixture
    def badly_scaled(self):
        ctx = Context(model=ConcreteModel())
        ctx.add_variable("big", fixed=2e7)
        ctx.add_variable("tiny", fixed=5e-9)
        return ctx

    def test_full_level_flags_magnitudes(self, badly_scaled):
        report = validate_model(badly_scaled, level=ValidationLevel.FULL)
        warnings = report.categories["scaling"].warnings
        assert "Large variable magnitude detected: max=20000000.0" in warnings
        assert "Very small variable magnitude detected: min=5e-09" in warnings

    def test_extended_alias_runs_scaling(self, badly_scaled):
        report = validate_model(badly_scaled, level="extended")
        assert len(report.categories["scaling"].warnings) == 2

    def test_basic_level_skips_scaling(self, badly_scaled):
        report = validate_model(badly_scaled)
        assert report.categories["scaling"].warnings == []

    def test_unknown_level_raises(self):
        with pytest.raises(ConfigurationError, match="Unsupported validation level"):
            validate_model(Context(), level="exhaustive")


class TestReport:
    """Tests for the report containers."""

    def test_unknown_category_raises(self):
        with pytest.raises(ConfigurationError, match="Unknown report category"):
            ValidationReport().category("bogus")

    def test_errors_fail_the_report(self):
        report = ValidationReport()
        report.category("structural").errors.append("broken")
        report.finalize()
        assert not report.ok
        assert report.errors == 1

    def test_summary_line(self):
        report = validate_model(Context())
        line = format_report_summary(report)
        assert line.startswith("Validation PASS | errors=0 warnings=3 |")
        assert "structural=2w/0n" in line

    def test_save_json(self, tmp_path):
        report = validate_model(Context())
        path = tmp_path / "reports" / "validation.json"
        report.save_json(path)
        payload = json.loads(path.read_text())
        assert payload["ok"] is True
        assert set(payload["categories"]) == {
            "structural",
            "residuals",
            "mcp",
            "scaling",
        }
