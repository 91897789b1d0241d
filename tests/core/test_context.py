"""Tests for the context registries and record updates."""

import pytest
from pyomo.environ import ConcreteModel

from cgeruntime.core import (
    Context,
    EquationPayload,
    EquationRecord,
    with_constraint,
    with_residual,
)
from cgeruntime.core.expressions import const, eq, var
from cgeruntime.errors import ConfigurationError, MissingVariableError


class TestRegistration:
    """Tests for variable and equation registration."""

    def test_register_variable_overwrites(self):
        ctx = Context()
        ctx.register_variable("x", "first")
        ctx.register_variable("x", "second")
        assert ctx.variables == {"x": "second"}

    def test_register_equation_keeps_order_and_duplicates(self):
        ctx = Context()
        ctx.register_equation("market", "goods", {"indices": ("a",)})
        ctx.register_equation("market", "goods", {"indices": ("a",)})
        ctx.register_equation("profit", "firms", None)

        records = ctx.list_equations()
        assert [r.tag for r in records] == ["market", "market", "profit"]
        assert isinstance(records, tuple)

    def test_mapping_payload_is_structured(self):
        ctx = Context()
        record = ctx.register_equation(
            "market",
            "goods",
            {"expr": eq(var("x"), const(1.0)), "indices": ["a", "b"], "note": "extra"},
        )
        payload = record.structured
        assert isinstance(payload, EquationPayload)
        assert payload.indices == ("a", "b")
        assert payload.note == "extra"

    def test_opaque_payload_is_kept(self):
        ctx = Context()
        record = ctx.register_equation("raw", "goods", "not structured")
        assert record.structured is None
        assert record.payload == "not structured"
        assert record.indices == ()

    def test_add_variable_creates_pyomo_var(self, ctx):
        handle = ctx.add_variable("x_a", lower=0.0, upper=10.0, start=2.0)
        assert ctx.variables["x_a"] is handle
        assert ctx.model.component("x_a") is handle
        assert handle.lb == 0.0
        assert handle.ub == 10.0
        assert handle.value == 2.0
        assert not handle.fixed

    def test_add_variable_fixed(self, ctx):
        handle = ctx.add_variable("x", fixed=4.0)
        assert handle.fixed
        assert handle.value == 4.0

    def test_add_variable_without_model_raises(self):
        with pytest.raises(ConfigurationError):
            Context().add_variable("x")

    def test_get_variable_missing(self):
        with pytest.raises(MissingVariableError, match="Missing variable: y"):
            Context().get_variable("y")


class TestRecordUpdates:
    """Tests for with_constraint and with_residual."""

    def test_with_constraint_returns_new_record(self):
        payload = EquationPayload(indices=("a",))
        record = EquationRecord(tag="t", block="b", payload=payload)
        updated = with_constraint(record, "handle")

        assert updated.structured.constraint == "handle"
        assert updated.structured.indices == ("a",)
        assert record.structured.constraint is None

    def test_with_residual(self):
        record = EquationRecord(tag="t", block="b", payload=EquationPayload())
        assert with_residual(record, 3).structured.residual == 3.0

    def test_with_residual_none_clears_value(self):
        payload = EquationPayload(residual=3.0)
        record = EquationRecord(tag="t", block="b", payload=payload)
        assert with_residual(record, None).structured.residual is None

    def test_unstructured_payload_rejected(self):
        record = EquationRecord(tag="t", block="b", payload=42)
        with pytest.raises(ConfigurationError):
            with_constraint(record, "handle")


class TestSolve:
    """Tests for Context.solve."""

    def test_solve_without_model_raises(self, solver):
        with pytest.raises(ConfigurationError, match="model is not set"):
            Context().solve(optimizer=solver)

    def test_solve_without_optimizer_raises(self, ctx):
        with pytest.raises(ConfigurationError, match="No optimizer"):
            ctx.solve()

    def test_solve_installs_optimizer(self, ctx, solver):
        model = ctx.solve(optimizer=solver)
        assert model is ctx.model
        assert ctx.optimizer is solver
        assert len(solver.calls) == 1
        assert solver.calls[0][0] is ctx.model
        assert solver.calls[0][1] == {}
        assert ctx.results == {"status": "ok"}

    def test_unsupported_optimizer(self, ctx):
        with pytest.raises(ConfigurationError, match="Unsupported optimizer"):
            ctx.set_optimizer(object())

    def test_repr(self):
        ctx = Context(model=ConcreteModel())
        assert repr(ctx) == "Context: 0 vars, 0 eqs, model=set"
