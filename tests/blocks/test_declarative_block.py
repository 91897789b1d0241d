"""Tests for the block base classes and DeclarativeBlock."""

import pytest
from pydantic import ValidationError

from cgeruntime.blocks import (
    Block,
    BlockRegistry,
    DeclarativeBlock,
    EquationSpec,
    VariableSpec,
    build_block,
    get_registry,
    resolve_block,
)
from cgeruntime.core.expressions import eq, scalar_var, var
from cgeruntime.errors import ConfigurationError
from cgeruntime.runner import RunSpec


class TestBlockRegistry:
    """Tests for BlockRegistry."""

    def test_register_and_create(self):
        registry = BlockRegistry()
        registry.register(DeclarativeBlock)
        assert "DeclarativeBlock" in registry
        assert registry.list_blocks() == ["DeclarativeBlock"]
        block = registry.create("DeclarativeBlock", name="goods")
        assert isinstance(block, DeclarativeBlock)

    def test_duplicate_registration(self):
        registry = BlockRegistry()
        registry.register(DeclarativeBlock)
        with pytest.raises(ValueError, match="already registered"):
            registry.register(DeclarativeBlock)

    def test_unknown_block(self):
        with pytest.raises(KeyError):
            BlockRegistry().get("Missing")

    def test_declarative_block_is_registered_globally(self):
        assert "DeclarativeBlock" in get_registry()
        block = resolve_block("DeclarativeBlock")
        assert block.name == "DeclarativeBlock"

    def test_resolve_unknown_name(self):
        with pytest.raises(ConfigurationError):
            resolve_block("NoSuchBlock")


class TestBuildBlock:
    """Tests for build_block."""

    def test_object_without_build(self, ctx):
        with pytest.raises(ConfigurationError, match="does not define build"):
            build_block(object(), ctx, RunSpec())

    def test_block_is_abstract(self):
        with pytest.raises(TypeError):
            Block(name="abstract")

    def test_info_and_repr(self):
        block = DeclarativeBlock(name="goods", description="Goods market")
        assert block.get_info() == {
            "name": "goods",
            "description": "Goods market",
            "type": "DeclarativeBlock",
        }
        assert repr(block) == "Block goods (DeclarativeBlock)"


class TestDeclarativeBlock:
    """Tests for DeclarativeBlock.build."""

    def test_variables_are_created_per_instance(self, ctx):
        block = DeclarativeBlock(
            name="goods",
            variables=[
                VariableSpec(
                    name="x", instances=[["agr"], ["mfg"]], lower=0.0, start=1.0
                ),
                VariableSpec(name="w", fixed=1.0),
            ],
        )
        build_block(block, ctx, RunSpec())

        assert set(ctx.variables) == {"x_agr", "x_mfg", "w"}
        assert ctx.variables["x_agr"].lb == 0.0
        assert ctx.variables["w"].fixed

    def test_equations_are_registered_per_instance(self, ctx):
        shared = {"p": 1.0}
        block = DeclarativeBlock(
            name="goods",
            equations=[
                EquationSpec(
                    tag="market",
                    expr=eq(var("x"), 1.0),
                    index_names=("i",),
                    instances=[("agr",), ("mfg",)],
                    mcp_var=var("p"),
                ),
                EquationSpec(
                    tag="objective",
                    objective_expr=scalar_var("u"),
                    objective_sense="min",
                    params={"p": 2.0},
                ),
            ],
        )
        build_block(block, ctx, RunSpec(params=shared))

        market_a, market_m, objective = ctx.list_equations()
        assert (market_a.block, market_a.tag) == ("goods", "market")
        assert market_a.indices == ("agr",)
        assert market_m.indices == ("mfg",)
        assert market_a.structured.index_names == ("i",)
        assert market_a.structured.mcp_var == var("p")
        assert market_a.structured.params == shared
        assert objective.structured.objective_sense == "min"
        assert objective.structured.params == {"p": 2.0}
        assert objective.structured.expr is None

    def test_invalid_variable_spec(self):
        with pytest.raises(ValidationError):
            VariableSpec(name="")
