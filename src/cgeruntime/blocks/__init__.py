"""Blocks module for cgeruntime.

Blocks register variables and equation instances into a ``Context``.
"""

from cgeruntime.blocks.base import (
    Block,
    BlockRegistry,
    build_block,
    get_registry,
    register_block,
    resolve_block,
)
from cgeruntime.blocks.declarative import DeclarativeBlock, EquationSpec, VariableSpec

__all__ = [
    "Block",
    "BlockRegistry",
    "build_block",
    "get_registry",
    "register_block",
    "resolve_block",
    "DeclarativeBlock",
    "EquationSpec",
    "VariableSpec",
]
