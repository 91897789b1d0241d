"""Block base classes for the runtime.

A block is a model component (production, trade, institutions, closure)
that registers its variables and equation instances into a ``Context``.
The run orchestrator calls ``build`` once per block, in the order of the
run spec, before any equation is compiled.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

from cgeruntime.errors import ConfigurationError

if TYPE_CHECKING:
    from cgeruntime.core.context import Context


class Block(BaseModel, ABC):
    """Base class for model blocks.

    Attributes:
        name: Block identifier, used as the ``block`` of its equation records
        description: Human-readable description

    Example:
        >>> class Numeraire(Block):
        ...     name: str = "numeraire"
        ...
        ...     def build(self, context, spec):
        ...         context.add_variable("PIXCON", lower=0.0, fixed=1.0)
    """

    name: str = Field(..., min_length=1, description="Block identifier")
    description: str = Field(default="", description="Block description")

    model_config = {"frozen": False, "arbitrary_types_allowed": True}

    @abstractmethod
    def build(self, context: Context, spec: Any) -> None:
        """Register this block's variables and equations into ``context``.

        Args:
            context: Context being assembled
            spec: The run spec (gives access to shared params and metadata)
        """
        ...

    def get_info(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "type": type(self).__name__,
        }

    def __repr__(self) -> str:
        return f"Block {self.name} ({type(self).__name__})"


class BlockRegistry:
    """Registry of block classes, so run specs can name blocks by class name.

    Example:
        >>> registry = BlockRegistry()
        >>> registry.register(DeclarativeBlock)
        >>> block = registry.create("DeclarativeBlock", name="goods")
    """

    def __init__(self) -> None:
        self._blocks: dict[str, type[Block]] = {}

    def register(self, block_class: type[Block]) -> None:
        """Register a block class.

        Raises:
            ValueError: If a block with the same name is already registered
        """
        name = block_class.__name__
        if name in self._blocks:
            msg = f"Block '{name}' is already registered"
            raise ValueError(msg)
        self._blocks[name] = block_class

    def get(self, name: str) -> type[Block]:
        """Get a block class by name.

        Raises:
            KeyError: If the block is not registered
        """
        if name not in self._blocks:
            msg = f"Block '{name}' not found in registry"
            raise KeyError(msg)
        return self._blocks[name]

    def list_blocks(self) -> list[str]:
        return list(self._blocks.keys())

    def create(self, name: str, /, **kwargs: Any) -> Block:
        return self.get(name)(**kwargs)

    def __contains__(self, name: str) -> bool:
        return name in self._blocks


# Global registry instance
_global_registry: BlockRegistry | None = None


def get_registry() -> BlockRegistry:
    """Get the global block registry."""
    global _global_registry
    if _global_registry is None:
        _global_registry = BlockRegistry()
    return _global_registry


def register_block(block_class: type[Block]) -> type[Block]:
    """Decorator to register a block class in the global registry."""
    get_registry().register(block_class)
    return block_class


def resolve_block(block: Any) -> Any:
    """Turn a registered class name into a block instance named after it."""
    if isinstance(block, str):
        registry = get_registry()
        if block not in registry:
            raise ConfigurationError(f"Block '{block}' not found in registry")
        return registry.create(block, name=block)
    return block


def build_block(block: Any, context: Context, spec: Any) -> None:
    """Let ``block`` register its variables and equations into ``context``.

    Raises:
        ConfigurationError: If ``block`` has no ``build`` method
    """
    block = resolve_block(block)
    builder = getattr(block, "build", None)
    if not callable(builder):
        msg = f"Block {block!r} does not define build(context, spec)"
        raise ConfigurationError(msg)
    builder(context, spec)
