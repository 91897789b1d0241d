"""Index environment used while compiling one equation instance."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from cgeruntime.errors import UnboundIndexError

logger = logging.getLogger(__name__)

_MISSING = object()


class IndexEnvironment:
    """Mapping from free index names to the set elements they are bound to.

    An environment is created per equation instance from its ``index_names``
    and ``indices``. Summation and product operators bind their loop index
    with ``scoped`` so that no binding outlives the operator.

    Example:
        >>> env = IndexEnvironment.from_indices(["i"], ("agr",))
        >>> env.resolve("i")
        'agr'
    """

    def __init__(self, bindings: dict[str, str] | None = None) -> None:
        self._bindings: dict[str, str] = dict(bindings or {})

    @classmethod
    def from_indices(
        cls,
        index_names: Sequence[Any] | None,
        indices: Sequence[Any] | None,
    ) -> IndexEnvironment:
        """Build an environment pairing index names with index values.

        A missing name list gives an empty environment. A length mismatch
        also gives an empty environment; the instance can then only use
        literal indices.
        """
        env = cls()
        if index_names is None:
            return env
        values = list(indices) if indices is not None else []
        names = list(index_names)
        if len(names) != len(values):
            logger.warning(
                f"Index names {names} do not match indices {values}; "
                "using an empty environment"
            )
            return env
        for name, val in zip(names, values):
            env.bind(str(name), str(val))
        return env

    def bind(self, name: str, value: str) -> None:
        """Install or overwrite a binding."""
        self._bindings[name] = value

    def resolve(self, name: str) -> str:
        """Return the value bound to ``name``.

        Raises:
            UnboundIndexError: If ``name`` is not bound
        """
        if name not in self._bindings:
            msg = f"Unbound index: {name}"
            raise UnboundIndexError(msg)
        return self._bindings[name]

    def unbind(self, name: str) -> None:
        """Remove a binding if present."""
        self._bindings.pop(name, None)

    @contextmanager
    def scoped(self, name: str, value: str) -> Iterator[IndexEnvironment]:
        """Bind ``name`` for the duration of a ``with`` block.

        On exit, normal or exceptional, a shadowed outer binding is restored,
        otherwise the name is unbound.
        """
        previous = self._bindings.get(name, _MISSING)
        self.bind(name, value)
        try:
            yield self
        finally:
            if previous is _MISSING:
                self.unbind(name)
            else:
                self._bindings[name] = previous

    def as_dict(self) -> dict[str, str]:
        return dict(self._bindings)

    def __contains__(self, name: object) -> bool:
        return name in self._bindings

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"IndexEnvironment({self._bindings})"
