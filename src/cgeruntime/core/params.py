"""Parameter source adapter.

The compiler never inspects a parameter source. It only calls
``get_param(source, name, *indices)``, which accepts:

- objects exposing ``get_param(name, *indices)`` (calibration containers);
- mappings of parameter name to a scalar, a mapping keyed by index tuples,
  a mapping keyed by a single element, or nested mappings one level per
  index.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable

from cgeruntime.errors import ConfigurationError, MissingParameterError


@runtime_checkable
class ParameterSource(Protocol):
    def get_param(self, name: str, *indices: str) -> Any: ...


def _missing(name: str, indices: tuple[str, ...]) -> MissingParameterError:
    label = f"{name}[{', '.join(indices)}]" if indices else name
    return MissingParameterError(f"Missing parameter: {label}")


def _lookup_indexed(
    table: Mapping[Any, Any], name: str, indices: tuple[str, ...]
) -> Any:
    if indices in table:
        return table[indices]
    if len(indices) == 1 and indices[0] in table:
        return table[indices[0]]
    node: Any = table
    for key in indices:
        if not isinstance(node, Mapping) or key not in node:
            raise _missing(name, indices)
        node = node[key]
    return node


def get_param(source: Any, name: str, *indices: str) -> Any:
    """Read parameter ``name`` at ``indices`` from ``source``.

    Raises:
        MissingParameterError: If no source is given or the entry is absent
        ConfigurationError: If the source type is not supported
    """
    if source is None:
        msg = f"No params provided for parameter {name}"
        raise MissingParameterError(msg)
    if isinstance(source, ParameterSource):
        return source.get_param(name, *indices)
    if isinstance(source, Mapping):
        if name not in source:
            raise _missing(name, indices)
        entry = source[name]
        if not indices:
            return entry
        if not isinstance(entry, Mapping):
            raise _missing(name, indices)
        return _lookup_indexed(entry, name, tuple(indices))
    msg = f"Unsupported parameter source type: {type(source).__name__}"
    raise ConfigurationError(msg)
