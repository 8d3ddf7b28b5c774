"""Backend adapters implementing the Data Port.

Keep this package import lightweight: adapters pull in SQLAlchemy or redis,
so they are loaded lazily on first attribute access.
"""

from __future__ import annotations

import importlib
from typing import Any

__all__ = [
    "AdapterFactory",
    "AsyncKeyValueAdapter",
    "KeyValueAdapter",
    "RelationalAdapter",
]

_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "AdapterFactory": (".adapter_factory", "AdapterFactory"),
    "AsyncKeyValueAdapter": (".key_value_adapter", "AsyncKeyValueAdapter"),
    "KeyValueAdapter": (".key_value_adapter", "KeyValueAdapter"),
    "RelationalAdapter": (".relational_adapter", "RelationalAdapter"),
}


def __getattr__(name: str) -> Any:
    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module_name, attr_name = _LAZY_IMPORTS[name]
    module = importlib.import_module(module_name, __name__)
    value = getattr(module, attr_name)
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    return sorted(set(list(globals().keys()) + list(_LAZY_IMPORTS.keys())))
