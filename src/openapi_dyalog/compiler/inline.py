"""
Promotion of inline request body schemas into named synthetic models.

A ``SyntheticModelTable`` lives for exactly one generation run. Operations
register inline schemas into it while their bodies are resolved, and model
generation drains it once at the end of the run.
"""

import threading
from collections.abc import Iterable, Iterator

from openapi_dyalog.parser.base import Schema

from .naming import sanitize, unique_name

REQUEST_ROLE = "Request"
REQUEST_ITEM_ROLE = "RequestItem"


class SyntheticModelTable:
    """Run-scoped registry of synthetic model name -> schema, in registration order.

    ``reserved`` names (the component models) are never handed out.
    """

    def __init__(self, reserved: Iterable[str] = ()):
        self._schemas: dict[str, Schema] = {}
        self._reserved = frozenset(reserved)
        self._lock = threading.Lock()
        self._drained = False

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._schemas))

    def get(self, name: str) -> Schema | None:
        return self._schemas.get(name)

    def register(self, candidate: str, schema: Schema) -> str:
        """Register ``schema`` under ``candidate`` or the first free suffixed variant of it.

        Returns the name actually used.
        """
        with self._lock:
            if self._drained:
                raise RuntimeError("Synthetic model table has already been drained")
            name = unique_name(candidate, self._reserved.union(self._schemas))
            self._schemas[name] = schema
            return name

    def drain(self) -> list[tuple[str, Schema]]:
        """Hand every entry over for model generation. Allowed once per run."""
        with self._lock:
            if self._drained:
                raise RuntimeError("Synthetic model table has already been drained")
            self._drained = True
            entries = list(self._schemas.items())
        return entries


def promote(operation_id: str, role: str, schema: Schema, table: SyntheticModelTable) -> str:
    """Register an inline schema as a synthetic model and return its name.

    The candidate name is the operation's normalized identifier followed by
    ``role``; on collision a numeric suffix starting at 2 is appended.
    """
    return table.register(sanitize(f"{operation_id}{role}"), schema)
