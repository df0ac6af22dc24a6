from __future__ import annotations

from typing import Any, Dict


class FormState:
    """Mutable field values of one submission form.

    Cleared by the orchestrator only after a confirmed submission, so a failed
    attempt keeps the user's input.
    """

    def __init__(self, **fields: Any) -> None:
        self._fields: Dict[str, Any] = dict(fields)

    def set(self, name: str, value: Any) -> None:
        self._fields[name] = value

    def get(self, name: str) -> Any:
        return self._fields.get(name, "")

    def values(self) -> Dict[str, Any]:
        return dict(self._fields)

    def clear(self) -> None:
        self._fields = {k: "" for k in self._fields}

    @property
    def is_empty(self) -> bool:
        return all(v in ("", None) for v in self._fields.values())
