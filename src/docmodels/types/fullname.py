"""``fullname`` type plugin.

A ``FullName`` field stores ``{"first": ..., "last": ...}`` and
contributes the virtual ``<field>.full``, which joins the two parts on
read and splits on the first space on write.
"""

from __future__ import annotations

from typing import Any

from docmodels.schema.fields import VirtualFieldType


class FullName(VirtualFieldType):
    name = "fullname"
    type_id = "fullname"

    def validate(self, value: Any) -> dict[str, str]:
        if not isinstance(value, dict):
            raise ValueError(f"FullName expects a mapping, got {value!r}")
        return {"first": value.get("first", ""), "last": value.get("last", "")}


def build_virtuals(key: str) -> dict[str, dict[str, Any]]:
    def get_full(doc: Any) -> str:
        parts = doc.get(key) or {}
        return " ".join(p for p in (parts.get("first"), parts.get("last")) if p)

    def set_full(doc: Any, value: str) -> None:
        first, _, last = value.partition(" ")
        doc.set(key, {"first": first, "last": last})

    return {".full": {"get": get_full, "set": set_full}}


def load(connection: Any, api: Any) -> None:
    api.register_type("FullName", FullName())
    api.install_virtuals(FullName, build_virtuals)
