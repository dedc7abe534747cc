"""``url`` type plugin: URLs normalized through pydantic's ``AnyUrl``."""

from __future__ import annotations

from typing import Any

from pydantic import AnyUrl
from pydantic import TypeAdapter
from pydantic import ValidationError

from docmodels.schema.fields import FieldType

_URL_ADAPTER = TypeAdapter(AnyUrl)


class Url(FieldType):
    name = "url"

    def validate(self, value: Any) -> str:
        try:
            return str(_URL_ADAPTER.validate_python(value))
        except ValidationError as exc:
            raise ValueError(f"Invalid URL: {value!r}") from exc


def load(connection: Any, api: Any) -> None:
    api.register_type("Url", Url())
