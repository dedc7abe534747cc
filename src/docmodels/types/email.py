"""``email`` type plugin: addresses validated through pydantic's ``EmailStr``."""

from __future__ import annotations

from typing import Any

from pydantic import EmailStr
from pydantic import TypeAdapter
from pydantic import ValidationError

from docmodels.schema.fields import FieldType

_EMAIL_ADAPTER = TypeAdapter(EmailStr)


class Email(FieldType):
    name = "email"

    def validate(self, value: Any) -> str:
        candidate = value.strip() if isinstance(value, str) else value
        try:
            address = _EMAIL_ADAPTER.validate_python(candidate)
        except ValidationError as exc:
            raise ValueError(f"Invalid email address: {value!r}") from exc
        return address.lower()


def load(connection: Any, api: Any) -> None:
    api.register_type("Email", Email())
