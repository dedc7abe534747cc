"""Redis-backed document connection and model binding.

``Connection.model`` turns a name and a ``Schema`` into a ``Document``
subclass.  Documents are stored as JSON strings keyed by
``{collection}:{id}``.  The schema object is shared, not copied, so
fields patched in later by deferred references show up on the model.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Mapping
from typing import Any
from typing import ClassVar

from redis.asyncio import Redis  # type: ignore[import-untyped]

from docmodels.schema.fields import field_type
from docmodels.schema.fields import FieldType
from docmodels.schema.schema import Schema

logger = logging.getLogger(__name__)
query_logger = logging.getLogger("docmodels.query")


def default_collection(name: str) -> str:
    return f"{name.lower()}s"


_CLASS_ATTRS = frozenset({"model_name", "schema", "collection", "connection"})


# ---------------------------------------------------------------------------
# Document
# ---------------------------------------------------------------------------


class Document:
    """Base class of every bound model."""

    model_name: ClassVar[str] = ""
    schema: ClassVar[Schema]
    collection: ClassVar[str] = ""
    connection: ClassVar[Connection]

    def __init__(self, data: Mapping[str, Any] | None = None, **fields: Any) -> None:
        object.__setattr__(self, "_data", {})
        values = {**(data or {}), **fields}
        object.__setattr__(self, "id", values.pop("id", None))
        for path, value in values.items():
            self.set(path, value)

    # ----- field access -----

    def get(self, path: str) -> Any:
        """Read a stored field, a virtual, or a dotted sub-path."""
        virtual = self.schema.virtuals.get(path)
        if virtual is not None:
            return virtual.get(self)
        if path in self._data:
            return self._data[path]
        head, _, rest = path.partition(".")
        if rest and isinstance(self._data.get(head), Mapping):
            current: Any = self._data[head]
            for part in rest.split("."):
                if not isinstance(current, Mapping):
                    return None
                current = current.get(part)
            return current
        return None

    def set(self, path: str, value: Any) -> None:
        """Write a field (validated by its custom type) or a virtual."""
        virtual = self.schema.virtuals.get(path)
        if virtual is not None:
            virtual.set(self, value)
            return
        declared = field_type(self.schema.path(path))
        if isinstance(declared, FieldType) and value is not None:
            value = declared.validate(value)
        self._data[path] = value

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name in _CLASS_ATTRS:
            raise AttributeError(name)
        if name in self.schema or name in self.schema.virtuals or name in self._data:
            return self.get(name)
        raise AttributeError(
            f"{type(self).__name__!r} document has no attribute {name!r}"
        )

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "id" or name.startswith("_"):
            object.__setattr__(self, name, value)
            return
        self.set(name, value)

    def to_dict(self) -> dict[str, Any]:
        data = dict(self._data)
        if self.id is not None:
            data["id"] = self.id
        return data

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r}>"

    # ----- persistence -----

    @classmethod
    def key_for(cls, doc_id: str) -> str:
        return f"{cls.collection}:{doc_id}"

    async def save(self) -> str:
        """Store the document and return its ID."""
        if self.id is None:
            object.__setattr__(self, "id", uuid.uuid4().hex)
        key = self.key_for(self.id)
        self.connection.log_command(self.collection, "save", key)
        await self.connection.client.set(key, json.dumps(self._data, default=str))
        return self.id

    @classmethod
    async def find_by_id(cls, doc_id: str) -> Document | None:
        key = cls.key_for(doc_id)
        cls.connection.log_command(cls.collection, "find_by_id", key)
        raw = await cls.connection.client.get(key)
        if raw is None:
            return None
        return cls(json.loads(raw), id=doc_id)

    @classmethod
    async def delete(cls, doc_id: str) -> bool:
        key = cls.key_for(doc_id)
        cls.connection.log_command(cls.collection, "delete", key)
        return bool(await cls.connection.client.delete(key))


# ---------------------------------------------------------------------------
# Connection
# ---------------------------------------------------------------------------


class Connection:
    """Owns the redis client and the models bound to it."""

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        debug: bool = False,
        client: Redis | None = None,
    ) -> None:
        self.url = url
        self.debug = debug
        self._client = client
        self.models: dict[str, type[Document]] = {}

    @property
    def client(self) -> Redis:
        # redis-py connects on first command, not here
        if self._client is None:
            self._client = Redis.from_url(self.url)
        return self._client

    def model(
        self, name: str, schema: Schema, collection: str | None = None
    ) -> type[Document]:
        """Create the ``Document`` subclass bound to *schema*."""
        attrs: dict[str, Any] = {
            "model_name": name,
            "schema": schema,
            "collection": collection or default_collection(name),
            "connection": self,
            "__module__": __name__,
        }
        attrs.update(schema.methods)
        model = type(name, (Document,), attrs)
        self.models[name] = model
        logger.debug("bound model name=%s collection=%s", name, attrs["collection"])
        return model

    def log_command(self, collection: str, operation: str, key: str) -> None:
        level = logging.INFO if self.debug else logging.DEBUG
        query_logger.log(
            level, "%s.%s key=%s", collection, operation, key
        )

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
