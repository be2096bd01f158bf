"""Resource models for the two managed collections.

Usage:
    user = User.from_wire({"id": 1, "name": "Leanne", "username": "Bret", "email": "a@b.c"})
    post = Post.from_payload(101, {"title": "Hello", "userId": 1})
    renamed = user.merged({"name": "Ervin"})
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any, Self, TypeAlias

from pydantic import BaseModel, ConfigDict, Field


class Collection(Enum):
    """Managed entity kind. Value doubles as the REST path segment."""

    USERS = "users"
    POSTS = "posts"

    @property
    def label(self) -> str:
        """Singular human label ("user", "post") for messages."""
        return self.value[:-1]

    @property
    def path(self) -> str:
        return f"/{self.value}"

    @property
    def entity_type(self) -> type[Entity]:
        return _ENTITY_TYPES[self]


class Entity(BaseModel):
    """Immutable record identified by ``id`` within one Collection.

    Field names follow Python conventions; the backend's JSON names are
    accepted as aliases on input and emitted by ``to_wire``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: int

    @classmethod
    def from_wire(cls, data: Mapping[str, Any]) -> Self:
        return cls.model_validate(dict(data))

    @classmethod
    def from_payload(cls, entity_id: int, payload: Mapping[str, Any]) -> Self:
        """Build an entity from a caller payload plus an explicit id.

        Any ``id`` in the payload is ignored.
        """
        data = {cls._field_name(k): v for k, v in payload.items()}
        data["id"] = entity_id
        return cls.model_validate(data)

    @classmethod
    def validate_payload(cls, payload: Mapping[str, Any]) -> None:
        """Raise ``pydantic.ValidationError`` if payload can't form an entity."""
        cls.from_payload(0, payload)

    @classmethod
    def _field_name(cls, key: str) -> str:
        for name, info in cls.model_fields.items():
            if key == name or key == info.alias:
                return name
        return key

    def merged(self, changes: Mapping[str, Any]) -> Self:
        """Shallow merge of ``changes`` over this entity. ``id`` is never merged."""
        data = self.model_dump()
        for key, value in changes.items():
            name = self._field_name(key)
            if name in data and name != "id":
                data[name] = value
        return type(self).model_validate(data)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def payload(self) -> dict[str, Any]:
        """Wire representation without the id (body of create/update calls)."""
        data = self.to_wire()
        data.pop("id", None)
        return data


class User(Entity):
    name: str
    username: str = ""
    email: str = ""


class Post(Entity):
    title: str
    user_id: int = Field(alias="userId")
    body: str | None = None


Snapshot: TypeAlias = tuple[Entity, ...]
"""Ordered, immutable "last known good" sequence for one Collection."""


_ENTITY_TYPES: dict[Collection, type[Entity]] = {
    Collection.USERS: User,
    Collection.POSTS: Post,
}
