"""Generic CRUD operations shared by every resource router."""

from __future__ import annotations

import uuid
from collections.abc import Mapping, Sequence
from typing import Any, Generic

import pydantic
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from tourdesk.core import errors
from tourdesk.schemas.common import ResourceList
from tourdesk.services.query_features import build_query_spec
from tourdesk.services.repository import ModelT, Repository


def _validation_message(exc: pydantic.ValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "Invalid input data. " + "; ".join(messages)


class ResourceHandlerFactory(Generic[ModelT]):
    """Build get/list/create/update/delete operations over a repository.

    ``schema`` describes every writable field of the resource. Creates are
    validated against it and updates are merged over the stored state and
    validated again before anything is written.
    """

    def __init__(
        self,
        repository: Repository[ModelT],
        *,
        schema: type[BaseModel],
    ) -> None:
        self.repository = repository
        self.schema = schema

    def _validate(self, data: Mapping[str, Any]) -> BaseModel:
        try:
            return self.schema.model_validate(dict(data))
        except pydantic.ValidationError as exc:
            raise errors.ValidationError(_validation_message(exc)) from exc

    def _current_state(self, entity: ModelT) -> dict[str, Any]:
        return {
            name: getattr(entity, name)
            for name in self.schema.model_fields
            if hasattr(entity, name)
        }

    async def get_one(
        self,
        session: AsyncSession,
        item_id: uuid.UUID,
        *,
        expand: Sequence[str] = (),
    ) -> ModelT:
        entity = await self.repository.find_by_id(session, item_id, expand=expand)
        if entity is None:
            raise errors.NotFoundError()
        return entity

    async def get_all(
        self,
        session: AsyncSession,
        params: Mapping[str, str],
        *,
        scope: Mapping[str, Any] | None = None,
    ) -> ResourceList:
        spec = build_query_spec(params)
        rows = await self.repository.find_many(session, spec, scope=scope)
        total = await self.repository.count(session, spec, scope=scope)
        return ResourceList(results=len(rows), total=total, data=rows)

    async def create_one(
        self, session: AsyncSession, payload: BaseModel | Mapping[str, Any]
    ) -> ModelT:
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(exclude_unset=True)
        validated = self._validate(payload)
        return await self.repository.create(session, validated.model_dump())

    async def update_one(
        self,
        session: AsyncSession,
        item_id: uuid.UUID,
        payload: BaseModel | Mapping[str, Any],
    ) -> ModelT:
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(exclude_unset=True)
        entity = await self.repository.find_by_id(session, item_id)
        if entity is None:
            raise errors.NotFoundError()
        changes = {name: value for name, value in payload.items() if name in self.schema.model_fields}
        validated = self._validate({**self._current_state(entity), **changes}).model_dump()
        updated = await self.repository.update_by_id(
            session, item_id, {name: validated[name] for name in changes}
        )
        if updated is None:
            raise errors.NotFoundError()
        return updated

    async def delete_one(self, session: AsyncSession, item_id: uuid.UUID) -> None:
        deleted = await self.repository.delete_by_id(session, item_id)
        if deleted is None:
            raise errors.NotFoundError()


__all__ = ["ResourceHandlerFactory"]
