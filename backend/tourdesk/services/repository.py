"""Generic async data access for a single mapped model."""

from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Generic, TypeVar

from sqlalchemy import ColumnElement, func, inspect, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy.sql import Select

from tourdesk.core import errors
from tourdesk.db.base import Base
from tourdesk.services.query_features import (
    FilterOperator,
    FilterPredicate,
    Projection,
    QuerySpec,
    SortKey,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
WriteHook = Callable[[AsyncSession, ModelT], Awaitable[None]]

_TRUE_VALUES = {"true", "1", "yes", "on"}
_FALSE_VALUES = {"false", "0", "no", "off"}
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def coerce_value(column: Any, raw: str) -> Any:
    """Convert a query-string value into the column's Python type."""
    try:
        python_type = column.type.python_type
    except NotImplementedError as exc:
        raise errors.ValidationError(f"Cannot filter on field: {column.key}") from exc

    try:
        if python_type is bool:
            lowered = raw.lower()
            if lowered in _TRUE_VALUES:
                return True
            if lowered in _FALSE_VALUES:
                return False
            raise ValueError(raw)
        if issubclass(python_type, enum.Enum):
            return python_type(raw)
        if python_type is datetime:
            return datetime.fromisoformat(raw)
        if python_type is date:
            return date.fromisoformat(raw)
        if python_type is uuid.UUID:
            return uuid.UUID(raw)
        if python_type is int:
            value = int(raw)
            if not _INT64_MIN <= value <= _INT64_MAX:
                raise ValueError(raw)
            return value
        if python_type in (float, Decimal, str):
            return python_type(raw)
    except (ValueError, TypeError, ArithmeticError) as exc:
        raise errors.ValidationError(
            f"Invalid value for {column.key}: {raw}"
        ) from exc
    raise errors.ValidationError(f"Cannot filter on field: {column.key}")


class Repository(Generic[ModelT]):
    """Find, create, update and delete rows of one model.

    ``hidden_fields`` can never be filtered, sorted or projected.
    ``scope`` criteria are applied to every read. ``references`` maps an
    input field holding a list of ids onto the relationship it fills, e.g.
    ``{"guide_ids": "guides"}``. ``before_write`` hooks run
    before a create/update is flushed and ``after_write`` hooks run once a
    create, update or delete has been committed.
    """

    def __init__(
        self,
        model: type[ModelT],
        *,
        hidden_fields: Iterable[str] = (),
        scope: Callable[[], Sequence[ColumnElement[bool]]] | None = None,
        references: Mapping[str, str] | None = None,
        before_write: Sequence[WriteHook[ModelT]] = (),
        after_write: Sequence[WriteHook[ModelT]] = (),
    ) -> None:
        self.model = model
        self.hidden_fields = frozenset(hidden_fields)
        self._columns = inspect(model).columns
        self._primary_key = inspect(model).primary_key[0]
        self._cascading = tuple(
            relation.key
            for relation in inspect(model).relationships
            if relation.cascade.delete or relation.secondary is not None
        )
        self._references = dict(references or {})
        self._scope = scope
        self._before_write = tuple(before_write)
        self._after_write = tuple(after_write)

    def _base_criteria(self) -> list[ColumnElement[bool]]:
        return list(self._scope()) if self._scope else []

    def _column(self, name: str) -> Any:
        if name in self.hidden_fields or name not in self._columns:
            raise errors.ValidationError(f"Unknown field: {name}")
        return self._columns[name]

    def _filter_criteria(
        self, predicates: Iterable[FilterPredicate]
    ) -> list[ColumnElement[bool]]:
        criteria: list[ColumnElement[bool]] = []
        for predicate in predicates:
            column = self._column(predicate.field)
            value = coerce_value(column, predicate.value)
            if predicate.operator is FilterOperator.EQ:
                criteria.append(column == value)
            elif predicate.operator is FilterOperator.GT:
                criteria.append(column > value)
            elif predicate.operator is FilterOperator.GTE:
                criteria.append(column >= value)
            elif predicate.operator is FilterOperator.LT:
                criteria.append(column < value)
            else:
                criteria.append(column <= value)
        return criteria

    def _scope_criteria(
        self, scope: Mapping[str, Any] | None
    ) -> list[ColumnElement[bool]]:
        if not scope:
            return []
        return [self._columns[name] == value for name, value in scope.items()]

    def _order_by(self, keys: Iterable[SortKey]) -> list[Any]:
        clauses = []
        for key in keys:
            column = self._column(key.field)
            clauses.append(column.desc() if key.descending else column.asc())
        return clauses

    def _projection_columns(self, projection: Projection) -> list[Any]:
        if projection.include:
            names = [self._primary_key.key]
            names.extend(name for name in projection.include if name not in names)
            return [self._column(name) for name in names]
        excluded = set(projection.exclude)
        for name in excluded:
            self._column(name)
        return [
            column
            for column in self._columns
            if column.key not in excluded and column.key not in self.hidden_fields
        ]

    def _filtered(
        self, stmt: Select[Any], spec: QuerySpec, scope: Mapping[str, Any] | None
    ) -> Select[Any]:
        return stmt.where(
            *self._base_criteria(),
            *self._scope_criteria(scope),
            *self._filter_criteria(spec.filters),
        )

    async def find_by_id(
        self,
        session: AsyncSession,
        item_id: uuid.UUID,
        *,
        expand: Sequence[str] = (),
    ) -> ModelT | None:
        stmt = select(self.model).where(
            self._primary_key == item_id, *self._base_criteria()
        )
        if expand:
            stmt = stmt.options(
                *(selectinload(getattr(self.model, relation)) for relation in expand)
            )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def find_many(
        self,
        session: AsyncSession,
        spec: QuerySpec,
        *,
        scope: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """Return projected rows as plain dictionaries."""
        stmt = self._filtered(select(*self._projection_columns(spec.projection)), spec, scope)
        stmt = (
            stmt.order_by(*self._order_by(spec.sort))
            .offset(spec.pagination.skip)
            .limit(spec.pagination.limit)
        )
        result = await session.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def count(
        self,
        session: AsyncSession,
        spec: QuerySpec,
        *,
        scope: Mapping[str, Any] | None = None,
    ) -> int:
        stmt = self._filtered(select(func.count()).select_from(self.model), spec, scope)
        result = await session.execute(stmt)
        return int(result.scalar_one())

    async def _commit(self, session: AsyncSession) -> None:
        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            logger.info("Rejected %s write: %s", self.model.__name__, exc.orig)
            raise errors.ConflictError() from exc

    async def _run_hooks(
        self, hooks: Sequence[WriteHook[ModelT]], session: AsyncSession, entity: ModelT
    ) -> None:
        for hook in hooks:
            await hook(session, entity)

    async def _resolve_references(
        self, session: AsyncSession, data: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Swap id lists for the related rows, keeping the given order."""
        resolved = dict(data)
        relations = inspect(self.model).relationships
        for field, relation in self._references.items():
            if field not in resolved:
                continue
            ids = list(dict.fromkeys(resolved.pop(field) or ()))
            target = relations[relation].mapper.class_
            target_key = inspect(target).primary_key[0]
            rows: dict[Any, Any] = {}
            if ids:
                result = await session.execute(select(target).where(target_key.in_(ids)))
                rows = {getattr(row, target_key.key): row for row in result.scalars()}
            missing = [str(item) for item in ids if item not in rows]
            if missing:
                raise errors.ValidationError(
                    f"Unknown {field}: {', '.join(missing)}"
                )
            resolved[relation] = [rows[item] for item in ids]
        return resolved

    async def create(self, session: AsyncSession, data: Mapping[str, Any]) -> ModelT:
        entity = self.model(**await self._resolve_references(session, data))
        await self._run_hooks(self._before_write, session, entity)
        session.add(entity)
        await self._commit(session)
        await session.refresh(entity)
        await self._run_hooks(self._after_write, session, entity)
        return entity

    async def update_by_id(
        self, session: AsyncSession, item_id: uuid.UUID, data: Mapping[str, Any]
    ) -> ModelT | None:
        touched = tuple(
            relation for field, relation in self._references.items() if field in data
        )
        entity = await self.find_by_id(session, item_id, expand=touched)
        if entity is None:
            return None
        for name, value in (await self._resolve_references(session, data)).items():
            setattr(entity, name, value)
        await self._run_hooks(self._before_write, session, entity)
        await self._commit(session)
        await session.refresh(entity)
        await self._run_hooks(self._after_write, session, entity)
        return entity

    async def delete_by_id(
        self, session: AsyncSession, item_id: uuid.UUID
    ) -> ModelT | None:
        entity = await self.find_by_id(session, item_id, expand=self._cascading)
        if entity is None:
            return None
        await session.delete(entity)
        await self._commit(session)
        await self._run_hooks(self._after_write, session, entity)
        return entity


__all__ = ["Repository", "WriteHook", "coerce_value"]
