"""
Tests for the SQLAlchemy store.

Covers:
- build_filter / build_order_by compilation
- SQLAlchemyStore count / fetch against aiosqlite
- paginate end to end over ORM models
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import pytest
from sqlalchemy import ForeignKey, String, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from pagequery import FieldPolicy, UnsupportedPredicateError, paginate, parse_query_params
from pagequery.store.sqla import (
    NativeOperator,
    SQLAlchemyStore,
    build_default_native_registry,
    build_filter,
    build_order_by,
)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class Team(Base):
    __tablename__ = "teams"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50))


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    email: Mapped[str] = mapped_column(String(100))
    status: Mapped[str] = mapped_column(String(20))
    age: Mapped[int]
    deleted_at: Mapped[str | None] = mapped_column(String(30), nullable=True)
    team_id: Mapped[int | None] = mapped_column(ForeignKey("teams.id"), nullable=True)

    team: Mapped[Team | None] = relationship()
    posts: Mapped[list[Post]] = relationship(back_populates="user")

    @hybrid_property
    def age_in_months(self) -> int:
        return self.age * 12


class Post(Base):
    __tablename__ = "posts"
    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(100))
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"))

    user: Mapped[User] = relationship(back_populates="posts")


@pytest.fixture
async def session_factory() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        core, growth = Team(id=1, name="Core"), Team(id=2, name="Growth")
        session.add_all(
            [
                core,
                growth,
                User(
                    id=1, name="Anna", email="anna@example.com", status="active", age=31, team=core
                ),
                User(id=2, name="bob", email="bob@corp.io", status="pending", age=17, team=growth),
                User(
                    id=3,
                    name="Carla",
                    email="carla@example.com",
                    status="banned",
                    age=45,
                    deleted_at="2024-01-01",
                    team=core,
                ),
                User(id=4, name="dave", email="dave@ANNEX.org", status="active", age=22),
                User(
                    id=5, name="Eve", email="eve@example.com", status="pending", age=28, team=growth
                ),
                Post(id=1, title="Hello SQL", user_id=1),
                Post(id=2, title="100% pure", user_id=4),
                Post(id=3, title="Rust notes", user_id=5),
            ]
        )
        await session.commit()

    yield factory
    await engine.dispose()


@pytest.fixture
def store(session_factory: async_sessionmaker[AsyncSession]) -> SQLAlchemyStore:
    return SQLAlchemyStore(User, session_factory)


def _ids(records: list[Any]) -> list[int]:
    return [r.id for r in records]


# ---------------------------------------------------------------------------
# Compilation
# ---------------------------------------------------------------------------


def _sql(predicate: dict[str, Any]) -> str:
    stmt = select(User).where(build_filter(User, predicate))
    return str(stmt.compile(compile_kwargs={"literal_binds": True}))


def test_compile_equals_and_in() -> None:
    sql = _sql({"status": {"in": ["active", "pending"]}, "age": {"gte": 18}})
    assert "users.status IN ('active', 'pending')" in sql
    assert "users.age >= 18" in sql


def test_compile_insensitive_equals_uses_lower() -> None:
    sql = _sql({"name": {"equals": "ANNA", "mode": "insensitive"}})
    assert "lower(users.name) = 'anna'" in sql


def test_compile_is_null() -> None:
    assert "users.deleted_at IS NULL" in _sql({"deleted_at": {"is": None}})
    assert "users.deleted_at IS NOT NULL" in _sql({"deleted_at": {"is": "not_null"}})


def test_compile_relation_uses_exists() -> None:
    assert "EXISTS" in _sql({"team": {"name": {"equals": "Core"}}})
    assert "EXISTS" in _sql({"posts": {"title": {"contains": "SQL"}}})


def test_build_order_by() -> None:
    stmt = select(User).order_by(*build_order_by(User, {"age": "desc", "name": "asc"}))
    sql = str(stmt.compile())
    assert "ORDER BY users.age DESC, users.name ASC" in sql
    assert build_order_by(User, None) == []


@pytest.mark.parametrize(
    "predicate",
    [
        {"password": {"equals": "x"}},
        {"name": {"regex": ".*"}},
        {"team": {"equals": 1}},
        {"__table__": {"equals": 1}},
    ],
)
def test_unsupported_predicates_raise(predicate: dict[str, Any]) -> None:
    with pytest.raises(UnsupportedPredicateError):
        build_filter(User, predicate)


def test_unknown_sort_field_raises() -> None:
    with pytest.raises(UnsupportedPredicateError):
        build_order_by(User, {"password": "asc"})


def test_custom_registry_operator() -> None:
    class PrefixedEqualsOperator(NativeOperator):
        @property
        def name(self) -> str:
            return "equals"

        def apply(self, column: Any, value: Any, *, insensitive: bool = False) -> Any:
            return column == f"custom:{value}"

    registry = build_default_native_registry()
    registry.register(PrefixedEqualsOperator())
    expr = build_filter(User, {"name": {"equals": "x"}}, registry=registry)
    compiled = str(select(User).where(expr).compile(compile_kwargs={"literal_binds": True}))
    assert "'custom:x'" in compiled
    assert registry.has("notIn")
    assert "startsWith" in registry.supported_keys


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


async def test_count(store: SQLAlchemyStore) -> None:
    assert await store.count({}) == 5
    assert await store.count({"status": {"equals": "pending"}}) == 2
    assert await store.count({"deleted_at": {"is": None}}) == 4


@pytest.mark.parametrize(
    ("predicate", "expected"),
    [
        ({"status": {"in": ["active", "pending"]}}, [2, 4, 5, 1]),
        ({"status": {"notIn": ["active", "pending"]}}, [3]),
        ({"status": {"not": "active"}}, [2, 5, 3]),
        ({"status": {"not": {"in": ["active", "pending"]}}}, [3]),
        ({"age": {"gt": 20, "lte": 31}}, [4, 5, 1]),
        ({"email": {"contains": "annex", "mode": "insensitive"}}, [4]),
        ({"name": {"startsWith": "c", "mode": "insensitive"}}, [3]),
        ({"email": {"endsWith": ".io"}}, [2]),
        ({"team": {"name": {"equals": "Core"}}}, [1, 3]),
        ({"posts": {"title": {"contains": "%"}}}, [4]),
        ({"age_in_months": {"gt": 360}}, [1, 3]),
        ({"OR": [{"age": {"lt": 18}}, {"age": {"gt": 40}}]}, [2, 3]),
        ({"NOT": [{"status": {"equals": "pending"}}]}, [4, 1, 3]),
        ({"AND": [{"status": {"equals": "active"}}, {"age": {"gt": 25}}]}, [1]),
    ],
)
async def test_fetch_filters(
    store: SQLAlchemyStore, predicate: dict[str, Any], expected: list[int]
) -> None:
    rows = await store.fetch(predicate, {"age": "asc"}, 0, 10, {})
    assert _ids(rows) == expected


async def test_fetch_slices(store: SQLAlchemyStore) -> None:
    rows = await store.fetch({}, {"age": "desc"}, 1, 2, {})
    assert _ids(rows) == [1, 5]


async def test_fetch_include_eager_loads_relations(store: SQLAlchemyStore) -> None:
    rows = await store.fetch({"id": {"equals": 1}}, None, 0, 10, {"include": {"posts": True}})
    assert [p.title for p in rows[0].posts] == ["Hello SQL"]


async def test_fetch_select_loads_only_named_columns(store: SQLAlchemyStore) -> None:
    rows = await store.fetch({}, {"id": "asc"}, 0, 2, {"select": ["id", "name"]})
    assert [(r.id, r.name) for r in rows] == [(1, "Anna"), (2, "bob")]


async def test_fetch_rejects_private_option_names(store: SQLAlchemyStore) -> None:
    with pytest.raises(UnsupportedPredicateError):
        await store.fetch({}, None, 0, 10, {"include": ["_sa_class_manager"]})


async def test_paginate_over_sqlalchemy(store: SQLAlchemyStore) -> None:
    policy = FieldPolicy(
        filterable={
            "status": ["$in", "$eq"],
            "team": {"name": ["$eq", "$contains", "$mode"]},
        },
        searchable=["name", "email"],
        sortable={"age": True, "name": True},
    )
    params = parse_query_params(
        {
            "filters[status]": "in:active,banned,pending",
            "filters[team][name]": "contains:o",
            "filters[email]": "anna@example.com",
            "search": "O",
            "sort[age]": "desc",
            "itemsPerPage": "2",
        }
    )

    records, meta = await paginate(
        store, {"where": {"deleted_at": {"is": None}}}, policy, params
    )

    # Non-deleted team members whose name or email contains "o".
    assert _ids(records) == [1, 5]
    assert meta.total_items == 3
    assert meta.total_pages == 2
    assert meta.filters == {
        "status": {"$in": ["active", "banned", "pending"]},
        "team": {"name": {"$contains": "o"}},
    }
