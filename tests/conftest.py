from __future__ import annotations

from typing import Any

import pytest

from pagequery import FieldPolicy, InMemoryStore


@pytest.fixture
def user_policy() -> FieldPolicy:
    return FieldPolicy(
        filterable={
            "status": ["$eq", "$in", "$nin", "$ne", "$not"],
            "age": ["$eq", "$gt", "$gte", "$lt", "$lte"],
            "name": ["$eq", "$contains", "$startsWith", "$endsWith", "$mode"],
            "deletedAt": ["$is"],
            "author": {"name": ["$contains", "$mode"], "email": ["$endsWith"]},
        },
        searchable=["name", "email"],
        sortable={"name": True, "age": True, "createdAt": "desc", "secretField": False},
    )


@pytest.fixture
def users() -> list[dict[str, Any]]:
    return [
        {
            "id": 1,
            "name": "Anna",
            "email": "anna@example.com",
            "status": "active",
            "age": 31,
            "deletedAt": None,
            "secretField": "s1",
            "author": {"name": "Ann Lee", "email": "ann@example.com"},
        },
        {
            "id": 2,
            "name": "bob",
            "email": "bob@corp.io",
            "status": "pending",
            "age": 17,
            "deletedAt": None,
            "secretField": "s2",
            "author": {"name": "Bo", "email": "bo@corp.io"},
        },
        {
            "id": 3,
            "name": "Carla",
            "email": "carla@example.com",
            "status": "banned",
            "age": 45,
            "deletedAt": "2024-01-01",
            "secretField": "s3",
            "author": None,
        },
        {
            "id": 4,
            "name": "dave",
            "email": "dave@ANNEX.org",
            "status": "active",
            "age": 22,
            "deletedAt": None,
            "secretField": "s4",
            "author": {"name": "Joanna", "email": "jo@example.com"},
        },
        {
            "id": 5,
            "name": "Eve",
            "email": "eve@example.com",
            "status": "pending",
            "age": 28,
            "deletedAt": None,
            "secretField": "s5",
            "author": {"name": "Anders", "email": "anders@corp.io"},
        },
    ]


@pytest.fixture
def memory_store(users: list[dict[str, Any]]) -> InMemoryStore:
    return InMemoryStore(users)
