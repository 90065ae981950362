"""Library API tests — idempotent add, pinning, removal."""

import uuid

import pytest
from sqlalchemy import func, select

from demoshare.db.models import LibraryEntry, ProjectMetrics


@pytest.mark.asyncio
async def test_add_twice_returns_existing_entry(client, auth, project, listener, db_session):
    body = {"project_id": str(project.id)}

    r1 = await client.post("/api/v1/library", json=body, headers=auth(listener))
    assert r1.status_code == 201
    assert r1.json()["created"] is True

    r2 = await client.post("/api/v1/library", json=body, headers=auth(listener))
    assert r2.status_code == 200
    assert r2.json()["created"] is False
    assert r2.json()["user_project"]["id"] == r1.json()["user_project"]["id"]

    count = await db_session.scalar(
        select(func.count()).select_from(LibraryEntry).where(LibraryEntry.user_id == listener.id)
    )
    assert count == 1


@pytest.mark.asyncio
async def test_only_new_entries_bump_adds(client, auth, project, listener, db_session):
    body = {"project_id": str(project.id)}
    await client.post("/api/v1/library", json=body, headers=auth(listener))
    await client.post("/api/v1/library", json=body, headers=auth(listener))

    adds = await db_session.scalar(
        select(ProjectMetrics.adds).where(ProjectMetrics.project_id == project.id)
    )
    assert adds == 1


@pytest.mark.asyncio
async def test_add_requires_auth(client, project):
    r = await client.post("/api/v1/library", json={"project_id": str(project.id)})
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_add_invalid_project_id(client, auth, listener):
    r = await client.post("/api/v1/library", json={"project_id": "abc"}, headers=auth(listener))
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_identifier"


@pytest.mark.asyncio
async def test_add_missing_project_is_404(client, auth, listener):
    r = await client.post(
        "/api/v1/library", json={"project_id": str(uuid.uuid4())}, headers=auth(listener)
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_add_hidden_project_is_404(client, auth, hidden_project, listener):
    r = await client.post(
        "/api/v1/library", json={"project_id": str(hidden_project.id)}, headers=auth(listener)
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_pin_and_list_order(client, auth, make_project, creator, listener):
    older = await make_project(creator, title="Older")
    newer = await make_project(creator, title="Newer")
    for p in (older, newer):
        await client.post("/api/v1/library", json={"project_id": str(p.id)}, headers=auth(listener))

    r = await client.patch(
        "/api/v1/library",
        json={"project_id": str(older.id), "pinned": True},
        headers=auth(listener),
    )
    assert r.status_code == 200
    assert r.json()["user_project"]["pinned"] is True

    entries = (await client.get("/api/v1/library", headers=auth(listener))).json()["entries"]
    assert [e["project_id"] for e in entries] == [str(older.id), str(newer.id)]


@pytest.mark.asyncio
async def test_pin_requires_boolean(client, auth, project, listener):
    await client.post("/api/v1/library", json={"project_id": str(project.id)}, headers=auth(listener))
    r = await client.patch(
        "/api/v1/library",
        json={"project_id": str(project.id), "pinned": "yes"},
        headers=auth(listener),
    )
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_pin_entry_not_in_library_is_404(client, auth, project, listener):
    r = await client.patch(
        "/api/v1/library",
        json={"project_id": str(project.id), "pinned": True},
        headers=auth(listener),
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_remove(client, auth, project, listener):
    await client.post("/api/v1/library", json={"project_id": str(project.id)}, headers=auth(listener))

    r = await client.delete(f"/api/v1/library?project_id={project.id}", headers=auth(listener))
    assert r.status_code == 200
    assert r.json() == {"success": True}

    entries = (await client.get("/api/v1/library", headers=auth(listener))).json()["entries"]
    assert entries == []


@pytest.mark.asyncio
async def test_library_is_per_user(client, auth, project, listener, stranger):
    await client.post("/api/v1/library", json={"project_id": str(project.id)}, headers=auth(listener))
    entries = (await client.get("/api/v1/library", headers=auth(stranger))).json()["entries"]
    assert entries == []
