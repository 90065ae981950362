"""Ownership resolution: project → creator, track → parent project's creator."""

import uuid

import pytest

from demoshare.auth.ownership import OwnershipResolver, Target
from demoshare.db.models import Track
from demoshare.errors import InvalidTarget, NotFound


def test_target_requires_exactly_one_id():
    with pytest.raises(InvalidTarget):
        Target()
    with pytest.raises(InvalidTarget):
        Target(project_id=uuid.uuid4(), track_id=uuid.uuid4())


@pytest.mark.asyncio
async def test_project_resolves_to_creator(db_session, project, creator):
    ownership = await OwnershipResolver(db_session).resolve(Target(project_id=project.id))
    assert ownership.owner_id == creator.id
    assert ownership.project_id == project.id
    assert ownership.sharing_enabled is True


@pytest.mark.asyncio
async def test_track_resolves_through_project(db_session, track, project, creator):
    ownership = await OwnershipResolver(db_session).resolve(Target(track_id=track.id))
    assert ownership.owner_id == creator.id
    assert ownership.project_id == project.id


@pytest.mark.asyncio
async def test_missing_project_is_not_found(db_session):
    with pytest.raises(NotFound, match="Project not found"):
        await OwnershipResolver(db_session).resolve(Target(project_id=uuid.uuid4()))


@pytest.mark.asyncio
async def test_orphan_track_is_not_found(db_session):
    orphan = Track(title="Loose", audio_url="https://cdn.example.com/loose.mp3")
    db_session.add(orphan)
    await db_session.commit()

    with pytest.raises(NotFound, match="Track not found"):
        await OwnershipResolver(db_session).resolve(Target(track_id=orphan.id))


@pytest.mark.asyncio
async def test_hidden_project_visible_only_to_owner(db_session, hidden_project, creator, listener):
    resolver = OwnershipResolver(db_session)
    target = Target(project_id=hidden_project.id)

    with pytest.raises(NotFound):
        await resolver.resolve_visible(target, None)
    with pytest.raises(NotFound):
        await resolver.resolve_visible(target, listener.id)

    ownership = await resolver.resolve_visible(target, creator.id)
    assert ownership.sharing_enabled is False
