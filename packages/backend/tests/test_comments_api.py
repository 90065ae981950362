"""Comment API tests — target shape, visibility, capability flags, moderation.

Fixtures: U1 ``creator`` owns ``project`` (shared, two tracks) and
``hidden_project`` (sharing disabled). U2 ``listener`` and U3 ``stranger``
are ordinary users.
"""

import uuid

import pytest
from sqlalchemy import select

from demoshare.db.models import Comment, User


async def _post(client, headers, **body):
    return await client.post("/api/v1/comments", json=body, headers=headers)


# ═══════════════════════════════════════════════════════════
# Create
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_listener_comments_then_owner_sees_moderation_flags(
    client, auth, project, creator, listener
):
    """U2 posts on U1's project; U2 can edit+delete, U1 can only delete."""
    r = await _post(client, auth(listener), project_id=str(project.id), content="Great track!")
    assert r.status_code == 201
    comment = r.json()["comment"]
    assert comment["content"] == "Great track!"
    assert comment["can_edit"] is True
    assert comment["can_delete"] is True
    assert comment["author_display_name"] == "listener"
    assert comment["timestamp_seconds"] is None

    r = await client.get(
        f"/api/v1/comments?project_id={project.id}", headers=auth(creator)
    )
    assert r.status_code == 200
    comments = r.json()["comments"]
    assert len(comments) == 1
    assert comments[0]["id"] == comment["id"]
    assert comments[0]["can_edit"] is False
    assert comments[0]["can_delete"] is True


@pytest.mark.asyncio
async def test_capabilities_per_viewer(client, auth, project, listener, creator, stranger):
    await _post(client, auth(listener), project_id=str(project.id), content="Nice")
    url = f"/api/v1/comments?project_id={project.id}"

    author_view = (await client.get(url, headers=auth(listener))).json()["comments"][0]
    owner_view = (await client.get(url, headers=auth(creator))).json()["comments"][0]
    other_view = (await client.get(url, headers=auth(stranger))).json()["comments"][0]
    anon_view = (await client.get(url)).json()["comments"][0]

    assert (author_view["can_edit"], author_view["can_delete"]) == (True, True)
    assert (owner_view["can_edit"], owner_view["can_delete"]) == (False, True)
    assert (other_view["can_edit"], other_view["can_delete"]) == (False, False)
    assert (anon_view["can_edit"], anon_view["can_delete"]) == (False, False)


@pytest.mark.asyncio
async def test_track_comment_floors_timestamp(client, auth, track, listener):
    r = await _post(
        client, auth(listener), track_id=str(track.id), content="Love this drop", timestamp_seconds=42.9
    )
    assert r.status_code == 201
    comment = r.json()["comment"]
    assert comment["timestamp_seconds"] == 42
    assert comment["track_id"] == str(track.id)
    assert comment["project_id"] is None


@pytest.mark.asyncio
@pytest.mark.parametrize("timestamp", [-1, None, "abc", True])
async def test_track_comment_requires_valid_timestamp(client, auth, track, listener, timestamp):
    body = {"track_id": str(track.id), "content": "hmm"}
    if timestamp is not None:
        body["timestamp_seconds"] = timestamp
    r = await client.post("/api/v1/comments", json=body, headers=auth(listener))
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_input"


@pytest.mark.asyncio
async def test_project_comment_ignores_timestamp(client, auth, project, listener):
    r = await _post(
        client, auth(listener), project_id=str(project.id), content="ok", timestamp_seconds=10
    )
    assert r.status_code == 201
    assert r.json()["comment"]["timestamp_seconds"] is None


@pytest.mark.asyncio
async def test_both_targets_rejected(client, auth, project, track, listener):
    r = await _post(
        client,
        auth(listener),
        project_id=str(project.id),
        track_id=str(track.id),
        content="both",
        timestamp_seconds=1,
    )
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_target"


@pytest.mark.asyncio
async def test_neither_target_rejected(client, auth, listener):
    r = await _post(client, auth(listener), content="nowhere")
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_target"


@pytest.mark.asyncio
@pytest.mark.parametrize("content", ["", "   ", None])
async def test_empty_content_rejected(client, auth, project, listener, content):
    r = await _post(client, auth(listener), project_id=str(project.id), content=content)
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_content"


@pytest.mark.asyncio
async def test_over_long_content_rejected(client, auth, project, listener, db_session):
    r = await _post(client, auth(listener), project_id=str(project.id), content="a" * 2001)
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_content"

    rows = (await db_session.execute(select(Comment))).scalars().all()
    assert rows == []


@pytest.mark.asyncio
async def test_content_at_max_length_accepted(client, auth, project, listener):
    r = await _post(client, auth(listener), project_id=str(project.id), content="a" * 2000)
    assert r.status_code == 201
    assert len(r.json()["comment"]["content"]) == 2000


@pytest.mark.asyncio
async def test_content_is_trimmed(client, auth, project, listener):
    r = await _post(client, auth(listener), project_id=str(project.id), content="  hi  ")
    assert r.json()["comment"]["content"] == "hi"


@pytest.mark.asyncio
async def test_malformed_identifier_rejected(client, auth, listener):
    r = await _post(client, auth(listener), project_id="not-a-uuid", content="x")
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_identifier"


@pytest.mark.asyncio
async def test_missing_project_is_404(client, auth, listener):
    r = await _post(client, auth(listener), project_id=str(uuid.uuid4()), content="x")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_create_requires_auth(client, project):
    r = await _post(client, {}, project_id=str(project.id), content="anon")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_hidden_target_is_404_before_auth(client, hidden_project):
    """Visibility is checked before authentication state."""
    r = await _post(client, {}, project_id=str(hidden_project.id), content="anon")
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_owner_can_comment_on_own_hidden_project(client, auth, hidden_project, creator):
    r = await _post(client, auth(creator), project_id=str(hidden_project.id), content="wip notes")
    assert r.status_code == 201


@pytest.mark.asyncio
async def test_first_comment_creates_user(client, auth, project, db_session):
    newcomer = User(external_id="did:privy:newcomer")  # never persisted
    r = await _post(client, auth(newcomer), project_id=str(project.id), content="hello")
    assert r.status_code == 201
    assert r.json()["comment"]["author_display_name"] == "Unknown"

    row = await db_session.scalar(select(User).where(User.external_id == "did:privy:newcomer"))
    assert row is not None


# ═══════════════════════════════════════════════════════════
# List
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_hidden_project_comments_404_for_anonymous(client, hidden_project):
    r = await client.get(f"/api/v1/comments?project_id={hidden_project.id}")
    assert r.status_code == 404
    assert r.json()["kind"] == "not_found"


@pytest.mark.asyncio
async def test_hidden_project_comments_404_for_non_owner(client, auth, hidden_project, listener):
    r = await client.get(
        f"/api/v1/comments?project_id={hidden_project.id}", headers=auth(listener)
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_hidden_project_comments_visible_to_owner(client, auth, hidden_project, creator):
    r = await client.get(
        f"/api/v1/comments?project_id={hidden_project.id}", headers=auth(creator)
    )
    assert r.status_code == 200
    assert r.json()["comments"] == []


@pytest.mark.asyncio
async def test_bad_token_lists_public_comments_as_anonymous(client, auth, project, listener):
    await _post(client, auth(listener), project_id=str(project.id), content="hello")

    r = await client.get(
        f"/api/v1/comments?project_id={project.id}",
        headers={"Authorization": "Bearer garbage"},
    )
    assert r.status_code == 200
    comments = r.json()["comments"]
    assert [c["content"] for c in comments] == ["hello"]
    assert comments[0]["can_edit"] is False
    assert comments[0]["can_delete"] is False


@pytest.mark.asyncio
async def test_bad_token_on_hidden_project_comments_is_404(client, hidden_project):
    r = await client.get(
        f"/api/v1/comments?project_id={hidden_project.id}",
        headers={"Authorization": "Bearer garbage"},
    )
    assert r.status_code == 404
    assert r.json()["kind"] == "not_found"


@pytest.mark.asyncio
async def test_list_is_newest_first(client, auth, project, listener):
    for text in ("first", "second", "third"):
        await _post(client, auth(listener), project_id=str(project.id), content=text)

    r = await client.get(f"/api/v1/comments?project_id={project.id}")
    assert [c["content"] for c in r.json()["comments"]] == ["third", "second", "first"]


@pytest.mark.asyncio
async def test_list_scoped_to_track(client, auth, project, track, listener):
    await _post(client, auth(listener), project_id=str(project.id), content="project-level")
    await _post(
        client, auth(listener), track_id=str(track.id), content="track-level", timestamp_seconds=3
    )

    r = await client.get(f"/api/v1/comments?track_id={track.id}")
    contents = [c["content"] for c in r.json()["comments"]]
    assert contents == ["track-level"]


@pytest.mark.asyncio
async def test_list_requires_a_target(client):
    r = await client.get("/api/v1/comments")
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_target"


# ═══════════════════════════════════════════════════════════
# Update
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_author_can_edit(client, auth, project, listener):
    created = (await _post(client, auth(listener), project_id=str(project.id), content="v1")).json()
    cid = created["comment"]["id"]

    r = await client.patch(
        "/api/v1/comments", json={"id": cid, "content": "v2"}, headers=auth(listener)
    )
    assert r.status_code == 200
    assert r.json()["comment"]["content"] == "v2"


@pytest.mark.asyncio
async def test_owner_cannot_edit_others_comment(client, auth, project, listener, creator):
    created = (await _post(client, auth(listener), project_id=str(project.id), content="mine")).json()
    cid = created["comment"]["id"]

    r = await client.patch(
        "/api/v1/comments", json={"id": cid, "content": "rewritten"}, headers=auth(creator)
    )
    assert r.status_code == 403
    assert r.json()["kind"] == "forbidden"


@pytest.mark.asyncio
async def test_edit_missing_comment_is_404(client, auth, listener):
    r = await client.patch(
        "/api/v1/comments",
        json={"id": str(uuid.uuid4()), "content": "x"},
        headers=auth(listener),
    )
    assert r.status_code == 404


@pytest.mark.asyncio
async def test_edit_requires_content(client, auth, listener):
    r = await client.patch(
        "/api/v1/comments",
        json={"id": str(uuid.uuid4()), "content": "  "},
        headers=auth(listener),
    )
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_content"


@pytest.mark.asyncio
async def test_edit_rejects_over_long_content(client, auth, project, listener):
    r = await _post(client, auth(listener), project_id=str(project.id), content="short")
    comment_id = r.json()["comment"]["id"]

    r = await client.patch(
        "/api/v1/comments",
        json={"id": comment_id, "content": "b" * 2001},
        headers=auth(listener),
    )
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_content"

    r = await client.get(f"/api/v1/comments?project_id={project.id}")
    assert r.json()["comments"][0]["content"] == "short"


# ═══════════════════════════════════════════════════════════
# Delete
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_stranger_cannot_delete(client, auth, project, listener, stranger, db_session):
    created = (await _post(client, auth(listener), project_id=str(project.id), content="keep")).json()
    cid = created["comment"]["id"]

    r = await client.delete(f"/api/v1/comments?id={cid}", headers=auth(stranger))
    assert r.status_code == 403

    still_there = await db_session.scalar(select(Comment).where(Comment.id == uuid.UUID(cid)))
    assert still_there is not None


@pytest.mark.asyncio
async def test_owner_can_delete_others_comment(client, auth, project, listener, creator):
    created = (await _post(client, auth(listener), project_id=str(project.id), content="spam")).json()
    cid = created["comment"]["id"]

    r = await client.delete(f"/api/v1/comments?id={cid}", headers=auth(creator))
    assert r.status_code == 200
    assert r.json() == {"success": True}

    listing = await client.get(f"/api/v1/comments?project_id={project.id}")
    assert listing.json()["comments"] == []


@pytest.mark.asyncio
async def test_owner_can_delete_track_comment(client, auth, track, listener, creator):
    """Track comments are moderated by the parent project's creator."""
    created = (
        await _post(
            client, auth(listener), track_id=str(track.id), content="x", timestamp_seconds=0
        )
    ).json()
    cid = created["comment"]["id"]

    r = await client.delete(f"/api/v1/comments?id={cid}", headers=auth(creator))
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_author_can_delete(client, auth, project, listener):
    created = (await _post(client, auth(listener), project_id=str(project.id), content="oops")).json()
    r = await client.delete(
        f"/api/v1/comments?id={created['comment']['id']}", headers=auth(listener)
    )
    assert r.status_code == 200


@pytest.mark.asyncio
async def test_delete_requires_auth(client, auth, project, listener):
    created = (await _post(client, auth(listener), project_id=str(project.id), content="x")).json()
    r = await client.delete(f"/api/v1/comments?id={created['comment']['id']}")
    assert r.status_code == 401


@pytest.mark.asyncio
async def test_delete_malformed_id_is_400(client, auth, listener):
    r = await client.delete("/api/v1/comments?id=nope", headers=auth(listener))
    assert r.status_code == 400
    assert r.json()["kind"] == "invalid_identifier"
