#!/usr/bin/env python3
"""
DemoShare Quickstart — a creator shares a project, a listener gives feedback.

Walks through: login → profile → project with tracks → timestamped comment →
capability flags per viewer → library → play counter → moderation.
Run with: python examples/quickstart.py

Requires: pip install -e .   (for httpx and the dev token helper)
Backend must be running in development mode: demoshare serve
"""

import sys
import uuid

import httpx

from demoshare.auth.jwt import create_token

BASE = "http://localhost:8000/api/v1"


def client_for(subject: str) -> httpx.Client:
    """An httpx Client authenticated as ``subject`` with a dev token."""
    return httpx.Client(
        base_url=BASE,
        timeout=10,
        headers={"Authorization": f"Bearer {create_token(subject)}"},
    )


def main():
    run_id = uuid.uuid4().hex[:6]

    # ── Health check ──────────────────────────────────────────────
    print("Checking backend health...")
    try:
        health = httpx.get(f"{BASE}/health", timeout=5).json()
    except httpx.ConnectError:
        print(f"Backend not reachable at {BASE}")
        print("Start it with:  demoshare init-db && demoshare serve --reload")
        sys.exit(1)
    print(f"  Database: {health['database']}")
    print(f"  Redis:    {health['redis']}")

    creator = client_for(f"did:demo:creator-{run_id}")
    listener = client_for(f"did:demo:listener-{run_id}")

    # ── Login (creates users on first sight) ─────────────────────
    print("\n1. Logging in creator and listener...")
    resp = creator.post("/user", json={"email": f"creator-{run_id}@example.com"})
    assert resp.status_code == 201, f"Failed: {resp.text}"
    resp = listener.post("/user", json={})
    assert resp.status_code == 201, f"Failed: {resp.text}"

    for who, c in (("creator", creator), ("listener", listener)):
        resp = c.patch("/user", json={"username": f"{who}_{run_id}"})
        assert resp.status_code == 200, f"Failed: {resp.text}"
        print(f"   {who.title()}: {resp.json()['user']['username']}")

    # ── Project with tracks ──────────────────────────────────────
    print("\n2. Creating project...")
    resp = creator.post("/projects", json={
        "title": "Summer Sketches",
        "tracks": [
            {"title": "Heatwave", "audio_url": "https://cdn.example.com/heatwave.mp3"},
            {"title": "Night Swim", "audio_url": "https://cdn.example.com/night-swim.mp3"},
        ],
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    project = resp.json()
    track = project["tracks"][0]
    print(f"   Project: {project['title']} ({project['id'][:8]}...)")
    print(f"   Share link token: {project['share_token']}")

    # ── Listener opens the share link and comments ────────────────
    print("\n3. Listener comments at 1:02 in the first track...")
    resp = listener.get(f"/share/{project['share_token']}")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    resp = listener.post("/comments", json={
        "track_id": track["id"],
        "content": "This drop is huge",
        "timestamp_seconds": 62.4,
    })
    assert resp.status_code == 201, f"Failed: {resp.text}"
    comment = resp.json()["comment"]
    print(f"   Comment at {comment['timestamp_seconds']}s by {comment['author_display_name']}")
    print(f"   As author:  can_edit={comment['can_edit']} can_delete={comment['can_delete']}")

    # ── Creator sees moderation rights ────────────────────────────
    resp = creator.get("/comments", params={"track_id": track["id"]})
    seen = resp.json()["comments"][0]
    print(f"   As creator: can_edit={seen['can_edit']} can_delete={seen['can_delete']}")

    # ── Library + metrics ────────────────────────────────────────
    print("\n4. Listener saves the project and plays it...")
    resp = listener.post("/library", json={"project_id": project["id"]})
    assert resp.status_code == 201, f"Failed: {resp.text}"
    resp = listener.post("/library", json={"project_id": project["id"]})
    assert resp.status_code == 200, "Second add should return the existing entry"
    resp = httpx.post(f"{BASE}/metrics", json={"project_id": project["id"], "field": "plays"})
    metrics = resp.json()["metrics"]
    print(f"   plays={metrics['plays']} adds={metrics['adds']} shares={metrics['shares']}")

    # ── Moderation ───────────────────────────────────────────────
    print("\n5. Creator removes the comment...")
    resp = creator.delete("/comments", params={"id": comment["id"]})
    assert resp.status_code == 200, f"Failed: {resp.text}"
    remaining = creator.get("/comments", params={"track_id": track["id"]}).json()["comments"]
    print(f"   Comments left on track: {len(remaining)}")

    print("\nDone.")


if __name__ == "__main__":
    main()
