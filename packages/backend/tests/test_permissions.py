"""Capability flags: author edits, author or owner deletes, anonymous only views."""

import uuid

from demoshare.auth.permissions import evaluate

AUTHOR = uuid.uuid4()
OWNER = uuid.uuid4()
OTHER = uuid.uuid4()


def test_author_can_edit_and_delete():
    caps = evaluate(AUTHOR, AUTHOR, OWNER)
    assert caps.can_view and caps.can_edit and caps.can_delete


def test_owner_can_delete_but_not_edit():
    caps = evaluate(OWNER, AUTHOR, OWNER)
    assert caps.can_edit is False
    assert caps.can_delete is True


def test_other_user_has_neither():
    caps = evaluate(OTHER, AUTHOR, OWNER)
    assert caps.can_view is True
    assert caps.can_edit is False
    assert caps.can_delete is False


def test_anonymous_only_views():
    caps = evaluate(None, AUTHOR, OWNER)
    assert caps.can_view is True
    assert caps.can_edit is False
    assert caps.can_delete is False


def test_owner_commenting_on_own_project_has_both():
    caps = evaluate(OWNER, OWNER, OWNER)
    assert caps.can_edit and caps.can_delete


def test_hidden_target_only_viewable_by_owner():
    assert evaluate(OTHER, AUTHOR, OWNER, sharing_enabled=False).can_view is False
    assert evaluate(None, AUTHOR, OWNER, sharing_enabled=False).can_view is False
    assert evaluate(OWNER, AUTHOR, OWNER, sharing_enabled=False).can_view is True


def test_unknown_owner_never_grants_delete():
    caps = evaluate(OTHER, AUTHOR, None)
    assert caps.can_delete is False
