"""Permission evaluation — per-viewer capability flags.

Policy:
- can_view: the target is not hidden (owners see their own hidden work)
- can_edit: author only. Owning the project does not let you rewrite
  someone else's words.
- can_delete: author, or the owner of the target (moderation)

Anonymous callers can only ever view.
"""

import uuid
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Capabilities:
    can_view: bool
    can_edit: bool
    can_delete: bool


def evaluate(
    caller_id: Optional[uuid.UUID],
    author_id: uuid.UUID,
    owner_id: Optional[uuid.UUID],
    sharing_enabled: Optional[bool] = True,
) -> Capabilities:
    """Capabilities of ``caller_id`` on a resource written by ``author_id``."""
    is_owner = caller_id is not None and owner_id is not None and caller_id == owner_id
    can_view = sharing_enabled is not False or is_owner

    if caller_id is None:
        return Capabilities(can_view=can_view, can_edit=False, can_delete=False)

    is_author = caller_id == author_id
    return Capabilities(
        can_view=can_view,
        can_edit=is_author,
        can_delete=is_author or is_owner,
    )
