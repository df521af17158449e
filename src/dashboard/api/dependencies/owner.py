"""Owner identity resolution.

The identity provider sits in front of this service and forwards the
resolved principal in X-Owner-Id. No header means no identity: reads return
empty results and writes fail with NotAuthenticated.
"""

from typing import Annotated

from fastapi import Depends, Header

from src.dashboard.core.logging import bind_owner_context


async def get_owner_id(
    x_owner_id: Annotated[str | None, Header()] = None,
) -> str | None:
    """Return the caller's owner id, or None if it cannot be resolved."""
    owner_id = x_owner_id.strip() if x_owner_id else None
    if not owner_id:
        return None
    bind_owner_context(owner_id)
    return owner_id


CurrentOwner = Annotated[str | None, Depends(get_owner_id)]
