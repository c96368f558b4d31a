"""
Shared API dependencies.

Authentication happens upstream; requests carry the owner's id in the
X-User-Id header and only existing, active users are accepted.
"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from routebase.config import settings
from routebase.db.session import get_async_db
from routebase.features.users import UserRepository
from routebase.shared.errors import UnauthenticatedError
from routebase.storage import BlobStore, build_blob_store

logger = logging.getLogger(__name__)


@lru_cache
def get_blob_store() -> BlobStore:
    """Blob store selected by settings, created once per process."""
    store = build_blob_store(settings)
    logger.info(f"Blob store: {type(store).__name__}")
    return store


async def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    db: AsyncSession = Depends(get_async_db)
) -> str:
    """Id of the requesting owner."""
    if not x_user_id:
        raise UnauthenticatedError()

    user = await UserRepository(db).get_active(x_user_id)
    if not user:
        logger.warning(f"Rejected request for unknown or inactive user {x_user_id}")
        raise UnauthenticatedError()
    return user.id
