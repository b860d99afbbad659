import logging
from typing import Optional

from campus_resources.cores.token import verify_token
from campus_resources.schemas.user_schema import Actor, UserProfile
from campus_resources.services.catalog.normalizer import normalize_user
from campus_resources.services.stores.collections import USERS_COLLECTION
from campus_resources.services.stores.document_store import DocumentStore

logger = logging.getLogger(__name__)


class IdentityProvider:
    """
    Resolves a bearer token to the acting identity.

    The token only proves who the caller is; the role always comes from the
    live profile. Any lookup failure resolves to no role at all.
    """

    def __init__(self, store: DocumentStore):
        self.store = store

    async def get_profile(self, uid: str) -> Optional[UserProfile]:
        if not uid:
            return None
        try:
            raw = await self.store.get(USERS_COLLECTION, uid)
        except Exception as e:
            logger.warning(f"Profile lookup for {uid} failed: {e}")
            return None
        return normalize_user(uid, raw) if raw is not None else None

    async def get_role(self, uid: str) -> Optional[str]:
        profile = await self.get_profile(uid)
        if profile is None or profile.blocked:
            return None
        return profile.role

    async def resolve_actor(self, token: str) -> Actor:
        """Raises InvalidTokenError for a bad token; a missing or blocked profile yields a role-less actor."""
        payload = verify_token(token)
        uid = payload["sub"]
        profile = await self.get_profile(uid)
        if profile is None:
            return Actor(uid=uid, email=payload.get("email") or "")
        return Actor(
            uid=uid,
            email=profile.email or payload.get("email") or "",
            username=profile.username,
            role=None if profile.blocked else profile.role,
        )
