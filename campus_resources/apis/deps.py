from typing import Optional

from fastapi import Depends, Header, HTTPException

from campus_resources.configs.settings import settings
from campus_resources.cores.token import InvalidTokenError
from campus_resources.schemas.user_schema import Actor
from campus_resources.services.catalog.access_policy import can_manage_users
from campus_resources.services.externals.cloudinary_service import BinaryStore, CloudinaryBinaryStore
from campus_resources.services.stores.document_store import DocumentStore, SqlDocumentStore
from campus_resources.services.users.identity_service import IdentityProvider

"""
Shared route dependencies.
    - One document store per process so live subscriptions see every write.
    - `auth_required` resolves the bearer token into an `Actor` once per request;
      routes pass that actor explicitly into the catalog services.
"""

document_store = SqlDocumentStore()


def get_document_store() -> DocumentStore:
    return document_store


def get_binary_store() -> BinaryStore:
    return CloudinaryBinaryStore()


async def auth_required(
    authorization: Optional[str] = Header(None),
    store: DocumentStore = Depends(get_document_store),
) -> Actor:
    if not authorization:
        raise HTTPException(status_code=401, detail="Token not provided")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise HTTPException(status_code=401, detail="Invalid token format")
    if scheme.lower() != "bearer":
        raise HTTPException(status_code=401, detail="Invalid token format")

    try:
        return await IdentityProvider(store).resolve_actor(token)
    except InvalidTokenError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")


async def active_actor(actor: Actor = Depends(auth_required)) -> Actor:
    if actor.role is None:
        raise HTTPException(status_code=403, detail="Your account has no access. Contact the administrator.")
    return actor


async def admin_required(actor: Actor = Depends(active_actor)) -> Actor:
    if not can_manage_users(actor, settings.ADMIN_EMAIL):
        raise HTTPException(status_code=403, detail="You do not have permission to access this page.")
    return actor
