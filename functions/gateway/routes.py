"""
HTTP routes for the gateway: signup/login, item CRUD and image upload.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Response, UploadFile
from fastapi.responses import PlainTextResponse

from gateway.auth import require_user
from gateway.config import Settings
from gateway.dependencies import (
    get_blob_store,
    get_document_store,
    get_identity_store,
    get_settings_dep,
    get_token_service,
)
from gateway.documents import DocumentStore
from gateway.errors import (
    AuthenticationError,
    ConflictError,
    DependencyError,
    NotFoundError,
    PayloadTooLargeError,
    ValidationError,
    call_dependency,
)
from gateway.identity import IdentityExistsError, IdentityNotFoundError, IdentityStore
from gateway.schemas import (
    Credentials,
    ImageUploadResponse,
    SignupResponse,
    TokenResponse,
)
from gateway.security import TokenClaims, TokenService, hash_password, verify_password
from gateway.storage import BlobStore, generate_object_name

logger = logging.getLogger(__name__)

BANNER = "Firebase CRUD API with JWT Auth + Image Upload"
AUTH_FAILED = "Authentication failed"
# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72

router = APIRouter()
api_router = APIRouter(dependencies=[Depends(require_user)])


def _require_credentials(payload: Optional[Credentials]) -> tuple[str, str]:
    if payload is None or not payload.email or not payload.password:
        raise ValidationError("Email and password are required")
    return payload.email, payload.password


def _create_identity(identity: IdentityStore, email: str):
    try:
        return identity.create_user(email)
    except IdentityExistsError as exc:
        raise ConflictError("Email is already registered") from exc


def _find_identity(identity: IdentityStore, email: str):
    try:
        return identity.get_user_by_email(email)
    except IdentityNotFoundError as exc:
        logger.info("Login rejected: unknown email")
        raise AuthenticationError(AUTH_FAILED) from exc


@router.get("/", response_class=PlainTextResponse)
def root():
    return BANNER


@router.post("/signup", response_model=SignupResponse, status_code=201)
async def signup(
    payload: Optional[Credentials] = None,
    identity: IdentityStore = Depends(get_identity_store),
    documents: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_settings_dep),
):
    email, password = _require_credentials(payload)
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    timeout = settings.dependency_timeout_seconds

    hashed_password = await call_dependency(
        "hash password", hash_password, password, settings.bcrypt_rounds
    )
    user = await call_dependency(
        "create user", _create_identity, identity, email, timeout=timeout
    )
    try:
        await call_dependency(
            "save credentials",
            documents.set,
            settings.users_collection,
            user.uid,
            {"email": email, "password": hashed_password},
            merge=False,
            timeout=timeout,
        )
    except DependencyError:
        try:
            await call_dependency(
                "roll back user", identity.delete_user, user.uid, timeout=timeout
            )
        except DependencyError:
            logger.error("Orphaned identity %s left behind after failed signup", user.uid)
        raise

    logger.info("Signed up user %s", user.uid)
    return SignupResponse(uid=user.uid, email=user.email)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: Optional[Credentials] = None,
    identity: IdentityStore = Depends(get_identity_store),
    documents: DocumentStore = Depends(get_document_store),
    tokens: TokenService = Depends(get_token_service),
    settings: Settings = Depends(get_settings_dep),
):
    """
    Exchange email and password for a bearer token.

    Every failure answers with the same 401 body so callers cannot tell an
    unknown email from a wrong password.
    """
    email, password = _require_credentials(payload)
    timeout = settings.dependency_timeout_seconds

    try:
        user = await call_dependency(
            "look up user", _find_identity, identity, email, timeout=timeout
        )
        credential = await call_dependency(
            "load credentials",
            documents.get,
            settings.users_collection,
            user.uid,
            timeout=timeout,
        )
        if credential is None:
            logger.info("Login rejected: no credential record for %s", user.uid)
            raise AuthenticationError(AUTH_FAILED)
        matched = await call_dependency(
            "verify password",
            verify_password,
            password,
            str(credential.data.get("password") or ""),
        )
    except DependencyError as exc:
        logger.info("Login rejected during %s", exc.operation)
        raise AuthenticationError(AUTH_FAILED) from exc

    if not matched:
        logger.info("Login rejected: password mismatch for %s", user.uid)
        raise AuthenticationError(AUTH_FAILED)

    token = tokens.issue(TokenClaims(uid=user.uid, email=user.email))
    return TokenResponse(token=token)


@api_router.post("/items", status_code=201)
async def create_item(
    item: Optional[Dict[str, Any]] = Body(None),
    documents: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_settings_dep),
):
    # An empty body stores an empty item.
    item = item or {}
    doc_id = await call_dependency(
        "create item",
        documents.add,
        settings.items_collection,
        item,
        timeout=settings.dependency_timeout_seconds,
    )
    return {"id": doc_id, **item}


@api_router.get("/items")
async def list_items(
    documents: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_settings_dep),
):
    docs = await call_dependency(
        "list items",
        documents.list,
        settings.items_collection,
        timeout=settings.dependency_timeout_seconds,
    )
    return [doc.as_dict() for doc in docs]


@api_router.get("/items/{item_id}")
async def get_item(
    item_id: str,
    documents: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_settings_dep),
):
    doc = await call_dependency(
        "get item",
        documents.get,
        settings.items_collection,
        item_id,
        timeout=settings.dependency_timeout_seconds,
    )
    if doc is None:
        raise NotFoundError("Item not found")
    return doc.as_dict()


@api_router.put("/items/{item_id}")
async def update_item(
    item_id: str,
    item: Optional[Dict[str, Any]] = Body(None),
    documents: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_settings_dep),
):
    """Merge-write the body onto the item; the response echoes the input only."""
    item = item or {}
    await call_dependency(
        "update item",
        documents.set,
        settings.items_collection,
        item_id,
        item,
        merge=True,
        timeout=settings.dependency_timeout_seconds,
    )
    return {"id": item_id, **item}


@api_router.delete("/items/{item_id}", status_code=204)
async def delete_item(
    item_id: str,
    documents: DocumentStore = Depends(get_document_store),
    settings: Settings = Depends(get_settings_dep),
):
    await call_dependency(
        "delete item",
        documents.delete,
        settings.items_collection,
        item_id,
        timeout=settings.dependency_timeout_seconds,
    )
    return Response(status_code=204)


@api_router.post("/upload-image", response_model=ImageUploadResponse)
async def upload_image(
    image: Optional[UploadFile] = File(None),
    blobs: BlobStore = Depends(get_blob_store),
    settings: Settings = Depends(get_settings_dep),
):
    if image is None:
        raise ValidationError("No file uploaded")

    # One byte past the limit is enough to detect an oversized file.
    data = await image.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise PayloadTooLargeError(
            f"File exceeds the {settings.max_upload_bytes} byte upload limit"
        )

    path = generate_object_name(image.filename, settings.upload_prefix)
    content_type = image.content_type or "application/octet-stream"
    image_url = await call_dependency(
        "upload image",
        blobs.upload,
        path,
        data,
        content_type,
        timeout=settings.dependency_timeout_seconds,
    )
    logger.info("Uploaded %s (%d bytes, %s)", path, len(data), content_type)
    return ImageUploadResponse(imageUrl=image_url)
