"""
Dependency wiring for the FastAPI app.

Backends are built once per application from the injected settings and
kept on `app.state`; request handlers reach them through the getters below.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import firebase_admin
from fastapi import Request
from firebase_admin import credentials

from gateway.config import Settings
from gateway.documents import DocumentStore, FirestoreDocumentStore, InMemoryDocumentStore
from gateway.errors import StartupError
from gateway.identity import FirebaseIdentityStore, IdentityStore, InMemoryIdentityStore
from gateway.security import TokenService
from gateway.storage import BlobStore, FirebaseBlobStore, InMemoryBlobStore, S3BlobStore

logger = logging.getLogger(__name__)


@dataclass
class Backends:
    settings: Settings
    tokens: TokenService
    identity: IdentityStore
    documents: DocumentStore
    blobs: BlobStore


def init_firebase(settings: Settings) -> Any:
    """
    Initialize the Firebase app from the service-account file.

    Any problem loading the credential is fatal: the service must not start
    half-configured.
    """
    if not settings.firebase_credentials:
        raise StartupError(
            "FIREBASE_CREDENTIALS must point to a service-account JSON file"
        )
    try:
        cred = credentials.Certificate(settings.firebase_credentials)
    except (OSError, ValueError) as exc:
        raise StartupError(
            f"Could not load Firebase credentials from {settings.firebase_credentials}: {exc}"
        ) from exc

    options = {"storageBucket": settings.storage_bucket} if settings.storage_bucket else None
    try:
        return firebase_admin.get_app()
    except ValueError:
        logger.info("Initializing Firebase app for project %s", cred.project_id)
        return firebase_admin.initialize_app(cred, options)


def build_blob_store(settings: Settings, firebase_app: Any = None) -> BlobStore:
    if settings.blob_backend == "s3":
        if not settings.s3_bucket:
            raise StartupError("S3_BUCKET is required when BLOB_BACKEND=s3")
        try:
            return S3BlobStore(
                bucket=settings.s3_bucket,
                region=settings.s3_region or "",
                endpoint=settings.s3_endpoint or "",
                access_key_id=settings.aws_access_key_id or "",
                secret_access_key=settings.aws_secret_access_key or "",
                public_base_url=settings.public_base_url,
            )
        except ValueError as exc:
            raise StartupError(str(exc)) from exc
    try:
        return FirebaseBlobStore(settings.storage_bucket, app=firebase_app)
    except ValueError as exc:
        raise StartupError(f"Cloud Storage bucket is not configured: {exc}") from exc


def build_backends(settings: Settings) -> Backends:
    tokens = TokenService(
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
        expire_minutes=settings.token_expire_minutes,
    )
    if settings.use_in_memory_backends:
        logger.warning("Using in-memory backends; nothing will be persisted")
        return Backends(
            settings=settings,
            tokens=tokens,
            identity=InMemoryIdentityStore(),
            documents=InMemoryDocumentStore(),
            blobs=InMemoryBlobStore(bucket=settings.storage_bucket or "test-bucket"),
        )

    firebase_app = init_firebase(settings)
    return Backends(
        settings=settings,
        tokens=tokens,
        identity=FirebaseIdentityStore(app=firebase_app),
        documents=FirestoreDocumentStore(app=firebase_app),
        blobs=build_blob_store(settings, firebase_app),
    )


def get_backends(request: Request) -> Backends:
    return request.app.state.backends


def get_settings_dep(request: Request) -> Settings:
    return get_backends(request).settings


def get_token_service(request: Request) -> TokenService:
    return get_backends(request).tokens


def get_identity_store(request: Request) -> IdentityStore:
    return get_backends(request).identity


def get_document_store(request: Request) -> DocumentStore:
    return get_backends(request).documents


def get_blob_store(request: Request) -> BlobStore:
    return get_backends(request).blobs
