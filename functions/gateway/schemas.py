"""
Pydantic schemas for the gateway API.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class Credentials(BaseModel):
    # Both optional so a missing field yields the API's own 400 message.
    email: Optional[str] = None
    password: Optional[str] = None


class SignupResponse(BaseModel):
    uid: str
    email: str


class TokenResponse(BaseModel):
    token: str


class ImageUploadResponse(BaseModel):
    imageUrl: str
