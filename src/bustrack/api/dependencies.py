"""Shared API dependencies.

Long-lived collaborators are built once by the application factory and kept
on ``app.state``; these dependencies hand them to routes and services.
"""

from typing import Annotated

from fastapi import Depends, Request

from bustrack.config import Settings
from bustrack.core.auth.passwords import PasswordHasher
from bustrack.core.auth.tokens import TokenService
from bustrack.core.store.base import DocumentStore


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    """The application's document store."""
    return request.app.state.store


def get_token_service(request: Request) -> TokenService:
    """The application's token service."""
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    """The application's password hasher."""
    return request.app.state.password_hasher


# Type aliases for dependency injection
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Store = Annotated[DocumentStore, Depends(get_store)]
Tokens = Annotated[TokenService, Depends(get_token_service)]
Hasher = Annotated[PasswordHasher, Depends(get_password_hasher)]
