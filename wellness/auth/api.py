# -*- coding: utf-8 -*-
"""Auth — API endpoints (sign-up, sign-in, current user profile)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Response

from ..config import settings
from .models import AuthResponse, LoginRequest, MeResponse, ProfileUpdate, RegisterRequest, UserPublic
from .security import TOKEN_COOKIE_NAME, current_user, expires_in_seconds, hash_password, issue_token, verify_password
from .storage import create_user, find_user_by_email, update_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])
users_router = APIRouter(prefix="/api/users", tags=["Users"])


def _bmi(profile: Dict[str, Any]) -> Optional[float]:
    height, weight = profile.get("height"), profile.get("weight")
    if not height or not weight:
        return None
    return round(weight / (height / 100) ** 2, 1)


def public_user(user: Dict[str, Any]) -> UserPublic:
    profile = user.get("profile") or {}
    return UserPublic(
        id=user["id"],
        email=user["email"],
        name=user.get("name") or "",
        login_method=user.get("login_method") or "email",
        avatar_url=user.get("avatar_url") or "",
        bmi=_bmi(profile),
        created_at=user["created_at"],
        updated_at=user["updated_at"],
        **profile,
    )


def _signed_in(response: Response, user: Dict[str, Any]) -> AuthResponse:
    token = issue_token(user["id"])
    response.set_cookie(
        TOKEN_COOKIE_NAME,
        token,
        httponly=True,
        secure=bool(settings.cookie_secure),
        samesite="lax",
        max_age=expires_in_seconds(settings.jwt_expires_in),
        path="/",
    )
    return AuthResponse(user=public_user(user), token=token)


@router.post("/register", response_model=AuthResponse, status_code=201, summary="Register a new user")
def register(request: RegisterRequest, response: Response):
    if find_user_by_email(request.email):
        raise HTTPException(status_code=400, detail="Email already registered")
    user = create_user(email=request.email, password_hash=hash_password(request.password), name=request.name)
    logger.info("registered user %s", user["id"])
    return _signed_in(response, user)


@router.post("/login", response_model=AuthResponse, summary="Login")
def login(request: LoginRequest, response: Response):
    user = find_user_by_email(request.email)
    if user is None or not verify_password(request.password, user["password_hash"]):
        raise HTTPException(status_code=400, detail="Invalid credentials")
    return _signed_in(response, user)


@router.post("/logout", summary="Logout")
def logout(response: Response):
    response.delete_cookie(TOKEN_COOKIE_NAME, path="/")
    return {"status": "ok"}


@router.get("/me", response_model=MeResponse, summary="Get current user")
@users_router.get("/me", response_model=MeResponse, summary="Get current user profile")
def me(user: dict = Depends(current_user)):
    return MeResponse(user=public_user(user))


@users_router.put("/me", response_model=MeResponse, summary="Update current user profile")
def update_me(update: ProfileUpdate, user: dict = Depends(current_user)):
    fields = update.model_dump(exclude_none=True)
    name = fields.pop("name", None)
    avatar_url = fields.pop("avatar_url", None)
    updated = update_user(user["id"], name=name, avatar_url=avatar_url, profile=fields)
    if updated is None:
        raise HTTPException(status_code=404, detail="User not found")
    return MeResponse(user=public_user(updated))
