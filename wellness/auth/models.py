# -*- coding: utf-8 -*-
"""Auth — Pydantic models."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class RegisterRequest(BaseModel):
    name: str = Field("", max_length=120)
    email: str = Field(..., max_length=254)
    password: str = Field(..., min_length=6, max_length=128)

    @field_validator("email")
    @classmethod
    def _check_email(cls, value: str) -> str:
        local, _, domain = value.strip().partition("@")
        if not local or "." not in domain:
            raise ValueError("Valid email required")
        return value.strip().lower()


class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1, max_length=128)


class UserProfile(BaseModel):
    """Optional onboarding fields; ``heightCm``/``weightKg`` are accepted as aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    age: Optional[int] = Field(None, ge=0, le=150)
    gender: Optional[Literal["male", "female", "other"]] = None
    height: Optional[float] = Field(None, gt=0, validation_alias=AliasChoices("height", "heightCm"), description="cm")
    weight: Optional[float] = Field(None, gt=0, validation_alias=AliasChoices("weight", "weightKg"), description="kg")
    goals: Optional[List[str]] = None
    medical_conditions: Optional[List[str]] = None
    medications: Optional[List[str]] = None
    is_onboarded: Optional[bool] = None


class ProfileUpdate(UserProfile):
    name: Optional[str] = Field(None, max_length=120)
    avatar_url: Optional[str] = Field(None, max_length=2048)


class UserPublic(UserProfile):
    id: str
    email: str
    name: str = ""
    login_method: str = "email"
    avatar_url: str = ""
    bmi: Optional[float] = None
    created_at: str
    updated_at: str


class AuthResponse(BaseModel):
    user: UserPublic
    token: str


class MeResponse(BaseModel):
    user: UserPublic
