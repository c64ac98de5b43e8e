"""
user.py — Pydantic schemas for accounts and public profiles.

  UserCreate     — what the client sends to register
  UserOut        — what the API returns (never includes hashed_password)
  Profile        — public profile fields shown next to a user's maps
  ProfileUpdate  — partial profile edit
  Token          — JWT response from /auth/login and /auth/register
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class Profile(BaseModel):
    display_name: Optional[str] = Field(default=None, max_length=64)
    bio: str = Field(default="", max_length=500)
    photo_url: str = Field(default="", max_length=500)


class ProfileUpdate(BaseModel):
    """Partial update — all fields optional (PATCH semantics)."""
    display_name: Optional[str] = Field(default=None, max_length=64)
    bio: Optional[str] = Field(default=None, max_length=500)
    photo_url: Optional[str] = Field(default=None, max_length=500)


class UserCreate(BaseModel):
    """Payload for POST /auth/register."""
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    display_name: Optional[str] = Field(default=None, max_length=64)


class UserOut(BaseModel):
    id: str
    email: EmailStr
    profile: Profile = Field(default_factory=Profile)
    created_at: datetime


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class LoginRequest(BaseModel):
    email: EmailStr
    password: str
