"""
auth.py — Authentication routes and identity dependencies.

Routes:
  POST /auth/register  — create new account
  POST /auth/login     — exchange credentials for JWT
  GET  /auth/me        — return current user (requires valid JWT)

Dependencies re-used by other route modules:
  CurrentUser     — 401 unless a valid Bearer token for an active user is sent
  OptionalUserId  — the token's user id, or None for anonymous callers

All errors use HTTPException so FastAPI serialises them as:
  { "detail": "..." }
"""

from datetime import datetime, timezone
from typing import Annotated, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from spotmarket.core.database import get_db
from spotmarket.core.security import (
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from spotmarket.models.user import LoginRequest, Profile, Token, UserCreate, UserOut

router = APIRouter(prefix="/auth", tags=["auth"])

# Reusable bearer extractor (does NOT auto-raise on missing token)
_bearer = HTTPBearer(auto_error=False)
CredDep = Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer)]


# ── Helpers ───────────────────────────────────────────────────────────────────

def doc_to_user_out(doc: dict) -> UserOut:
    return UserOut(
        id=str(doc["_id"]),
        email=doc["email"],
        profile=Profile(**(doc.get("profile") or {})),
        created_at=doc.get("created_at", datetime.now(tz=timezone.utc)),
    )


async def _get_current_user(credentials: CredDep, db=Depends(get_db)) -> UserOut:
    """Validate the Bearer token and load the user it names."""
    cred_error = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token",
        headers={"WWW-Authenticate": "Bearer"},
    )

    if not credentials:
        raise cred_error

    user_id = decode_access_token(credentials.credentials)
    if not user_id:
        raise cred_error

    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    try:
        oid = ObjectId(user_id)
    except InvalidId:
        raise cred_error

    doc = await db["users"].find_one({"_id": oid, "is_active": True})
    if not doc:
        raise cred_error

    return doc_to_user_out(doc)


def _optional_user_id(credentials: CredDep) -> Optional[str]:
    if not credentials:
        return None
    return decode_access_token(credentials.credentials)


CurrentUser = Annotated[UserOut, Depends(_get_current_user)]
OptionalUserId = Annotated[Optional[str], Depends(_optional_user_id)]


# ── Routes ────────────────────────────────────────────────────────────────────

@router.post("/register", response_model=Token, status_code=status.HTTP_201_CREATED)
async def register(payload: UserCreate, db=Depends(get_db)):
    """Register a new user and return a JWT."""
    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    existing = await db["users"].find_one({"email": payload.email})
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )

    display_name = payload.display_name or payload.email.split("@")[0]
    user_doc = {
        "email": payload.email,
        "hashed_password": hash_password(payload.password),
        "profile": Profile(display_name=display_name).model_dump(),
        "created_at": datetime.now(tz=timezone.utc),
        "is_active": True,
    }
    result = await db["users"].insert_one(user_doc)
    user_doc["_id"] = result.inserted_id

    return Token(
        access_token=create_access_token(str(result.inserted_id)),
        user=doc_to_user_out(user_doc),
    )


@router.post("/login", response_model=Token)
async def login(payload: LoginRequest, db=Depends(get_db)):
    """Authenticate with email + password and return a JWT."""
    if db is None:
        raise HTTPException(status_code=503, detail="Database unavailable")

    _cred_err = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Incorrect email or password",
        headers={"WWW-Authenticate": "Bearer"},
    )

    doc = await db["users"].find_one({"email": payload.email, "is_active": True})
    if not doc or not verify_password(payload.password, doc["hashed_password"]):
        raise _cred_err

    return Token(access_token=create_access_token(str(doc["_id"])), user=doc_to_user_out(doc))


@router.get("/me", response_model=UserOut)
async def me(current_user: CurrentUser):
    return current_user
