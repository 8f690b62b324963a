import logging

from fastapi import APIRouter, HTTPException, Depends, Response, status

from ..schemas.auth import LoginRequest, Session, SignUpRequest, TokenResponse, UserPublic
from ..core.security import (
    CAPABILITIES,
    can,
    hash_password,
    verify_password,
    create_access_token,
    get_current_user,
)
from ..repositories import admins as admins_repo

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

# ==============================
# SIGNUP
# ==============================
@router.post("/register", response_model=UserPublic, status_code=status.HTTP_201_CREATED)
async def register(payload: SignUpRequest):
    existing_user = await admins_repo.get_admin_credentials(payload.email)
    if existing_user:
        raise HTTPException(status_code=409, detail="Email already registered")

    # First account becomes super admin
    is_first_user = await admins_repo.count_admins() == 0
    role = "super_admin" if is_first_user else "admin"

    try:
        created_user = await admins_repo.create_admin(
            name=payload.name,
            email=payload.email,
            password_hash=hash_password(payload.password),
            role=role,
        )
    except Exception:
        logger.exception("Failed to register %s", payload.email)
        raise HTTPException(status_code=500, detail="Failed to register account")

    logger.info("Registered admin %s with role %s", created_user["id"], role)
    return UserPublic(**created_user)


# ==============================
# LOGIN
# ==============================
@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest):
    user = await admins_repo.get_admin_credentials(payload.email)

    if not user or not verify_password(payload.password, user["password_hash"]):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    if not user["is_active"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled"
        )

    token = create_access_token({"sub": str(user["id"]), "role": user["role"]})
    return TokenResponse(access_token=token)


# ==============================
# SESSION
# ==============================
@router.get("/me", response_model=Session)
async def me(current_user=Depends(get_current_user)):
    return Session(
        user=UserPublic(**current_user),
        capabilities=[name for name in CAPABILITIES if can(current_user, name)],
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(current_user=Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy
    logger.info("Admin %s signed out", current_user["id"])
    return Response(status_code=status.HTTP_204_NO_CONTENT)
