from datetime import datetime, timedelta, timezone
from typing import Optional, List, Dict, Any

import jwt
from fastapi import HTTPException, Depends, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from passlib.context import CryptContext

from ..core.config import settings
from ..repositories import admins as admins_repo

# sha256_crypt sidesteps the passlib/bcrypt version incompatibilities
pwd_context = CryptContext(schemes=["sha256_crypt"], deprecated="auto")
bearer_scheme = HTTPBearer(auto_error=False)

ALLOWED_ROLES = [
    "admin",
    "handle_customer",
    "super_admin",
]

# Which roles may use which part of the console. Routers only gate through this table.
CAPABILITIES: Dict[str, List[str]] = {
    "dashboard": ["admin", "handle_customer", "super_admin"],
    "leads": ["admin", "handle_customer", "super_admin"],
    "analytics": ["admin", "handle_customer", "super_admin"],
    "handle_customers": ["handle_customer", "super_admin"],
    "settings": ["super_admin"],
}

def hash_password(password: str) -> str:
    return pwd_context.hash(password)

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def create_access_token(subject: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = subject.copy()
    now = datetime.now(tz=timezone.utc)
    expire = now + (expires_delta or settings.access_token_expires)
    to_encode.update({"exp": expire, "iat": now})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt

def decode_access_token(token: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")

async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme)):
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    payload = decode_access_token(credentials.credentials)

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    try:
        admin_id = int(user_id)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")

    user = await admins_repo.get_admin(admin_id)
    if not user or not user["is_active"]:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Inactive or missing user")
    return user

def require_roles(roles: List[str]):
    invalid = [r for r in roles if r not in ALLOWED_ROLES]
    if invalid:
        raise ValueError(f"Invalid roles: {invalid}")

    async def _dep(user = Depends(get_current_user)):
        if user["role"] not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return user
    return _dep

def require_capability(name: str):
    if name not in CAPABILITIES:
        raise ValueError(f"Unknown capability: {name}")
    return require_roles(CAPABILITIES[name])

def can(user: Dict[str, Any], name: str) -> bool:
    return user.get("role") in CAPABILITIES.get(name, [])
