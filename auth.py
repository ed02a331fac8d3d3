"""
Credentials, identity tokens and the access guard.

Users live in the "user" collection with a bcrypt password hash. Identity
tokens are stateless HS256 JWTs carrying the user id in "sub"; a token is
valid as long as its signature checks out and it has not expired.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, Header
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

import config
from database import create_document, get_db, serialize_doc, to_object_id
from errors import Conflict, Forbidden, InvalidCredentials, Unauthorized
from schemas import User as UserSchema

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=config.BCRYPT_ROUNDS)

PUBLIC_USER_FIELDS = ("id", "name", "email", "role", "avatar_url")


# Utilities

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    if not hashed_password:
        return False
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # unrecognised hash format
        return False


def issue_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    issued_at = datetime.now(timezone.utc)
    expire = issued_at + (expires_delta or timedelta(minutes=config.JWT_EXPIRE_MINUTES))
    to_encode = {"sub": user_id, "iat": issued_at, "exp": expire}
    return jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)


def verify_token(token: str) -> str:
    """Return the user id a token was issued for."""
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise Unauthorized("Token expired")
    except JWTError:
        raise Unauthorized("Invalid token")
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Invalid token")
    return user_id


def user_public(user: Dict[str, Any]) -> Dict[str, Any]:
    """Projection of a user document safe to send to clients."""
    user = serialize_doc(user)
    return {field: user.get(field) for field in PUBLIC_USER_FIELDS}


# Credential store

def register_user(db: Database, name: str, email: str, password: str) -> Dict[str, Any]:
    email = email.lower()
    if db["user"].find_one({"email": email}):
        raise Conflict("User already exists")
    user_model = UserSchema(name=name, email=email, password_hash=hash_password(password), role="user")
    try:
        user_id = create_document(db, "user", user_model)
    except DuplicateKeyError:
        raise Conflict("User already exists")
    logger.info("Registered user %s", user_id)
    user = db["user"].find_one({"_id": to_object_id(user_id)})
    return {"token": issue_token(user_id), "user": user_public(user)}


def authenticate(db: Database, email: str, password: str) -> Dict[str, Any]:
    user = db["user"].find_one({"email": email.lower()})
    # same error for unknown email and wrong password
    if not user or not verify_password(password, user.get("password_hash", "")):
        raise InvalidCredentials()
    return {"token": issue_token(str(user["_id"])), "user": user_public(user)}


def find_user(db: Database, user_id: str) -> Optional[Dict[str, Any]]:
    obj_id = to_object_id(user_id)
    if obj_id is None:
        return None
    return db["user"].find_one({"_id": obj_id})


def admin_ids(db: Database) -> list:
    return [str(doc["_id"]) for doc in db["user"].find({"role": "admin"}, {"_id": 1})]


# Access guard

def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: Database = Depends(get_db),
) -> Dict[str, Any]:
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized("Not authenticated")
    token = authorization.split(" ", 1)[1].strip()
    user_id = verify_token(token)
    user = find_user(db, user_id)
    if not user:
        raise Unauthorized("User not found")
    return serialize_doc(user)


def require_admin(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if current_user.get("role") != "admin":
        raise Forbidden("Admin access required")
    return current_user
