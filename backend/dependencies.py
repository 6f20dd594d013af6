from functools import lru_cache

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session
from supabase import create_client

import config
from database import SessionLocal
from security import decode_access_token
from stores import SqlStore, Store, SupabaseStore

bearer_scheme = HTTPBearer()


# Database dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache(maxsize=1)
def get_supabase_client():
    if not config.SUPABASE_URL or not config.SUPABASE_KEY:
        raise HTTPException(status_code=503, detail="Supabase is not configured")
    return create_client(config.SUPABASE_URL, config.SUPABASE_KEY)


def get_store(db: Session = Depends(get_db)) -> Store:
    """The ``Store`` selected by ``STORE_BACKEND`` for one request.

    The SQL session is lazy, so the Supabase backend never opens a connection.
    """
    if config.STORE_BACKEND == "supabase":
        return SupabaseStore(get_supabase_client())
    return SqlStore(db)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
    store: Store = Depends(get_store),
):
    try:
        payload = decode_access_token(credentials.credentials)
        user_id = int(payload.get("sub"))
    except (jwt.PyJWTError, TypeError, ValueError):
        raise HTTPException(status_code=401, detail="Invalid authentication credentials")

    user = store.get_user(user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="User not found")
    return user
