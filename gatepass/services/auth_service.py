# =======================================================================================
# gatepass/services/auth_service.py - Admin Authentication
# =======================================================================================
from datetime import timedelta
from typing import Any, Dict, Optional

import jwt
from passlib.context import CryptContext
from sqlalchemy import insert, select
from sqlalchemy.engine import Connection

from ..config import config
from ..database import fetch_one
from ..models.tables import admins
from ..utils.exceptions import AuthenticationError, InvalidStateError, ValidationError
from ..utils.validators import utcnow

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AuthService:
    """Handles admin authentication (username/password, bearer tokens)."""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None,
                 token_ttl_minutes: Optional[int] = None):
        self.secret = secret or config.JWT_SECRET
        self.algorithm = algorithm or config.JWT_ALGORITHM
        self.token_ttl = timedelta(minutes=token_ttl_minutes or config.ACCESS_TOKEN_TTL_MINUTES)

    def hash_password(self, password: str) -> str:
        return pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return pwd_context.verify(plain_password, hashed_password)

    def create_admin(self, conn: Connection, username: str, password: str) -> int:
        if not username or not username.strip() or not password:
            raise ValidationError("Name and password are required")
        username = username.strip()
        existing = fetch_one(conn, select(admins.c.id).where(admins.c.username == username))
        if existing:
            raise InvalidStateError("Admin with this name already exists")

        result = conn.execute(
            insert(admins).values(
                username=username,
                password_hash=self.hash_password(password),
                created_at=utcnow(),
            )
        )
        return result.inserted_primary_key[0]

    def authenticate_admin(
        self, conn: Connection, username: str, password: str
    ) -> Optional[Dict[str, Any]]:
        row = fetch_one(
            conn,
            select(admins.c.id, admins.c.username, admins.c.password_hash)
            .where(admins.c.username == (username or "").strip()),
        )
        if not row:
            return None

        if not self.verify_password(password or "", row["password_hash"]):
            return None

        return {"id": row["id"], "username": row["username"]}

    def create_access_token(self, admin_id: int, username: str) -> str:
        now = utcnow()
        payload = {
            "sub": str(admin_id),
            "username": username,
            "iat": now,
            "exp": now + self.token_ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.PyJWTError as e:
            raise AuthenticationError(f"Invalid or expired token: {e}") from e
        return {"id": int(payload["sub"]), "username": payload.get("username")}
