"""
Dependency injection for FastAPI endpoints.
"""
from functools import lru_cache
from typing import Generator, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from app.core.agents.quiz.fake_factory import FakeQuestionFactory
from app.core.agents.quiz.question_generator import QuestionGenerator
from app.core.config import settings
from app.core.permissions import UserContext
from app.core.security import decode_token
from app.db.base import SessionLocal
from app.services.file_service import FileService

# tokens are issued by the identity provider, tokenUrl only feeds the OpenAPI docs
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=settings.TOKEN_URL)


def get_db() -> Generator:
    """
    Dependency for database session.

    Yields:
        Database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_user(token: str = Depends(oauth2_scheme)) -> UserContext:
    """
    Get the caller's identity from the JWT bearer token.

    Args:
        token: JWT token

    Returns:
        User id and roles from the token claims

    Raises:
        HTTPException: If token is invalid or has no subject
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    payload = decode_token(token)
    if payload is None:
        raise credentials_exception

    user_id: Optional[str] = payload.get("sub")
    if not user_id:
        raise credentials_exception

    roles = payload.get("roles") or []
    if not isinstance(roles, list):
        roles = [roles]
    return UserContext(user_id=str(user_id), roles=frozenset(str(r) for r in roles))


@lru_cache
def get_file_service() -> FileService:
    """Shared object storage client."""
    return FileService()


def get_question_generator(request: Request) -> Optional[QuestionGenerator]:
    """Question generator built at startup; None when AI is not configured."""
    return getattr(request.app.state, "question_generator", None)


def get_question_factory() -> FakeQuestionFactory:
    """Fresh deterministic question factory per request."""
    return FakeQuestionFactory()
