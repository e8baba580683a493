from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from mealbattle.app.core.config import get_settings
from mealbattle.app.db.session import get_db
from mealbattle.app.schemas.auth import CurrentUser
from mealbattle.app.services.document_store import DocumentStore
from mealbattle.app.services.llm_client import LLMProxyTextGenerator, TextGenerator

security = HTTPBearer(auto_error=True)


def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security)) -> CurrentUser:
    settings = get_settings()
    try:
        payload = jwt.decode(credentials.credentials, settings.auth_secret_key, algorithms=[settings.auth_algorithm])
    except JWTError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    sub = payload.get("sub")
    if not sub:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    return CurrentUser(id=str(sub), email=payload.get("email"))


def get_db_session(db: Session = Depends(get_db)) -> Session:
    return db


def get_document_store(db: Session = Depends(get_db_session)) -> DocumentStore:
    return DocumentStore(db)


def get_text_generator() -> TextGenerator:
    try:
        return LLMProxyTextGenerator.from_settings(get_settings())
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))


def require_admin_secret(
    admin_secret: Optional[str] = Header(default=None, convert_underscores=False, alias="X-Admin-Secret"),
) -> None:
    settings = get_settings()
    if not admin_secret or admin_secret != settings.admin_secret:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid admin secret")
