from fastapi import Depends, HTTPException, Security, status
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from streakhub.constants import API_KEY, API_KEY_HEADER, USER_ID_HEADER
from streakhub.database import get_db
from streakhub.models import User
from streakhub.repositories.group_repository import UserRepository

# Sessions are issued by the account service; it forwards the signed-in user's ID
api_key_header = APIKeyHeader(name=API_KEY_HEADER, auto_error=False)
user_id_header = APIKeyHeader(name=USER_ID_HEADER, auto_error=False)


async def verify_api_key(api_key: str = Security(api_key_header)):
    """Verify API key for authentication"""
    if not api_key or api_key != API_KEY:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API Key"
        )
    return api_key


def get_current_user(
    user_id: str = Security(user_id_header),
    db: Session = Depends(get_db)
) -> User:
    """Resolve the acting user from the forwarded user ID header"""
    if not user_id or not user_id.isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or malformed user ID"
        )
    user = UserRepository.get_by_id(db, int(user_id))
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unknown user"
        )
    return user
