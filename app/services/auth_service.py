import os
import hmac
import logging
import secrets
from typing import List, Optional
from fastapi import HTTPException, Security, status
from fastapi.security import APIKeyHeader
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

def load_server_tokens() -> List[str]:
    """
    Tokens minigame servers present in the Authorization header.
    Without SERVER_TOKENS a random one is generated so the service never runs open.
    """
    raw = os.getenv("SERVER_TOKENS", "")
    tokens = [token.strip() for token in raw.split(",") if token.strip()]
    if not tokens:
        token = secrets.token_urlsafe(48)
        logger.warning(f"SERVER_TOKENS is not set, generated upload token for this run: {token}")
        tokens = [token]
    return tokens

SERVER_TOKENS = load_server_tokens()

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

def is_valid_token(token: Optional[str], tokens: Optional[List[str]] = None) -> bool:
    if not token:
        return False
    if token.lower().startswith("bearer "):
        token = token[7:].strip()
    return any(hmac.compare_digest(token.encode(), known.encode()) for known in (tokens or SERVER_TOKENS))

def require_server_token(authorization: Optional[str] = Security(authorization_header)) -> str:
    if not is_valid_token(authorization):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid server token")
    return authorization
