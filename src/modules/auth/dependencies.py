import secrets

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.config.settings import settings

_bearer = HTTPBearer(auto_error=False)


def _accepted_tokens() -> list[str]:
    # Scheduler secret, plus the admin token for manual triggers when set
    return [token for token in (settings.cron_secret, settings.admin_api_token) if token]


async def require_trigger_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> None:
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    presented = credentials.credentials.encode()
    if not any(secrets.compare_digest(presented, token.encode()) for token in _accepted_tokens()):
        raise HTTPException(status_code=401, detail="Unauthorized")
