import secrets

from fastapi import HTTPException, Request, status

from app.core.config import settings

AUTH_COOKIE_VALUE = "1"


def password_matches(candidate: str) -> bool:
    return secrets.compare_digest(candidate.strip().encode(), settings.SITE_PASSWORD.encode())


async def require_auth(request: Request) -> None:
    """Reject requests that did not go through the login form."""

    if request.cookies.get(settings.AUTH_COOKIE_NAME) != AUTH_COOKIE_VALUE:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )


async def require_cron_secret(request: Request) -> None:
    """Bearer check for the scheduler; open when CRON_SECRET is unset."""

    if not settings.CRON_SECRET:
        return
    auth = request.headers.get("Authorization")
    if not auth or not auth.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )
    token = auth.split(" ", 1)[1]
    if not secrets.compare_digest(token.encode(), settings.CRON_SECRET.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid cron secret"
        )
