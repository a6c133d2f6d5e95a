from fastapi import APIRouter, HTTPException, Request, Response, status
from loguru import logger

from app.core.config import settings
from app.core.deps import AUTH_COOKIE_VALUE, password_matches
from app.schemas.auth import LoginRequest, LoginResponse

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, response: Response, request: Request) -> LoginResponse:
    if not password_matches(payload.password):
        logger.bind(remote_addr=(request.client.host if request.client else None)).warning(
            "login_failed"
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password"
        )

    response.set_cookie(
        key=settings.AUTH_COOKIE_NAME,
        value=AUTH_COOKIE_VALUE,
        httponly=True,
        secure=settings.COOKIE_SECURE,
        samesite=settings.COOKIE_SAMESITE,
        max_age=settings.AUTH_COOKIE_MAX_AGE_SEC,
        path="/",
    )
    return LoginResponse()


@router.post("/logout", response_model=LoginResponse)
async def logout(response: Response) -> LoginResponse:
    response.delete_cookie(settings.AUTH_COOKIE_NAME, path="/")
    return LoginResponse()
