from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request, status

from wild_oasis.booking.gateway import Authorizer


def get_authorizer_factory():  # pragma: no cover - overridden in main
    raise RuntimeError("Authorizer factory is not configured")


def bearer_token(authorization: str | None) -> str:
    if not authorization:
        return ""
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


async def require_staff_token(
    request: Request,
    authorization: str | None = Header(default=None),
) -> str:
    # Preflight requests are answered by the CORS middleware
    if request.method == "OPTIONS":
        return ""
    token = bearer_token(authorization)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing access token")
    return token


async def staff_authorizer(
    token: str = Depends(require_staff_token),
    factory=Depends(get_authorizer_factory),
) -> Authorizer:
    return factory(token)


__all__ = ["bearer_token", "require_staff_token", "staff_authorizer", "get_authorizer_factory"]
