"""
LeftoverSaver — JWT Authentication Middleware
Validates Bearer token on all protected routes; returns 401 on failure.
Browsing (GET on offers and stores) stays anonymous.
"""
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from jose import JWTError

from leftoversaver.core.security import decode_token

# Paths that do NOT require authentication
PUBLIC_PATHS = {
    "/health",
    "/metrics",
    "/",
    "/docs",
    "/openapi.json",
}

# GET-only public prefixes
PUBLIC_READ_PREFIXES = ("/offers", "/stores/")

# Authenticated-only paths below a public prefix
PRIVATE_SUFFIXES = ("/bookings",)


def is_public(method: str, path: str) -> bool:
    if path in PUBLIC_PATHS or path.startswith("/metrics"):
        return True
    if method == "GET" and path.startswith(PUBLIC_READ_PREFIXES):
        return path != "/stores/me" and not path.rstrip("/").endswith(PRIVATE_SUFFIXES)
    return False


class JWTAuthMiddleware(BaseHTTPMiddleware):
    """
    Intercepts every request. Validates JWT Bearer token.
    Attaches decoded claims to request.state.user on success.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return await call_next(request)

        if is_public(request.method, request.url.path):
            return await call_next(request)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return JSONResponse(
                status_code=401,
                content={"detail": "Missing or invalid Authorization header. Expected: Bearer <token>"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        token = auth_header.split(" ", 1)[1]
        try:
            claims = decode_token(token)
        except JWTError as exc:
            return JSONResponse(
                status_code=401,
                content={"detail": f"Invalid or expired JWT: {str(exc)}"},
                headers={"WWW-Authenticate": "Bearer"},
            )

        if not claims.get("sub"):
            return JSONResponse(
                status_code=401,
                content={"detail": "JWT is missing the 'sub' claim."},
                headers={"WWW-Authenticate": "Bearer"},
            )

        request.state.user = claims
        return await call_next(request)
