from typing import List, Optional
from fastapi import Request, status
from starlette.middleware.base import BaseHTTPMiddleware
from gamekeys.auth.dependencies import Authentication
from gamekeys.common.constants import request_id_ctx
from gamekeys.common.utils import build_error, json_error
from gamekeys.middlewares.constants import logger


# identity lives with the external provider, so this only verifies the bearer token and never touches the db.
# requests without a token pass through as anonymous, routes decide whether they need a user.
class AuthenticationMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, *, skip_paths: Optional[List[str]] = None):
        super().__init__(app)
        self.skip_paths = skip_paths or []
        self.authenticate = Authentication(auto_error=False)

    async def dispatch(self, request: Request, call_next):

        request.state.user_identifier = None
        request.state.user_email = None

        if any(request.url.path.startswith(p) for p in self.skip_paths):
            return await call_next(request)

        try:
            auth_token = await self.authenticate(request)
        except Exception as e:
            reason = getattr(e, "detail", "Missing or Invalid Auth Headers")
            logger.warning("auth.middleware.failed", extra={
                "reason": reason,
                "path": request.url.path,
                "method": request.method
            })
            payload = build_error(code="INVALID_AUTH", details={"message":"Missing or Invalid Auth Headers"},
                                  request_id=request_id_ctx.get())
            return json_error(payload, status_code=status.HTTP_401_UNAUTHORIZED)

        if auth_token:
            request.state.user_identifier = str(auth_token["sub"])
            request.state.user_email = auth_token.get("email")
            logger.debug("auth.middleware.success", extra={
                "user_id": request.state.user_identifier,
                "path": request.url.path
            })

        return await call_next(request)
