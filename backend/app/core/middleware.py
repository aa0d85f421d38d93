from collections.abc import Sequence

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from app.api.dto.response_format import ErrorResponse
from app.core.settings import get_settings
settings = get_settings()


class MaxBodySizeMiddleware(BaseHTTPMiddleware):
    """Refuse les corps de requête trop volumineux (les entrées du journal sont du texte court)."""

    def __init__(self, app, max_body_size: int, exclude_paths: Sequence[str] = ()):
        super().__init__(app)
        self.max_body_size = max_body_size
        self.exclude_paths = exclude_paths

    async def dispatch(self, request, call_next):
        for p in self.exclude_paths:
            if request.url.path.startswith(p):
                return await call_next(request)

        cl = request.headers.get("content-length")
        if cl is not None:
            try:
                too_large = int(cl) > self.max_body_size
            except ValueError:
                # Content-Length invalide → on laisse passer, la validation fera le tri
                too_large = False
            if too_large:
                return JSONResponse(
                    ErrorResponse.from_detail(
                        f"Request body too large (>{self.max_body_size // settings.one_kb} KB).",
                        code="HTTP_413",
                    ).model_dump(),
                    status_code=413,
                )
        return await call_next(request)
