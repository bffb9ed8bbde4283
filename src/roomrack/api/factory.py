"""FastAPI application factory."""

from fastapi import FastAPI, Request, Response

from roomrack.observability.correlation import CORRELATION_ID_HEADER, correlation_scope

from .routers import public


def create_app() -> FastAPI:
    """Create the rack API application.

    Every request runs inside a correlation scope: the X-Correlation-ID
    header is reused when present, generated otherwise, and echoed back.
    """
    app = FastAPI(
        title="Room Rack",
        docs_url=None,
        redoc_url=None,
    )

    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next) -> Response:
        with correlation_scope(request.headers.get(CORRELATION_ID_HEADER)) as cid:
            response = await call_next(request)
            response.headers[CORRELATION_ID_HEADER] = cid
            return response

    app.include_router(public.router)

    return app
