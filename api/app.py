from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from api.routes import decode as decode_routes
from posedecode import __version__


def create_app() -> FastAPI:
    app = FastAPI(
        title="Pose Decode API",
        description="REST API wrapping posedecode for multi-person pose decoding of network outputs.",
        version=__version__,
    )
    app.include_router(decode_routes.router)

    @app.get("/", include_in_schema=False)
    async def redirect_to_docs() -> RedirectResponse:
        return RedirectResponse(url="/docs")

    return app


app = create_app()
