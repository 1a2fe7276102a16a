from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from docpreview.core.config import Settings, configure_logging
from docpreview.core.layout import configure_layout, load_layout
from docpreview.routes import documents, preview


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    configure_layout(load_layout(settings.layout_path))

    app = FastAPI(title="Document Preview API", version="0.1.0")
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Content-Digest"],
    )

    app.include_router(documents.router, prefix="/api")
    app.include_router(preview.router, prefix="/api")

    @app.get("/", include_in_schema=False)
    async def root() -> JSONResponse:
        """Provide a lightweight landing page for container checks."""
        return JSONResponse(
            {
                "message": "Document Preview API",
                "docs": "/docs",
                "health": "/api/documents",
            }
        )

    return app


app = create_app()
