import httpx
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from ..core.logging import setup_logging
from ..core.config import Settings, settings
from ..services.facturama import FacturamaClient, FacturamaError
from .routers import cfdi, health

logger = setup_logging()


def create_app(app_settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None) -> FastAPI:
    """
    Build the proxy application.

    Args:
        app_settings: Configuration to use (default: settings loaded from the environment)
        transport: Optional httpx transport handed to both Facturama clients

    Returns:
        FastAPI app with production and sandbox clients on ``app.state``
    """
    app_settings = app_settings or settings
    app = FastAPI(
        title="Facturama API",
        description="API para generar y consultar facturas CFDI usando Facturama",
        version="1.0",
        docs_url="/swagger",
    )
    app.state.settings = app_settings
    app.state.facturama = FacturamaClient(app_settings.production_config(), transport=transport, name="production")
    app.state.sandbox_facturama = FacturamaClient(app_settings.sandbox_config(), transport=transport, name="sandbox")

    # Every locally generated error uses the {"error": "..."} envelope
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        logger.warning(f"Validation error on {request.method} {request.url.path}: {errors}")
        if any(err["loc"] and err["loc"][0] == "body" for err in errors):
            message = "Invalid JSON payload"
        else:
            fields = ", ".join(str(err["loc"][-1]) for err in errors if err["loc"])
            message = f"Invalid request parameters: {fields}"
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(FacturamaError)
    async def facturama_exception_handler(request: Request, exc: FacturamaError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    # CORS_ORIGINS can be set in .env as comma-separated list
    allowed_origins = [origin.strip() for origin in app_settings.cors_origins.split(",") if origin.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(cfdi.router)
    return app


app = create_app()
