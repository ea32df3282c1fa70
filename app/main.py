"""Main FastAPI application module."""

from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from starlette import status

from app.api.v1.router import router as v1_router
from app.core.config import settings
from app.core.events import lifespan
from app.middleware.correlation import CorrelationMiddleware
from app.middleware.errors import ErrorHandlingMiddleware, register_exception_handlers
from app.middleware.metrics import MetricsMiddleware

app = FastAPI(
    title=settings.app_name,
    description="Users and geographic regions with geocoded locations",
    version=settings.version,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    default_response_class=JSONResponse,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Middleware added last runs first:
# 1. Error handling (outermost - renders anything left unhandled)
# 2. Metrics
# 3. Correlation (adds request ID)
# 4. CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
    max_age=600,
)
app.add_middleware(CorrelationMiddleware)
app.add_middleware(MetricsMiddleware)
app.add_middleware(ErrorHandlingMiddleware)


@app.get("/", include_in_schema=False)
async def root_redirect() -> Response:
    """Redirect root path to docs."""
    return RedirectResponse(url="/docs", status_code=status.HTTP_307_TEMPORARY_REDIRECT)


app.include_router(v1_router, prefix=settings.api_prefix)
