import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from orstock.config import get_settings
from orstock.database import engine, Base
from orstock.routers import pages, stock, users, time_gate
from orstock.routers import auth as auth_router
import orstock.models  # noqa: F401  (registers tables on Base.metadata)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database ready")
    yield
    # Shutdown
    await engine.dispose()


app = FastAPI(
    title="OR Stock",
    description="Operating-room cabinet stock tracking",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class FreshStockMiddleware(BaseHTTPMiddleware):
    """Marks responses no-store so stock tables and pages are always refetched."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Cache-Control", "no-store, max-age=0")
        response.headers.setdefault("Pragma", "no-cache")
        return response


app.add_middleware(FreshStockMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse({"error": "Invalid request body"}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("%s %s failed", request.method, request.url.path)
    return JSONResponse({"error": str(exc) or "Internal server error"}, status_code=500)


app.include_router(auth_router.router, prefix="/api/auth", tags=["Auth"])
app.include_router(stock.router, prefix="/api/stock", tags=["Stock"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(time_gate.router, prefix="/api/time-gate", tags=["Time gate"])
app.include_router(pages.router, tags=["Pages"])


@app.get("/api/health")
async def health_check():
    return {"status": "healthy", "service": "or-stock"}
