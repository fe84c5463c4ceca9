import logging
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from swimtrackr.config.settings import settings
from swimtrackr.core.errors import GENERIC_ERROR_MESSAGE, SwimTrackrError
from swimtrackr.core.rate_limit import limiter
from swimtrackr.modules.auth import routes as auth_routes
from swimtrackr.modules.profiles import routes as profiles_routes
from swimtrackr.modules.facilities import routes as facilities_routes
from swimtrackr.modules.curriculum import routes as curriculum_routes
from swimtrackr.modules.students import routes as students_routes
from swimtrackr.modules.sessions import routes as sessions_routes
from swimtrackr.modules.progress import routes as progress_routes
from swimtrackr.modules.dashboard import routes as dashboard_routes
from swimtrackr.modules.waitlist import routes as waitlist_routes
from swimtrackr.modules.health import routes as health_routes

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    redirect_slashes=False,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(SwimTrackrError)
async def swimtrackr_error_handler(request: Request, exc: SwimTrackrError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_content(), headers=exc.headers)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    if settings.is_production:
        return JSONResponse(status_code=500, content={"detail": GENERIC_ERROR_MESSAGE})
    return JSONResponse(status_code=500, content={"detail": str(exc)})


class SecurityHeadersMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message):
            if message["type"] == "http.response.start":
                message.setdefault("headers", [])
                message["headers"].extend([
                    (b"X-Content-Type-Options", b"nosniff"),
                    (b"X-Frame-Options", b"DENY"),
                    (b"Referrer-Policy", b"strict-origin-when-cross-origin"),
                ])
            await send(message)

        await self.app(scope, receive, send_with_headers)


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.get_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Application API
app.include_router(auth_routes.router, prefix="/api/v1")
app.include_router(profiles_routes.router, prefix="/api/v1")
app.include_router(facilities_routes.router, prefix="/api/v1")
app.include_router(curriculum_routes.router, prefix="/api/v1")
app.include_router(students_routes.router, prefix="/api/v1")
app.include_router(sessions_routes.router, prefix="/api/v1")
app.include_router(progress_routes.router, prefix="/api/v1")
app.include_router(dashboard_routes.router, prefix="/api/v1")

# Public endpoints used by the landing page and uptime checks
app.include_router(waitlist_routes.router, prefix="/api")
app.include_router(health_routes.router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    logger.info(f"Application startup ({settings.environment})")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown")


@app.get("/")
async def root():
    return {"message": "Welcome to swimtrackr", "status": "healthy"}
