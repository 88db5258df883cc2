import hmac
import logging

from dotenv import load_dotenv
load_dotenv()  # Load .env file before importing settings

from fastapi import FastAPI, BackgroundTasks, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from core.config import settings
from core.rate_limiter import limiter, rate_limit_exceeded_handler, RateLimits
from src.transit_bc.routing.network_loader import lifespan_with_network_loader
from src.transit_bc.routing.network_store import NetworkStore

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    # Settings validation is done automatically in core/config.py on import

    app = FastAPI(
        title="Transit Route Planner API",
        description="Multi-criteria route planning over bus, train and ferry networks",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan_with_network_loader,
    )

    # CORS middleware - Public API, no credentials needed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Register routers
    from adapters.http.api.transit.routers import planner_router
    app.include_router(planner_router, prefix="/api/v1")

    @app.get("/health")
    @limiter.limit(RateLimits.HEALTH)
    async def health_check(request: Request):
        """Health check endpoint.

        Returns 503 until the transit network is loaded into memory.
        This prevents Kubernetes/Docker from routing traffic before the app is ready.
        """
        store = NetworkStore.get_instance()

        if not store.is_loaded:
            return JSONResponse(
                status_code=503,
                content={
                    "status": "loading",
                    "message": "Transit network is being loaded into memory"
                }
            )

        return {
            "status": "healthy",
            "network": {
                "loaded": True,
                "loaded_at": store.loaded_at.isoformat() if store.loaded_at else None,
                "load_time_seconds": round(store.load_time_seconds, 1),
                "stats": store.stats
            }
        }

    @app.post("/admin/reload-network")
    @limiter.limit(RateLimits.ADMIN_RELOAD)
    async def reload_network(
        request: Request,
        background_tasks: BackgroundTasks,
        x_admin_token: str = Header(None, alias="X-Admin-Token")
    ):
        """Reload the transit network without restarting the server.

        The new network is built in a background task. Requests keep using
        the current network until the new one atomically replaces it; if the
        rebuild fails, the current network stays in place.

        Requires X-Admin-Token header for authentication.
        """
        # Verify admin token (using constant-time comparison to prevent timing attacks)
        if not x_admin_token or not settings.ADMIN_TOKEN:
            raise HTTPException(status_code=401, detail="Unauthorized: Missing admin token")
        if not hmac.compare_digest(settings.ADMIN_TOKEN, x_admin_token):
            raise HTTPException(status_code=401, detail="Unauthorized: Invalid admin token")

        from src.transit_bc.routing.network_loader import reload_network as do_reload

        background_tasks.add_task(do_reload)

        return {
            "status": "reload_initiated",
            "message": "Transit network reload started in background"
        }

    return app


app = create_app()
