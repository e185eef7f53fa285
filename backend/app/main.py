import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import alerts, fuel_costs, garage_booking, maintenance, profiles, reservations, rules, vehicles
from app.core.config import settings
from app.core.database import check_database_health, init_db
from app.core.exceptions import register_exception_handlers
from app.core.rate_limit import RateLimitMiddleware
from app.core.redis_client import check_redis_health
from app.services.notifications import AlertNotifier, alert_sweep_loop

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()

    sweep_task = None
    if settings.ALERT_SCHEDULER_ENABLED:
        sweep_task = asyncio.create_task(
            alert_sweep_loop(
                AlertNotifier(),
                settings.ALERT_INITIAL_DELAY_SECONDS,
                settings.ALERT_CHECK_INTERVAL_SECONDS,
            )
        )
        logger.info(
            f"[Auto-notify] Alert checks every {settings.ALERT_CHECK_INTERVAL_SECONDS}s, "
            f"first in {settings.ALERT_INITIAL_DELAY_SECONDS}s"
        )

    yield

    if sweep_task is not None:
        sweep_task.cancel()
        try:
            await sweep_task
        except asyncio.CancelledError:
            pass


app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Fleet management API: vehicles, reservations, maintenance and alerts",
    version="1.0.0",
    lifespan=lifespan,
)

# Throttle the public booking links only
app.add_middleware(
    RateLimitMiddleware,
    path_prefix="/api/garage-booking",
    requests_per_minute=settings.GARAGE_RATE_LIMIT_PER_MINUTE,
    requests_per_hour=settings.GARAGE_RATE_LIMIT_PER_HOUR,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(vehicles.router, prefix="/api/vehicles", tags=["Vehicles"])
app.include_router(reservations.router, prefix="/api/reservations", tags=["Reservations"])
app.include_router(maintenance.router, prefix="/api/maintenance", tags=["Maintenance"])
app.include_router(alerts.router, prefix="/api/maintenance-alerts", tags=["Alerts"])
app.include_router(rules.router, prefix="/api/maintenance-rules", tags=["Maintenance rules"])
app.include_router(garage_booking.router, prefix="/api/garage-booking", tags=["Garage booking"])
app.include_router(fuel_costs.router, prefix="/api/fuel-costs", tags=["Fuel costs"])
app.include_router(profiles.router, prefix="/api", tags=["Profiles"])


@app.get("/")
async def root():
    return {"message": f"{settings.APP_NAME} API", "version": "1.0.0"}


@app.get("/api/health")
def health_check():
    database = check_database_health()
    return {
        "status": "healthy" if database["connected"] else "degraded",
        "database": database,
        "redis": check_redis_health(),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)
