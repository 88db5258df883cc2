import logging
import secrets

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class PlannerSettings(BaseSettings):
    # Where the network is loaded from: "database" or "gtfs"
    SCHEDULE_SOURCE: str = "database"
    GTFS_DIR: str = "data/gtfs"
    DEFAULT_FARE: float = 7000

    # Coordinate planning
    ORIGIN_CANDIDATES: int = 3  # Boarding stops tried per request
    MIN_TRIP_DISTANCE_KM: float = 0.2  # Below this, suggest walking
    LONG_WALK_NOTICE_KM: float = 0.5

    # Nearby stops
    NEARBY_RADIUS_KM: float = 1.5
    NEARBY_LIMIT: int = 8

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class WalkingSettings(BaseSettings):
    WALKING_PROVIDER_ENABLED: bool = False
    OSRM_URL: str = "https://router.project-osrm.org/route/v1/foot"
    BROUTER_URL: str = "https://brouter.de/brouter"
    WALKING_REQUEST_TIMEOUT: float = 15.0  # seconds

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


class Settings(BaseSettings):
    # Database - No default password for security
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""  # Required via .env
    POSTGRES_DB: str = "transit_dev"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False  # Default to False for security

    # Admin token for /admin endpoints
    ADMIN_TOKEN: str = ""

    # Rate limiting (memory:// or redis://host:port)
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    RATE_LIMIT_ENABLED: bool = True

    # Planner settings (nested)
    planner: PlannerSettings = PlannerSettings()

    # Walking geometry settings (nested)
    walking: WalkingSettings = WalkingSettings()

    @property
    def DATABASE_URL(self) -> str:
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    def validate_production_settings(self) -> None:
        """Validate critical settings for production environment.

        Call this during application startup.
        Raises ValueError if production settings are invalid.
        """
        errors = []

        if self.is_production:
            # Check POSTGRES_PASSWORD (only needed when the network comes from the database)
            if self.planner.SCHEDULE_SOURCE == "database" and (
                not self.POSTGRES_PASSWORD or self.POSTGRES_PASSWORD == "postgres"
            ):
                errors.append(
                    "POSTGRES_PASSWORD must be set to a secure value in production"
                )

            # Check ADMIN_TOKEN
            if not self.ADMIN_TOKEN or len(self.ADMIN_TOKEN) < 32:
                errors.append(
                    "ADMIN_TOKEN must be set to a secure value (min 32 chars) in production"
                )

            # Check DEBUG is disabled
            if self.DEBUG:
                errors.append("DEBUG must be False in production")

        if self.planner.SCHEDULE_SOURCE not in ("database", "gtfs"):
            errors.append(
                f"SCHEDULE_SOURCE must be 'database' or 'gtfs', got '{self.planner.SCHEDULE_SOURCE}'"
            )

        if errors:
            raise ValueError(
                "Configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            )

    def validate_development_settings(self) -> None:
        """Set sensible defaults for development if not configured."""
        # Use default password for development if not set
        if not self.POSTGRES_PASSWORD:
            self.POSTGRES_PASSWORD = "postgres"
            logger.warning("Using default POSTGRES_PASSWORD for development")

        # Generate admin token for development if not set
        if not self.ADMIN_TOKEN:
            self.ADMIN_TOKEN = secrets.token_urlsafe(32)
            logger.warning(f"Using auto-generated ADMIN_TOKEN for development: {self.ADMIN_TOKEN}")

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


# Create settings instance
settings = Settings()

# Validate based on environment
if settings.is_production:
    settings.validate_production_settings()
else:
    settings.validate_development_settings()
