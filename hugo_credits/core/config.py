from functools import lru_cache
from typing import Any, List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_DEFAULT_CORS = ["http://localhost:5173", "http://localhost:8080"]
_DEFAULT_MAPS_LIBRARIES = ["places", "marker"]


def _parse_list(v: Any, default: List[str]) -> List[str]:
    try:
        if v is None or v == "":
            return default.copy()
        if isinstance(v, list):
            return [x for x in v if isinstance(x, str) and x.strip()]
        s = str(v).strip()
        if not s:
            return default.copy()
        if s.startswith("["):
            import json
            out = json.loads(s)
            return [x for x in out if isinstance(x, str) and x.strip()] or default.copy()
        return [x.strip() for x in s.split(",") if x.strip()] or default.copy()
    except Exception:
        return default.copy()


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # App
    env: str = Field(default="development", description="ENV")
    debug: bool = Field(default=False, description="DEBUG")

    # MongoDB
    mongodb_uri: str = Field(default="mongodb://localhost:27017", alias="MONGODB_URI")
    mongodb_db_name: str = Field(default="proyecto_hugo", alias="MONGODB_DB_NAME")

    # Credits
    storage_backend: str = Field(default="mongo", alias="STORAGE_BACKEND")  # "mongo" | "memory"
    credits_collection: str = Field(default="userCredits", alias="CREDITS_COLLECTION")
    initial_credits: int = Field(default=50, alias="INITIAL_CREDITS")

    # Firebase (web config handed to the front end; project id also checks token audience)
    firebase_project_id: str = Field(default="", alias="FIREBASE_PROJECT_ID")
    firebase_api_key: str = Field(default="", alias="FIREBASE_API_KEY")
    firebase_auth_domain: str = Field(default="", alias="FIREBASE_AUTH_DOMAIN")
    firebase_storage_bucket: str = Field(default="", alias="FIREBASE_STORAGE_BUCKET")
    firebase_messaging_sender_id: str = Field(default="", alias="FIREBASE_MESSAGING_SENDER_ID")
    firebase_app_id: str = Field(default="", alias="FIREBASE_APP_ID")
    firebase_measurement_id: str = Field(default="", alias="FIREBASE_MEASUREMENT_ID")

    # Google Maps JS loader
    google_maps_api_key: str = Field(default="", alias="GOOGLE_MAPS_API_KEY")
    google_maps_version: str = Field(default="weekly", alias="GOOGLE_MAPS_VERSION")
    google_maps_libraries_raw: str = Field(
        default="places,marker",
        alias="GOOGLE_MAPS_LIBRARIES",
        description="Comma-separated or JSON list",
    )
    maps_default_lat: float = Field(default=40.416775, alias="MAPS_DEFAULT_LAT")
    maps_default_lng: float = Field(default=-3.703790, alias="MAPS_DEFAULT_LNG")

    # Sentry
    sentry_dsn: str | None = Field(default=None, alias="SENTRY_DSN")

    # CORS: env as string, exposed as list
    cors_origins_raw: str = Field(
        default="http://localhost:5173,http://localhost:8080",
        alias="CORS_ORIGINS",
        description="Comma-separated or JSON list",
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_list(getattr(self, "cors_origins_raw", None), _DEFAULT_CORS)

    @property
    def google_maps_libraries(self) -> List[str]:
        return _parse_list(getattr(self, "google_maps_libraries_raw", None), _DEFAULT_MAPS_LIBRARIES)


@lru_cache
def get_settings() -> Settings:
    return Settings()
