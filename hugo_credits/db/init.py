import certifi
from motor.motor_asyncio import AsyncIOMotorClient

from hugo_credits.core.config import Settings


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


def create_mongo_client(settings: Settings) -> AsyncIOMotorClient:
    # tz_aware so transaction dates come back as UTC datetimes
    kwargs = {"tz_aware": True}
    if _use_tls(settings.mongodb_uri):
        kwargs["tlsCAFile"] = certifi.where()
        kwargs["tlsDisableOCSPEndpointCheck"] = True
    return AsyncIOMotorClient(settings.mongodb_uri, **kwargs)
