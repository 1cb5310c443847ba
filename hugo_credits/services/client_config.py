"""Public bootstrap config for the front end: Firebase web app and Google Maps loader."""

from hugo_credits.core.config import Settings


def default_center(settings: Settings) -> dict:
    return {"lat": settings.maps_default_lat, "lng": settings.maps_default_lng}


def loader_options(settings: Settings) -> dict | None:
    """Options for @googlemaps/js-api-loader; None when no API key is configured."""
    if not settings.google_maps_api_key:
        return None
    return {
        "apiKey": settings.google_maps_api_key,
        "version": settings.google_maps_version,
        "libraries": settings.google_maps_libraries,
        "defaultCenter": default_center(settings),
    }


def firebase_web_config(settings: Settings) -> dict:
    return {
        "apiKey": settings.firebase_api_key,
        "authDomain": settings.firebase_auth_domain,
        "projectId": settings.firebase_project_id,
        "storageBucket": settings.firebase_storage_bucket,
        "messagingSenderId": settings.firebase_messaging_sender_id,
        "appId": settings.firebase_app_id,
        "measurementId": settings.firebase_measurement_id,
    }
