from fastapi import APIRouter, Request

from hugo_credits.services import client_config

router = APIRouter()


@router.get("")
async def get_client_config(request: Request):
    """Public Firebase web config and maps loader options for the front end."""
    settings = request.app.state.settings
    return {
        "firebase": client_config.firebase_web_config(settings),
        "maps": client_config.loader_options(settings),
    }
