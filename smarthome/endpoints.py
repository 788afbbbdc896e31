"""Google smart-home fulfillment endpoint and development helpers.

- /fulfillment: intent webhook (guarded by BearerAuthMiddleware)
- /test/devices, /test/auth: check the Deye Cloud connection by hand
"""

import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from smarthome.handler import ERROR_HARD, SmartHomeHandler

logger = logging.getLogger(__name__)

# Router for fulfillment endpoints
router = APIRouter(tags=["smarthome"])

# Router for development endpoints
test_router = APIRouter(prefix="/test", tags=["test"])


def init_smarthome_routes(app: FastAPI, handler: SmartHomeHandler, gateway=None):
    """Attach the intent handler and gateway the fulfillment routes of this app use.

    Args:
        app: The app serving the routes
        handler: The SmartHomeHandler dispatching intents
        gateway: The Deye client, used by the /test endpoints

    Must be called before the app serves requests.
    """
    app.state.handler = handler
    app.state.gateway = gateway


def internal_error_response(request_id, message: str) -> JSONResponse:
    return JSONResponse(
        {"requestId": request_id, "payload": {"errorCode": ERROR_HARD, "debugString": message}},
        status_code=500,
    )


@router.post("/fulfillment")
async def fulfillment(request: Request):
    """Google smart-home fulfillment webhook."""
    request_id = None
    try:
        body = await request.json()
        if not isinstance(body, dict):
            raise ValueError("Fulfillment request body must be a JSON object")
        request_id = body.get("requestId")
        user_id = getattr(request.state, "user_id", None)
        return await request.app.state.handler.handle_request(body, user_id=user_id)
    except Exception as e:
        logger.exception(f"[FULFILLMENT] Error in fulfillment endpoint: {e}")
        return internal_error_response(request_id, str(e))


@test_router.get("/devices")
async def test_devices(request: Request):
    """List devices straight from Deye Cloud (for development)."""
    gateway = request.app.state.gateway
    if gateway is None:
        return JSONResponse({"success": False, "error": "Deye Cloud is not configured"}, status_code=503)
    try:
        devices = await gateway.get_device_list()
    except Exception as e:
        logger.warning(f"[TEST] Device list failed: {e}")
        return JSONResponse({"success": False, "error": str(e)}, status_code=500)
    return {"success": True, "devices": devices}


@test_router.get("/auth")
async def test_auth(request: Request):
    """Authenticate against Deye Cloud (for development)."""
    gateway = request.app.state.gateway
    if gateway is None:
        return JSONResponse({"success": False, "error": "Deye Cloud is not configured"}, status_code=503)
    try:
        token = await gateway.authenticate()
    except Exception as e:
        logger.warning(f"[TEST] Authentication failed: {e}")
        return JSONResponse({"success": False, "error": str(e)}, status_code=500)
    return {"success": True, "message": "Authentication successful", "tokenLength": len(token)}
