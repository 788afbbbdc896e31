"""Deye Google Home bridge - FastAPI application.

This server links a Deye Cloud account to Google Home:
- OAuth 2.0 account linking (/auth/authorize, /auth/token) via oauth/
- Smart-home fulfillment webhook (/fulfillment) via smarthome/
- Deye Cloud access through deye/client.py
- Development checks (/test/devices, /test/auth)

Credentials live in memory only; restarting the process unlinks every
account until Google refreshes the link.
"""
import logging

from fastapi import FastAPI

from config import Config, load_config
from deye.client import DeyeCloudClient
from logging_config import setup_logging
from oauth.endpoints import init_oauth_routes, router as oauth_router
from oauth.middleware import BearerAuthMiddleware
from oauth.server import OAuthServer
from oauth.stores import CredentialStore, InMemoryCredentialStore
from smarthome.endpoints import init_smarthome_routes, router as smarthome_router, test_router
from smarthome.gateway import DeviceGateway, UnconfiguredGateway
from smarthome.handler import SmartHomeHandler

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


def create_deye_client(config: Config) -> DeyeCloudClient | None:
    """Build the Deye Cloud client, or None without credentials."""
    if not config.has_deye_credentials():
        return None
    return DeyeCloudClient(
        app_id=config.deye_app_id,
        app_secret=config.deye_app_secret,
        email=config.deye_email,
        password=config.deye_password,
        base_url=config.deye_api_base_url,
    )


def create_app(
    config: Config | None = None,
    gateway: DeviceGateway | None = None,
    store: CredentialStore | None = None,
) -> FastAPI:
    """Wire the OAuth server, intent handler and routes into an app."""
    config = config or load_config()

    if gateway is None:
        gateway = create_deye_client(config)
    if gateway is None:
        logger.warning("[STARTUP] Deye Cloud credentials missing - device intents will fail")

    if store is None:
        store = InMemoryCredentialStore(
            code_ttl_seconds=config.auth_code_ttl_seconds,
            access_token_ttl_seconds=config.access_token_ttl_seconds,
            refresh_token_ttl_seconds=config.refresh_token_ttl_seconds,
        )

    if config.uses_default_client_secret():
        logger.warning("[STARTUP] OAUTH_CLIENT_SECRET not set - using the default secret")

    oauth_server = OAuthServer(
        client_id=config.oauth_client_id,
        client_secret=config.oauth_client_secret,
        store=store,
        subject=config.agent_user_id,
    )
    handler = SmartHomeHandler(gateway or UnconfiguredGateway(), default_agent_user_id=config.agent_user_id)

    app = FastAPI(
        title="Deye Google Home Integration",
        description="Google smart-home fulfillment and account linking for Deye Cloud devices",
        version=VERSION,
    )

    app.add_middleware(BearerAuthMiddleware, oauth_server=oauth_server)

    init_oauth_routes(app, oauth_server)
    app.include_router(oauth_router)

    init_smarthome_routes(app, handler, gateway)
    app.include_router(smarthome_router)
    if config.enable_test_endpoints:
        app.include_router(test_router)

    @app.get("/")
    async def root():
        """Root endpoint with service info."""
        return {
            "status": "ok",
            "service": "Deye Google Home Integration",
            "version": VERSION,
            "endpoints": {
                "authorize": "/auth/authorize",
                "token": "/auth/token",
                "fulfillment": "/fulfillment",
            },
        }

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "service": "deye-google-home",
            "deye_configured": gateway is not None,
        }

    logger.info(f"[STARTUP] OAuth client_id: {config.oauth_client_id}")
    return app


_config = load_config()
setup_logging(level=_config.log_level, log_format=_config.log_format)
app = create_app(_config)


# ============== Main Entry Point ==============

if __name__ == "__main__":
    import uvicorn
    logger.info(f"Deye Google Home Integration server running on port {_config.port}")
    logger.info(f"Fulfillment endpoint: http://localhost:{_config.port}/fulfillment")
    logger.info(f"OAuth authorize endpoint: http://localhost:{_config.port}/auth/authorize")
    logger.info(f"OAuth token endpoint: http://localhost:{_config.port}/auth/token")
    uvicorn.run(app, host=_config.host, port=_config.port)
