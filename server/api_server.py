"""FastAPI application entry point for md_preview_bridge.

A thin browser shim forwards link activations and host API responses to this
server; the server resolves, fetches and classifies the document and answers
with a preview or the URL of the native download.

Usage:
    python -m server.api_server
"""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from server.core.PageCacheRegistry import PageCacheRegistry
from server.core.RequestHost import SessionRegistry
from server.routers.PreviewRouter import router as preview_router
from services.md_preview.MarkdownRenderer import MarkdownRenderer
from services.md_preview.NameIndexCache import NameIndexCache
from services.md_preview.PreviewService import PreviewService
from services.md_preview.ResolutionChain import ResolutionChain
from services.md_preview.SaveService import SaveService
from shared.clients.render.RenderClientManager import RenderClientManager
from shared.clients.storage.StorageClientManager import StorageClientManager
from shared.helper.HelperConfig import HelperConfig
from shared.logging.logging_setup import setup_logging

app_version = os.getenv("APP_VERSION", "unknown")


def create_app(
    helper_config: HelperConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the API application.

    Args:
        helper_config (HelperConfig | None): Configuration to use. Logging is set up and a new one created if None.
        transport (httpx.AsyncBaseTransport | None): Transport for the storage client, e.g. a mock in tests.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        # when the app starts
        config = helper_config or HelperConfig(logger=setup_logging())
        logging = config.get_logger()
        app.state.helper_config = config

        storage_client = StorageClientManager(helper_config=config).get_client()
        render_manager = RenderClientManager(helper_config=config)

        save_service = SaveService(helper_config=config, storage_client=storage_client)
        renderer = MarkdownRenderer(
            helper_config=config,
            render_client=render_manager.get_client(),
            fallback_client=render_manager.get_fallback_client(),
        )
        # the server is shared by many users, so names are only indexed per page
        resolution_chain = ResolutionChain(helper_config=config, storage_client=storage_client, cache=NameIndexCache())

        app.state.storage_client = storage_client
        app.state.page_caches = PageCacheRegistry()
        app.state.session_registry = SessionRegistry()
        app.state.preview_service = PreviewService(
            helper_config=config,
            storage_client=storage_client,
            resolution_chain=resolution_chain,
            save_service=save_service,
            renderer=renderer,
        )

        await storage_client.boot(transport=transport)
        logging.info(
            "Storage client '%s' booted against %s, rendering with '%s'.",
            storage_client.get_engine_name(),
            storage_client.build_url(""),
            render_manager.get_client().get_engine_name(),
        )

        # while the app is running...
        yield

        # when the app shuts down
        logging.info("Shutting down, closing storage client...")
        await storage_client.close()

    app = FastAPI(
        title="md_preview_bridge",
        description=(
            "Replaces Markdown downloads in a cloud file-sharing UI with an in-page "
            "preview and editor. Link activations are sent to POST /preview/activate; "
            "host listing responses can be forwarded to POST /preview/observe."
        ),
        version=app_version,
        lifespan=lifespan,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(preview_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("API_SERVER_PORT", "8000")))
