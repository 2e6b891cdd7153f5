"""FastAPI application for designing, deploying and chatting with agent systems."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware

from orchestra.lifecycle.deployer import SystemDeployer
from orchestra.lifecycle.designer import SystemDesigner
from orchestra.models.agent_system import SystemStatus
from orchestra.persistence import create_chat_store
from orchestra.persistence.base import ChatStore
from orchestra.runtime.llm import LangChainStructuredLLM, StructuredLLM
from orchestra.runtime.runner import SystemRunner
from orchestra.uitools.registry import UIToolRegistry
from orchestra.utils.proxy import ProxySettings
from server.chat_routes import router as chat_router
from server.db import init_all
from server.interaction_routes import router as interaction_router
from server.session_routes import router as session_router
from server.system_db import list_systems, upsert_system
from server.system_routes import router as system_router
from server.ui_tool_routes import router as ui_tool_router

from dotenv import load_dotenv
load_dotenv()  # load environment variables from .env file

# CORS origins - configurable via environment variable
# Use comma-separated values for multiple origins, or "*" for all (development only)
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

VERSION = "0.1.0"


def create_app(
    llm: StructuredLLM | None = None,
    chat_store: ChatStore | None = None,
    registry: UIToolRegistry | None = None,
    proxy: ProxySettings | None = None,
) -> FastAPI:
    """Build the application and its components.

    Args:
        llm: structured-output LLM; defaults to LangChain/OpenAI
        chat_store: chat history backend; Supabase or sqlite from the environment
        registry: UI tool registry; defaults to UI_TOOLS_DIR
        proxy: outbound proxy settings; defaults to the PROXY_* environment
    """
    proxy = proxy or ProxySettings()
    proxy.initialize()
    llm = llm or LangChainStructuredLLM()
    chat_store = chat_store or create_chat_store()
    registry = registry or UIToolRegistry()
    runner = SystemRunner(llm, chat_store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialize database tables and reload active systems on startup."""
        init_all()
        for system in list_systems(SystemStatus.active.value):
            runner.load_system(system)
        yield

    app = FastAPI(
        title="Orchestra API",
        description="API server for designing, deploying and running multi-agent systems",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.proxy = proxy
    app.state.runner = runner
    app.state.registry = registry
    app.state.chat_store = chat_store
    app.state.designer = SystemDesigner(llm)
    app.state.deployer = SystemDeployer(runner, registry, save=upsert_system)

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # include routes
    app.include_router(system_router, prefix="/api")
    app.include_router(chat_router, prefix="/api")
    app.include_router(interaction_router, prefix="/api")
    app.include_router(ui_tool_router, prefix="/api")
    app.include_router(session_router, prefix="/api")

    @app.get("/")
    def root():
        """Health check endpoint."""
        return {
            "status": "ok",
            "version": VERSION,
            "proxy_enabled": proxy.config.enabled,
            "endpoints": {
                "systems": "/api/agent-systems",
                "chat": "/api/agent-chat/{system_id}",
                "ui_interaction": "/api/ui-interaction",
                "ui_tools": "/api/ui-tools",
                "chat_sessions": "/api/chat-sessions",
            },
        }

    @app.post("/api/proxy/test")
    async def test_proxy():
        """Check outbound connectivity through the configured proxy."""
        ok = await run_in_threadpool(proxy.test_connection)
        return {"enabled": proxy.config.enabled, "ok": ok}

    return app
