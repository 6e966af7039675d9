import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from catalog_store import CatalogStore, get_or_create_worksheet, open_spreadsheet
from config import EVENTS_WORKSHEET, INVENTORY_WORKSHEET, PORT
from direct_search import DirectSearch
from functions import function_declarations, register_all
from live_data import check_live_capability
from logger import setup_logging
from models import CallContext, CustomerProfile
from product_search import ResolutionChain
from registry import FunctionRegistry
from telemetry import EVENT_COLUMNS, LoggingSink, SheetsSink, Telemetry

logger = logging.getLogger(__name__)


class InvokeRequest(BaseModel):
    name: str
    parameters: Any = None
    context: Dict[str, Any] = Field(default_factory=dict)


def build_context(data: Optional[Dict[str, Any]]) -> CallContext:
    data = data or {}
    return CallContext(
        conversation_id=data.get("conversationId") or data.get("conversation_id"),
        customer_profile=CustomerProfile.from_dict(data.get("customerProfile") or data.get("customer_profile")),
        language=data.get("language"),
    )


def build_registry():
    """Wire the Google Sheets catalog, the resolution chain and every operation"""
    sheet = open_spreadsheet()
    inventory_sheet = sheet.worksheet(INVENTORY_WORKSHEET)
    events_sheet = get_or_create_worksheet(sheet, EVENTS_WORKSHEET, EVENT_COLUMNS)

    telemetry = Telemetry([LoggingSink(), SheetsSink(events_sheet)])
    catalog = CatalogStore(inventory_sheet)
    chain = ResolutionChain(catalog, DirectSearch(), check_live_capability(), telemetry)

    registry = FunctionRegistry(telemetry)
    register_all(registry, catalog, chain)
    logger.info("Registered operations: %s", ", ".join(registry.names()))
    return registry


def create_app(registry: Optional[FunctionRegistry] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging()
        if app.state.registry is None:
            app.state.registry = await asyncio.to_thread(build_registry)
        yield
        telemetry = app.state.registry.telemetry
        if telemetry is not None:
            await asyncio.to_thread(telemetry.flush)

    app = FastAPI(title="Armenius Store Voice Functions", lifespan=lifespan)
    app.state.registry = registry

    @app.post("/api/functions/invoke")
    async def invoke_function(body: InvokeRequest, request: Request):
        result = await request.app.state.registry.invoke(body.name, body.parameters, build_context(body.context))
        if result.error and result.error.get("type") == "UnknownOperationError":
            return JSONResponse(status_code=404, content=result.to_dict())
        return result.to_dict()

    @app.post("/api/vapi")
    async def vapi_webhook(request: Request):
        """Voice platform server messages; only function calls need an answer"""
        body = await request.json()
        message = body.get("message") or {}
        if message.get("type") != "function-call":
            logger.debug("Acknowledged %s message", message.get("type"))
            return {"received": True}

        function_call = message.get("functionCall") or {}
        call = message.get("call") or {}
        context = build_context({
            "conversationId": call.get("id"),
            "customerProfile": message.get("customer") or call.get("customer"),
            "language": message.get("language"),
        })
        name = function_call.get("name", "")
        logger.info("Function call %s from %s", name, context.conversation_id)
        result = await request.app.state.registry.invoke(name, function_call.get("parameters"), context)

        payload = {"result": result.message, "success": result.success, "requiresInput": result.requires_input}
        if result.data is not None:
            payload["data"] = result.data
        if result.error is not None:
            return JSONResponse(status_code=404, content={**payload, "error": result.error})
        return payload

    @app.get("/api/functions")
    async def list_functions(request: Request):
        return {
            "functions": function_declarations,
            "registry": request.app.state.registry.stats(),
        }

    @app.get("/")
    async def root():
        return {"message": "Armenius Store voice assistant functions are ready!"}

    return app


app = create_app()

if __name__ == "__main__":
    setup_logging()
    logger.info("Starting server on port %s", PORT)
    logger.info("Function endpoint: /api/functions/invoke")
    logger.info("Voice platform webhook: /api/vapi")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
