from typing import Optional

from fastapi import FastAPI, Request, Response, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from connections import ConnectionManager
from constants import WORLDS_FILE
from errors import RelayError
from gateway import RelayGateway
from logging_config import get_logger
from rooms import RoomManager
from routers.worlds import worlds_router
from world_registry import WorldRegistry

logger = get_logger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


async def relay_websocket(websocket: WebSocket):
    """Relay endpoint: one JSON frame in, zero or more frames out to the room."""
    connections: ConnectionManager = websocket.app.state.connections
    gateway: RelayGateway = websocket.app.state.gateway

    await websocket.accept()
    connection = connections.register(websocket)
    client_host = websocket.client.host if websocket.client else 'unknown'
    logger.info(f"Relay connection {connection.connection_id} accepted from {client_host}")

    message_count = 0
    closed_by_client = False
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.info(f"Relay connection {connection.connection_id} closed by client")
                closed_by_client = True
                break
            data = message.get("text")
            if data is None:
                data = message.get("bytes")
            if data is None:
                continue
            message_count += 1
            logger.debug(f"Received frame #{message_count} from connection {connection.connection_id}")
            gateway.handle_frame(connection, data)
    except WebSocketDisconnect:
        logger.info(f"Relay connection {connection.connection_id} disconnected")
        closed_by_client = True
    except Exception as e:
        logger.error(f"Relay connection {connection.connection_id} failed: {e}", exc_info=True)
    finally:
        connections.unregister(connection)

    if not closed_by_client:
        try:
            await websocket.close()
        except RuntimeError as e:
            logger.debug(f"Error closing WebSocket: {e}")


def create_relay_app(rooms: Optional[RoomManager] = None) -> FastAPI:
    app = FastAPI(title="World relay")
    if rooms is None:
        rooms = RoomManager()
    app.state.rooms = rooms
    app.state.connections = ConnectionManager(rooms)
    app.state.gateway = RelayGateway(rooms)

    app.add_api_websocket_route("/", relay_websocket)
    app.add_api_websocket_route("/ws", relay_websocket)

    @app.get("/health")
    async def relay_health():
        return {"status": "ok", "rooms": len(app.state.rooms), "connections": len(app.state.connections)}

    logger.info("Relay application initialized")
    return app


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "Not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=getattr(exc, "headers", None))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Error handling {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": "Internal server error"}, headers=CORS_HEADERS)


def create_registry_app(registry: Optional[WorldRegistry] = None) -> FastAPI:
    app = FastAPI(title="World registry")
    app.state.registry = registry if registry is not None else WorldRegistry(WORLDS_FILE)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    # Outermost: every OPTIONS, browser preflight included, gets an empty 200
    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)
        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/health")
    async def registry_health():
        return {"status": "ok", "worlds": await app.state.registry.count()}

    app.include_router(worlds_router)

    logger.info(f"Registry application initialized with {app.state.registry.path}")
    return app
