from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError as PydanticValidationError

from errors import ValidationError, WorldNotFoundError
from logging_config import get_logger
from schemas.worlds import (
    DeleteWorldResponse,
    ErrorResponse,
    RegisterWorldRequest,
    RegisterWorldResponse,
    WorldEntry,
    WorldSeedResponse,
)
from world_registry import WorldRegistry

logger = get_logger(__name__)

worlds_router = APIRouter(prefix="/worlds", tags=["worlds"])

NOT_FOUND = {404: {"model": ErrorResponse}}
REGISTER_ERRORS = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


def get_registry(request: Request) -> WorldRegistry:
    return request.app.state.registry


def _client_host(request: Request) -> str:
    return request.client.host if request and request.client else 'unknown'


@worlds_router.get("", response_model=list[WorldEntry])
async def list_worlds(request: Request, registry: WorldRegistry = Depends(get_registry)):
    worlds = await registry.list()
    logger.info(f"Listed {len(worlds)} worlds for {_client_host(request)}")
    return worlds


@worlds_router.post("", response_model=RegisterWorldResponse, responses=REGISTER_ERRORS)
async def register_world(request: Request, registry: WorldRegistry = Depends(get_registry)):
    # Body: { "worldName": "Acres", "seed": 42 }
    # Response 200: { "success": true, "worldName": "Acres", "seed": 42 }
    try:
        body = await request.json()
    except ValueError:
        logger.warning(f"Register world failed: unreadable JSON body from {_client_host(request)}")
        raise ValidationError("Invalid request: body must be JSON")

    try:
        world = RegisterWorldRequest.model_validate(body)
    except PydanticValidationError:
        logger.warning(f"Register world failed: bad request shape from {_client_host(request)}: {body!r}")
        raise ValidationError("Invalid request: worldName and seed are required")

    await registry.register(world.worldName, world.seed)
    logger.info(f"World {world.worldName!r} registered with seed {world.seed} by {_client_host(request)}")
    return RegisterWorldResponse(success=True, worldName=world.worldName, seed=world.seed)


@worlds_router.get("/{world_name:path}", response_model=WorldSeedResponse, responses=NOT_FOUND)
async def get_world(world_name: str, request: Request, registry: WorldRegistry = Depends(get_registry)):
    seed = await registry.get_seed(world_name)
    logger.debug(f"World {world_name!r} resolved to seed {seed} for {_client_host(request)}")
    return WorldSeedResponse(worldName=world_name, seed=seed)


@worlds_router.delete("/{world_name:path}", response_model=DeleteWorldResponse, responses=NOT_FOUND)
async def delete_world(world_name: str, request: Request, registry: WorldRegistry = Depends(get_registry)):
    if not await registry.delete(world_name):
        logger.warning(f"Delete world failed: {world_name!r} not found")
        raise WorldNotFoundError(world_name)
    logger.info(f"World {world_name!r} deleted by {_client_host(request)}")
    return DeleteWorldResponse(success=True, worldName=world_name)
