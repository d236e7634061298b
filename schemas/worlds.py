from pydantic import BaseModel, StrictInt, StrictStr


class RegisterWorldRequest(BaseModel):
    worldName: StrictStr
    seed: StrictInt

class RegisterWorldResponse(BaseModel):
    success: bool
    worldName: str
    seed: int

class WorldEntry(BaseModel):
    name: str
    seed: int

class WorldSeedResponse(BaseModel):
    worldName: str
    seed: int

class DeleteWorldResponse(BaseModel):
    success: bool
    worldName: str

class ErrorResponse(BaseModel):
    error: str
