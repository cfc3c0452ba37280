"""Video room endpoint schemas."""

from typing import Optional

from pydantic import BaseModel


class TokenResponse(BaseModel):
    token: str


class EndRoomRequest(BaseModel):
    room: Optional[str] = None


class EndRoomResponse(BaseModel):
    success: bool = True


class ErrorResponse(BaseModel):
    error: str
