"""
Pydantic models for the session layer.
"""

from pydantic import BaseModel


class RoomInfo(BaseModel):
    """Room information for the status endpoint."""

    game: str
    room_id: str
    players: list[str]
    active: bool
    commands_processed: int
