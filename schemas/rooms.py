from pydantic import BaseModel


class RoomSummary(BaseModel):
    room_id: str
    participant_count: int

class RoomDetailsResponse(BaseModel):
    room_id: str
    participants: list[str]
    participant_count: int

class HealthResponse(BaseModel):
    status: str
    rooms: int
    connections: int
