from fastapi import APIRouter, HTTPException, Request

from logging_config import get_logger
from schemas.rooms import RoomDetailsResponse, RoomSummary

logger = get_logger(__name__)

rooms_router = APIRouter(prefix="/rooms", tags=["rooms"])


@rooms_router.get("", response_model=list[RoomSummary])
async def list_rooms(request: Request):
    directory = request.app.state.hub.directory
    return [
        RoomSummary(room_id=room_id, participant_count=len(directory.get_users_in_room(room_id)))
        for room_id in directory.room_ids()
    ]


@rooms_router.get("/{room_id}", response_model=RoomDetailsResponse)
async def get_room_details(room_id: str, request: Request):
    """
    Get the live roster of a room.

    Returns:
    - room_id: Room identifier
    - participants: Display names currently in the room (unordered)
    - participant_count: Number of distinct names
    """
    directory = request.app.state.hub.directory
    if room_id not in directory:
        logger.debug(f"Room details failed: Room {room_id} not found")
        raise HTTPException(status_code=404, detail="Room not found")

    participants = directory.get_users_in_room(room_id)
    return RoomDetailsResponse(
        room_id=room_id,
        participants=participants,
        participant_count=len(participants),
    )
