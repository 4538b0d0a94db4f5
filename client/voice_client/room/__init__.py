from voice_client.room.base import (
    ConnectOptions,
    LocalRoomCollaborator,
    Participant,
    RoomCollaborator,
    RoomListener,
    build_room_collaborator,
)

__all__ = [
    "ConnectOptions",
    "LocalRoomCollaborator",
    "Participant",
    "RoomCollaborator",
    "RoomListener",
    "build_room_collaborator",
]
