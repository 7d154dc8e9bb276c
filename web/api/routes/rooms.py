"""Room API routes."""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from sisters_engine.intent_generator import generate_legal_intents
from sisters_engine.intents import (
    FlipFaceDown,
    Intent,
    PickupPyre,
    PlayCards,
    PlayFaceUpCards,
)
from strategies.factory import StrategyFactory
from web.api.session_manager import (
    GameInProgressError,
    NotEnoughPlayersError,
    NotHostError,
    RoomError,
    RoomFullError,
    RoomManager,
    RoomNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["rooms"])

IntentKind = Literal["PLAY_CARDS", "PLAY_FACE_UP_CARDS", "PICKUP_PYRE", "FLIP_FACE_DOWN"]


# Request/Response models
class CreateRoomRequest(BaseModel):
    """Request to create a room."""

    player_name: str = Field(..., min_length=1, max_length=32, description="Host display name")


class JoinRoomRequest(BaseModel):
    """Request to join a room."""

    player_name: str = Field(..., min_length=1, max_length=32, description="Display name")


class AddAIRequest(BaseModel):
    """Request to seat an AI player."""

    player_id: str = Field(..., description="Id of the requesting host")
    difficulty: str = Field("medium", description="'easy', 'medium' or 'hard'")


class StartGameRequest(BaseModel):
    """Request to start a room's game."""

    player_id: str = Field(..., description="Id of the requesting host")


class IntentRequest(BaseModel):
    """A player's intent, as sent over HTTP or WebSocket."""

    model_config = ConfigDict(populate_by_name=True)

    player_id: str = Field(..., alias="playerId")
    type: IntentKind
    card_ids: list[str] = Field(default_factory=list, alias="cardIds")
    card_index: int | None = Field(None, alias="cardIndex")


class ClientMessage(BaseModel):
    """Message received on a room WebSocket."""

    model_config = ConfigDict(populate_by_name=True)

    type: Literal[
        "PLAY_CARDS",
        "PLAY_FACE_UP_CARDS",
        "PICKUP_PYRE",
        "FLIP_FACE_DOWN",
        "START_GAME",
        "GET_STATE",
    ]
    card_ids: list[str] = Field(default_factory=list, alias="cardIds")
    card_index: int | None = Field(None, alias="cardIndex")


class StrategyInfo(BaseModel):
    """Information about an available strategy."""

    name: str
    description: str


def get_room_manager(request: Request) -> RoomManager:
    return request.app.state.room_manager


def build_intent(
    player_id: str, kind: str, card_ids: list[str], card_index: int | None
) -> Intent:
    """Turn a validated client request into an engine intent.

    Raises:
        ValueError: If the fields the intent needs are missing.
    """
    match kind:
        case "PLAY_CARDS":
            if not card_ids:
                raise ValueError("cardIds is required")
            return PlayCards(player_id, tuple(card_ids))
        case "PLAY_FACE_UP_CARDS":
            if not card_ids:
                raise ValueError("cardIds is required")
            return PlayFaceUpCards(player_id, tuple(card_ids))
        case "PICKUP_PYRE":
            return PickupPyre(player_id)
        case "FLIP_FACE_DOWN":
            if card_index is None:
                raise ValueError("cardIndex is required")
            return FlipFaceDown(player_id, card_index)
        case _:
            raise ValueError(f"Unknown intent type: {kind}")


def intent_to_dict(intent: Intent) -> dict:
    """Convert an Intent to a dictionary."""
    base = {
        "type": intent.intent_type.name,
        "description": str(intent),
    }

    match intent:
        case PlayCards(card_ids=card_ids) | PlayFaceUpCards(card_ids=card_ids):
            base["cardIds"] = list(card_ids)
        case FlipFaceDown(card_index=card_index):
            base["cardIndex"] = card_index

    return base


def room_error_to_http(error: RoomError) -> HTTPException:
    """Map a room failure onto an HTTP status."""
    match error:
        case RoomNotFoundError():
            status = 404
        case NotHostError():
            status = 403
        case RoomFullError() | GameInProgressError():
            status = 409
        case NotEnoughPlayersError():
            status = 400
        case _:
            status = 400
    return HTTPException(status_code=status, detail=str(error))


# REST Endpoints


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@router.get("/strategies", response_model=list[StrategyInfo])
async def list_strategies():
    """List available AI strategies."""
    factory = StrategyFactory()
    strategies = factory.list_strategies()
    return [StrategyInfo(name=name, description=desc) for name, desc in strategies.items()]


@router.post("/rooms")
async def create_room(
    request: CreateRoomRequest, manager: RoomManager = Depends(get_room_manager)
):
    """Create a new room hosted by the caller."""
    room, seat = manager.create_room(request.player_name)
    return {
        "type": "ROOM_CREATED",
        "roomCode": room.code,
        "playerId": seat.id,
        "players": room.players_payload(),
    }


@router.get("/rooms")
async def list_rooms(manager: RoomManager = Depends(get_room_manager)):
    """List all open rooms."""
    return manager.list_rooms()


@router.post("/rooms/{code}/join")
async def join_room(
    code: str, request: JoinRoomRequest, manager: RoomManager = Depends(get_room_manager)
):
    """Take a seat in a room."""
    try:
        room, seat = manager.join_room(code, request.player_name)
    except RoomError as e:
        raise room_error_to_http(e)

    return {
        "type": "ROOM_JOINED",
        "roomCode": room.code,
        "playerId": seat.id,
        "players": room.players_payload(),
    }


@router.post("/rooms/{code}/ai")
async def add_ai(
    code: str, request: AddAIRequest, manager: RoomManager = Depends(get_room_manager)
):
    """Seat an AI player (host only)."""
    try:
        room = manager.require_room(code)
        seat = room.add_ai(request.player_id, request.difficulty)
    except RoomError as e:
        raise room_error_to_http(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {"player": room.seat_to_dict(seat), "players": room.players_payload()}


@router.post("/rooms/{code}/start")
async def start_game(
    code: str, request: StartGameRequest, manager: RoomManager = Depends(get_room_manager)
):
    """Deal the room's game (host only)."""
    try:
        room = manager.require_room(code)
        await room.start_game(request.player_id)
    except RoomError as e:
        raise room_error_to_http(e)

    return {"state": room.client_state(request.player_id)}


@router.get("/rooms/{code}")
async def get_room(
    code: str, player_id: str = "", manager: RoomManager = Depends(get_room_manager)
):
    """Get a room and its game as seen by one player."""
    try:
        room = manager.require_room(code)
    except RoomError as e:
        raise room_error_to_http(e)

    legal_intents = generate_legal_intents(room.state, player_id) if room.state else []
    return {
        "room": room.to_summary(),
        "state": room.client_state(player_id),
        "legalIntents": [intent_to_dict(i) for i in legal_intents],
    }


@router.post("/rooms/{code}/intents")
async def submit_intent(
    code: str, request: IntentRequest, manager: RoomManager = Depends(get_room_manager)
):
    """Submit an intent for a player."""
    try:
        room = manager.require_room(code)
    except RoomError as e:
        raise room_error_to_http(e)

    try:
        intent = build_intent(request.player_id, request.type, request.card_ids, request.card_index)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    rejection = await room.submit(request.player_id, intent)
    if rejection is not None:
        raise HTTPException(status_code=400, detail=rejection)

    return {"accepted": True, "state": room.client_state(request.player_id)}


@router.delete("/rooms/{code}/players/{player_id}")
async def leave_room(
    code: str, player_id: str, manager: RoomManager = Depends(get_room_manager)
):
    """Remove a player from a room."""
    try:
        closed = manager.leave_room(code, player_id)
    except RoomError as e:
        raise room_error_to_http(e)
    return {"left": True, "roomClosed": closed}


# WebSocket endpoint for real-time play


@router.websocket("/ws/rooms/{code}")
async def room_websocket(websocket: WebSocket, code: str):
    """WebSocket endpoint for one player's seat in a room.

    Protocol:
    Server -> Client messages:
        - ROOM_JOINED: Room code, the player's id and the seats
        - PLAYER_JOINED / PLAYER_LEFT: Seat changes
        - GAME_STARTED, GAME_STATE, YOUR_TURN: Game flow
        - CARDS_PLAYED, PYRE_PICKED_UP, PYRE_BURNED: What just happened
        - GAME_OVER: Winner id
        - ERROR: Rejected or malformed message

    Client -> Server messages:
        - PLAY_CARDS / PLAY_FACE_UP_CARDS: {cardIds: [str]}
        - FLIP_FACE_DOWN: {cardIndex: int}
        - PICKUP_PYRE, START_GAME, GET_STATE
    """
    manager: RoomManager = websocket.app.state.room_manager
    player_id = websocket.query_params.get("player_id", "")
    connection_id = str(uuid.uuid4())

    try:
        room = manager.bind_connection(connection_id, code, player_id)
    except RoomError as e:
        logger.warning(f"WebSocket rejected for room {code}: {e}")
        await websocket.close(code=4004, reason=str(e))
        return

    await websocket.accept()
    logger.info(f"WebSocket connected: room={room.code}, player={player_id}")

    # Room messages and direct replies share one queue so they arrive in order
    event_queue: asyncio.Queue = asyncio.Queue()

    def queue_event(event: dict) -> None:
        event_queue.put_nowait(event)

    async def forward_events():
        while True:
            event = await event_queue.get()
            await websocket.send_json(event)

    room.add_listener(player_id, queue_event)
    queue_event({
        "type": "ROOM_JOINED",
        "roomCode": room.code,
        "playerId": player_id,
        "players": room.players_payload(),
    })
    if room.state is not None:
        queue_event({"type": "GAME_STATE", "state": room.client_state(player_id)})

    event_task = asyncio.create_task(forward_events())

    try:
        while True:
            data = await websocket.receive_json()

            try:
                message = ClientMessage.model_validate(data)
            except ValidationError as e:
                queue_event({"type": "ERROR", "message": f"Malformed message: {e.errors()[0]['msg']}"})
                continue

            match message.type:
                case "GET_STATE":
                    queue_event({"type": "GAME_STATE", "state": room.client_state(player_id)})

                case "START_GAME":
                    try:
                        await room.start_game(player_id)
                    except RoomError as e:
                        queue_event({"type": "ERROR", "message": str(e)})

                case _:
                    try:
                        intent = build_intent(
                            player_id, message.type, message.card_ids, message.card_index
                        )
                    except ValueError as e:
                        queue_event({"type": "ERROR", "message": str(e)})
                        continue
                    # Rejections reach this player through the room listener
                    await room.submit(player_id, intent)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: room={room.code}, player={player_id}")
    finally:
        event_task.cancel()
        try:
            await event_task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.debug(f"WebSocket forwarder stopped: {e}")

        room.remove_listener(player_id, queue_event)
        manager.unbind_connection(connection_id)
        seat = room.seats.get(player_id)
        if room.code in manager.rooms and seat is not None and seat.is_connected:
            manager.leave_room(room.code, player_id)
