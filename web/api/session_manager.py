"""Room and session management for the web API."""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Callable

from sisters_engine.intent_generator import generate_legal_intents
from sisters_engine.intents import FlipFaceDown, PickupPyre, PlayCards, PlayFaceUpCards
from sisters_engine.reducer import IllegalIntentError, execute_intent, run_discard_phase
from sisters_engine.state import MAX_PLAYERS, ActionType, create_initial_state
from sisters_engine.views import card_to_dict, to_client_player, to_client_view
from strategies.factory import StrategyFactory, ai_player_name

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from sisters_engine.intents import Intent
    from sisters_engine.state import GameState
    from strategies.base import Strategy

ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ROOM_CODE_LENGTH = 5
MIN_ONLINE_PLAYERS = 3

# Intents a seat may submit; dealing and resets belong to the room
PLAYER_INTENTS = (PlayCards, PlayFaceUpCards, FlipFaceDown, PickupPyre)

Listener = Callable[[dict], None]


class RoomError(Exception):
    """Base class for room coordination failures."""

    pass


class RoomNotFoundError(RoomError):
    pass


class RoomFullError(RoomError):
    pass


class GameInProgressError(RoomError):
    pass


class NotHostError(RoomError):
    pass


class NotEnoughPlayersError(RoomError):
    pass


class SeatType(str, Enum):
    """Type of player in a seat."""
    HUMAN = "human"
    AI = "ai"


@dataclass
class Seat:
    """A seat at a room's table."""

    id: str
    name: str
    seat_type: SeatType
    difficulty: str | None = None  # None for human players
    strategy: Strategy | None = None
    is_connected: bool = True

    @property
    def is_ai(self) -> bool:
        return self.seat_type == SeatType.AI


class Room:
    """One table: its seats, its authoritative game state and its listeners.

    Every state change goes through :meth:`start_game` or :meth:`submit`,
    which hold the room lock, so intents are applied one at a time.
    """

    def __init__(
        self,
        code: str,
        max_seats: int = MAX_PLAYERS,
        min_online_players: int = MIN_ONLINE_PLAYERS,
        pace_ai: bool = True,
        seed: int | None = None,
    ):
        self.code = code
        self.max_seats = max_seats
        self.min_online_players = min_online_players
        self.pace_ai = pace_ai
        self.seed = seed
        self.host_id: str | None = None
        self.seats: dict[str, Seat] = {}
        self.state: GameState | None = None
        self.created_at = datetime.now()
        self._lock = asyncio.Lock()
        self._listeners: dict[str, list[Listener]] = {}
        self._strategy_factory = StrategyFactory()

    @property
    def in_progress(self) -> bool:
        return self.state is not None and not self.state.is_game_over

    @property
    def is_empty(self) -> bool:
        """Whether no connected human is left."""
        return not any(s.is_connected and not s.is_ai for s in self.seats.values())

    # Seats

    def add_player(self, name: str) -> Seat:
        """Seat a human player."""
        self._check_can_seat()
        seat = Seat(id=f"p-{uuid.uuid4().hex[:8]}", name=name, seat_type=SeatType.HUMAN)
        self.seats[seat.id] = seat
        if self.host_id is None:
            self.host_id = seat.id

        logger.info(f"Room {self.code}: {name} joined as {seat.id}")
        self.broadcast(
            {"type": "PLAYER_JOINED", "player": self.seat_to_dict(seat)},
            exclude=seat.id,
        )
        return seat

    def add_ai(self, requester_id: str, difficulty: str = "medium") -> Seat:
        """Seat an AI player. Only the host may do this."""
        if requester_id != self.host_id:
            raise NotHostError("Only the host can add AI players")
        self._check_can_seat()

        ai_count = sum(1 for s in self.seats.values() if s.is_ai)
        strategy = self._strategy_factory.create(difficulty)
        seat = Seat(
            id=f"ai-{uuid.uuid4().hex[:8]}",
            name=ai_player_name(ai_count),
            seat_type=SeatType.AI,
            difficulty=difficulty,
            strategy=strategy,
        )
        self.seats[seat.id] = seat

        logger.info(f"Room {self.code}: added {difficulty} AI {seat.name}")
        self.broadcast({"type": "PLAYER_JOINED", "player": self.seat_to_dict(seat)})
        return seat

    def remove_player(self, player_id: str) -> None:
        """Take a player out of the room.

        During a game the seat stays at the table, marked disconnected, so
        turn order is unchanged. The host role passes to the next connected
        human.
        """
        seat = self.seats.get(player_id)
        if seat is None:
            raise RoomError(f"Player {player_id} is not in room {self.code}")

        if self.in_progress:
            seat.is_connected = False
            self.state = self.state.with_player_connection(player_id, False)
        else:
            del self.seats[player_id]
        self._listeners.pop(player_id, None)

        if self.host_id == player_id:
            self.host_id = next(
                (s.id for s in self.seats.values() if s.is_connected and not s.is_ai),
                None,
            )
            logger.info(f"Room {self.code}: host is now {self.host_id}")

        self.broadcast({"type": "PLAYER_LEFT", "playerId": player_id})

    def _check_can_seat(self) -> None:
        if self.in_progress:
            raise GameInProgressError("Game already in progress")
        if len(self.seats) >= self.max_seats:
            raise RoomFullError("Room is full")

    # Game flow

    async def start_game(self, requester_id: str) -> None:
        """Deal a game for the seated players. Only the host may do this.

        Raises:
            NotHostError: If the requester is not the host.
            GameInProgressError: If a game is already running.
            NotEnoughPlayersError: If too few seats are filled.
        """
        async with self._lock:
            if requester_id != self.host_id:
                raise NotHostError("Only the host can start the game")
            if self.in_progress:
                raise GameInProgressError("Game already in progress")

            # Players who left during the last game give up their seats now
            for seat_id in [s.id for s in self.seats.values() if not s.is_connected]:
                del self.seats[seat_id]

            if len(self.seats) < self.min_online_players:
                raise NotEnoughPlayersError(
                    f"Need at least {self.min_online_players} players to start"
                )

            players = [(s.id, s.name) for s in self.seats.values()]
            state = run_discard_phase(create_initial_state(players, seed=self.seed))
            self.state = state

            for seat in self.seats.values():
                if seat.strategy:
                    seat.strategy.on_game_start(state, seat.id)

            logger.info(f"Room {self.code}: game started with {len(players)} players")
            self.broadcast({"type": "GAME_STARTED"})
            self._broadcast_state()
            self._announce_turn()

            await self._run_ai_turns()

    async def submit(self, player_id: str, intent: Intent) -> str | None:
        """Apply a player's intent.

        An illegal intent leaves the state untouched and sends an ``ERROR``
        to that player only.

        Returns:
            The rejection message, or None if the intent was accepted.
        """
        async with self._lock:
            if self.state is None:
                message = "Game has not started"
                self.send(player_id, {"type": "ERROR", "message": message})
                return message

            if not isinstance(intent, PLAYER_INTENTS):
                message = "Intent not allowed"
                self.send(player_id, {"type": "ERROR", "message": message})
                return message

            if intent.player_id != player_id:
                message = "Cannot act for another player"
                self.send(player_id, {"type": "ERROR", "message": message})
                return message

            try:
                new_state = execute_intent(self.state, intent)
            except IllegalIntentError as e:
                logger.debug(f"Room {self.code}: rejected {intent}: {e}")
                message = f"Invalid play: {e}"
                self.send(player_id, {"type": "ERROR", "message": message})
                return message

            self._commit(player_id, intent, new_state)
            await self._run_ai_turns()
            return None

    def _commit(self, player_id: str, intent: Intent, new_state: GameState) -> None:
        """Store an accepted state and tell everyone what happened."""
        old_state = self.state
        self.state = new_state

        for seat in self.seats.values():
            if seat.strategy:
                seat.strategy.on_intent_applied(new_state, intent, player_id)

        if len(new_state.turn_history) > len(old_state.turn_history):
            self._announce_action(new_state)

        self._broadcast_state()

        if new_state.is_game_over:
            logger.info(f"Room {self.code}: {new_state.winner} wins")
            for seat in self.seats.values():
                if seat.strategy:
                    seat.strategy.on_game_end(new_state, new_state.winner)
            self.broadcast({"type": "GAME_OVER", "winnerId": new_state.winner})
        else:
            self._announce_turn()

    async def _run_ai_turns(self) -> None:
        """Run AI turns until a human must act or the game ends."""
        while self.in_progress:
            current = self.state.current_player_state
            seat = self.seats.get(current.id)
            if seat is None or not seat.is_ai:
                return

            legal_intents = generate_legal_intents(self.state, seat.id)
            if not legal_intents:
                logger.error(f"Room {self.code}: AI {seat.name} has no legal intents")
                return

            if self.pace_ai:
                await asyncio.sleep(seat.strategy.thinking_time())

            try:
                intent = seat.strategy.select_intent(self.state, seat.id, legal_intents)
                new_state = execute_intent(self.state, intent)
            except Exception as e:
                logger.error(f"Room {self.code}: strategy error for {seat.name}: {e}")
                intent = legal_intents[0]
                new_state = execute_intent(self.state, intent)

            self._commit(seat.id, intent, new_state)
            # Yield to the event loop between AI turns
            await asyncio.sleep(0)

    # Messaging

    def add_listener(self, player_id: str, callback: Listener) -> None:
        """Add a message listener for one player."""
        self._listeners.setdefault(player_id, []).append(callback)

    def remove_listener(self, player_id: str, callback: Listener) -> None:
        """Remove a message listener."""
        callbacks = self._listeners.get(player_id, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def send(self, player_id: str, message: dict) -> None:
        """Send a message to one player's listeners."""
        for listener in list(self._listeners.get(player_id, [])):
            try:
                listener(message)
            except Exception:
                logger.exception(f"Room {self.code}: listener for {player_id} failed")

    def broadcast(self, message: dict, exclude: str | None = None) -> None:
        """Send a message to every player in the room."""
        for player_id in list(self._listeners):
            if player_id != exclude:
                self.send(player_id, message)

    def _broadcast_state(self) -> None:
        for player_id in list(self._listeners):
            self.send(player_id, {"type": "GAME_STATE", "state": self.client_state(player_id)})

    def _announce_turn(self) -> None:
        current = self.state.current_player_state
        self.send(current.id, {"type": "YOUR_TURN"})

    def _announce_action(self, state: GameState) -> None:
        action = state.turn_history[-1]
        cards = [card_to_dict(c) for c in action.cards]

        match action.type:
            case ActionType.PICKUP:
                self.broadcast({"type": "PYRE_PICKED_UP", "playerId": action.player_id})
            case ActionType.BURN:
                self.broadcast(
                    {"type": "CARDS_PLAYED", "playerId": action.player_id, "cards": cards}
                )
                self.broadcast({"type": "PYRE_BURNED", "playerId": action.player_id})
            case ActionType.PLAY | ActionType.REVERSE | ActionType.FLIP_FACE_DOWN:
                self.broadcast(
                    {"type": "CARDS_PLAYED", "playerId": action.player_id, "cards": cards}
                )

    # Client views

    def client_state(self, player_id: str) -> dict | None:
        """Redacted game state for one player, None before the first deal."""
        if self.state is None:
            return None
        return to_client_view(self.state, player_id).to_dict()

    def seat_to_dict(self, seat: Seat) -> dict[str, Any]:
        """Public view of a seat, with card counts once a game is dealt."""
        player = self.state.get_player(seat.id) if self.state else None
        if player is not None:
            data = to_client_player(player).to_dict()
        else:
            data = {
                "id": seat.id,
                "name": seat.name,
                "handCount": 0,
                "faceUpCards": [],
                "faceDownCount": 0,
                "isConnected": seat.is_connected,
            }
        data["isAi"] = seat.is_ai
        data["difficulty"] = seat.difficulty
        data["isHost"] = seat.id == self.host_id
        return data

    def players_payload(self) -> list[dict[str, Any]]:
        return [self.seat_to_dict(s) for s in self.seats.values()]

    def to_summary(self) -> dict[str, Any]:
        """Room info for listings."""
        return {
            "code": self.code,
            "host_id": self.host_id,
            "created_at": self.created_at.isoformat(),
            "phase": self.state.phase.value if self.state else "lobby",
            "winner": self.state.winner if self.state else None,
            "players": self.players_payload(),
            "max_seats": self.max_seats,
        }


@dataclass
class Connection:
    """A transport connection bound to a seat."""

    room_code: str
    player_id: str
    connected_at: datetime = field(default_factory=datetime.now)


class RoomManager:
    """Manages all rooms and the connections bound to them.

    Created once at application startup and handed to the routes.
    """

    def __init__(
        self,
        max_seats: int = MAX_PLAYERS,
        min_online_players: int = MIN_ONLINE_PLAYERS,
        pace_ai: bool = True,
        seed: int | None = None,
    ):
        """Initialize the manager.

        Args:
            max_seats: Seats per room.
            min_online_players: Seats that must be filled before a game starts.
            pace_ai: Whether AI seats wait their thinking time before acting.
            seed: Seed for room codes and deals, for reproducible tests.
        """
        self.max_seats = max_seats
        self.min_online_players = min_online_players
        self.pace_ai = pace_ai
        self.seed = seed
        self.rooms: dict[str, Room] = {}
        self.connections: dict[str, Connection] = {}
        self._rng = random.Random(seed)

    def create_room(self, host_name: str) -> tuple[Room, Seat]:
        """Create a room with the given player as host."""
        code = self._generate_code()
        room = Room(
            code,
            max_seats=self.max_seats,
            min_online_players=self.min_online_players,
            pace_ai=self.pace_ai,
            seed=self.seed,
        )
        self.rooms[code] = room
        seat = room.add_player(host_name)
        logger.info(f"Room {code} created by {host_name}")
        return room, seat

    def join_room(self, code: str, name: str) -> tuple[Room, Seat]:
        """Seat a player in an existing room."""
        room = self.require_room(code)
        return room, room.add_player(name)

    def leave_room(self, code: str, player_id: str) -> bool:
        """Remove a player from a room.

        Returns:
            True if the room was closed because nobody is left.
        """
        room = self.require_room(code)
        room.remove_player(player_id)

        for connection_id, connection in list(self.connections.items()):
            if connection.room_code == room.code and connection.player_id == player_id:
                del self.connections[connection_id]

        if room.is_empty:
            del self.rooms[room.code]
            logger.info(f"Room {room.code} closed")
            return True
        return False

    def bind_connection(self, connection_id: str, code: str, player_id: str) -> Room:
        """Attach a transport connection to a seat."""
        room = self.require_room(code)
        if player_id not in room.seats:
            raise RoomError(f"Player {player_id} is not in room {room.code}")
        self.connections[connection_id] = Connection(room.code, player_id)
        return room

    def unbind_connection(self, connection_id: str) -> Connection | None:
        """Detach a transport connection, returning what it was bound to."""
        return self.connections.pop(connection_id, None)

    def get_room(self, code: str) -> Room | None:
        """Get a room by code (case-insensitive)."""
        return self.rooms.get(code.upper())

    def require_room(self, code: str) -> Room:
        room = self.get_room(code)
        if room is None:
            raise RoomNotFoundError(f"Room {code} not found")
        return room

    def list_rooms(self) -> list[dict]:
        """List all open rooms."""
        return [room.to_summary() for room in self.rooms.values()]

    def _generate_code(self) -> str:
        while True:
            code = "".join(
                self._rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH)
            )
            if code not in self.rooms:
                return code
