from .app import MafiaApp
from .backend import BackendClient
from .codes import generate_room_code
from .context import AppContext
from .layout import Point, Seat, seat_layout, seat_position
from .queries import Queries
from .result import BackendError, ErrorKind, QueryError, QueryResult
from .sync import (
    LobbySynchronizer,
    PollingStrategy,
    RoomSynchronizer,
    SubscriptionStrategy,
    strategy_from_config,
)

__all__ = [
    "MafiaApp",
    "BackendClient",
    "generate_room_code",
    "AppContext",
    "Point",
    "Seat",
    "seat_layout",
    "seat_position",
    "Queries",
    "BackendError",
    "ErrorKind",
    "QueryError",
    "QueryResult",
    "LobbySynchronizer",
    "PollingStrategy",
    "RoomSynchronizer",
    "SubscriptionStrategy",
    "strategy_from_config",
]
