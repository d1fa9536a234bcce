"""
Notifications
-------------

Riders are told about the stations they cannot use right now: the
empty ones they cannot rent from, and the full ones they cannot return to.
"""

from datetime import datetime
from enum import Enum
from typing import Iterable, List, Dict, Any, Optional

from bms.fleet import Station


class NotificationType(str, Enum):
    STATION_EMPTY = "station_empty"
    STATION_FULL = "station_full"


def station_notifications(stations: Iterable[Station], now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    now = now if now is not None else datetime.now()
    notifications = []

    for station in stations:
        if station.is_empty:
            notifications.append({
                "type": NotificationType.STATION_EMPTY,
                "station_id": station.id,
                "station_name": station.name,
                "message": f'Docking station "{station.name}" is currently empty. No bikes available.',
                "time": now,
            })
        if station.is_full:
            notifications.append({
                "type": NotificationType.STATION_FULL,
                "station_id": station.id,
                "station_name": station.name,
                "message": f'Docking station "{station.name}" is currently full. No docks available.',
                "time": now,
            })

    return notifications
