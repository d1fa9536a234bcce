"""
Services that keep state in memory, such as the fleet, load it from
the store when the app starts. Any :class:`Rebuildable` stored on the
app is rebuilt by :func:`rebuild_all` before the app takes requests.
"""

from abc import ABC, abstractmethod
from typing import Iterable

from bms import logger


class Rebuildable(ABC):

    @abstractmethod
    async def _rebuild(self):
        """Replaces the in-memory state with what is in the store."""


async def rebuild_all(services: Iterable):
    """Rebuilds each of the services that is rebuildable, skipping the rest."""
    for service in services:
        if isinstance(service, Rebuildable):
            logger.info("Rebuilding %s", type(service).__name__)
            await service._rebuild()
