"""
Notification Views
-------------------------
"""
from aiohttp_apispec import docs

from bms.serializer import JSendSchema, Many, success
from bms.serializer.decorators import returns
from bms.serializer.models import StationNotificationSchema
from bms.views.base import BaseView


class StationNotificationsView(BaseView):
    """
    Gets a notice for each station that is empty or full.
    """
    url = "/notifications/stations"

    @docs(summary="Get Station Notifications")
    @returns(JSendSchema.of(notifications=Many(StationNotificationSchema())))
    async def get(self):
        return success(notifications=self.fleet.notifications())
