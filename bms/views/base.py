"""
Base
------------------------

Every view of the API extends :class:`BaseView`, which knows how to mount
itself on an app and hands the view the services of that app.
"""

from typing import Optional

from aiohttp.abc import Application
from aiohttp.web import View, AbstractRoute
from aiohttp_cors import CorsConfig, CorsViewMixin, ResourceOptions

from bms.service import FleetService, FlexDollarService

CORS_OPTIONS = {
    "*": ResourceOptions(
        allow_credentials=True,
        expose_headers="*",
        allow_headers="*",
        allow_methods="*",
    )
}
"""Any origin may call any route. The API holds no credentials of its own."""


class ViewConfigurationError(Exception):
    """
    Raised when a view is mounted without a url,
    or given CORS before it is mounted.
    """


class BaseView(View, CorsViewMixin):
    """
    A view over the fleet. Subclasses set :attr:`url` (relative to the
    api root) and optionally :attr:`name` to be reversed with ``app.router``.
    """

    url: str
    name: Optional[str]
    route: AbstractRoute

    cors_config = CORS_OPTIONS

    @property
    def fleet(self) -> FleetService:
        """The stations, bikes, rentals and reservations."""
        return self.request.app["fleet"]

    @property
    def flex(self) -> FlexDollarService:
        return self.request.app["flex"]

    @classmethod
    def register_route(cls, app: Application, base: str = ""):
        """
        Mounts the view on the app at ``base`` followed by its url.

        :raises ViewConfigurationError: If the view has no url.
        """
        url = getattr(cls, "url", None)
        if url is None:
            raise ViewConfigurationError(f"{cls.__name__} has no url to be mounted at.")

        name = getattr(cls, "name", None)
        cls.route = app.router.add_view(base + url, cls, **({"name": name} if name is not None else {}))

    @classmethod
    def enable_cors(cls, cors: CorsConfig):
        if getattr(cls, "route", None) is None:
            raise ViewConfigurationError(f"{cls.__name__} must be registered before enabling CORS.")
        cors.add(cls.route)
