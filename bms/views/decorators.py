"""
Decorators
-------------------------

Routes under a resource, such as ``/stations/{id}/bikes``, look the
resource up before doing anything else. :func:`match_getter` does the
lookup, and answers 404 for the route when there is nothing to find.
"""
from functools import wraps
from inspect import isawaitable
from typing import Union, Any, Dict, Tuple, Callable

from aiohttp import web
from aiohttp.web_request import Request
from aiohttp.web_urldispatcher import View

from bms.serializer import JSendSchema, fail

UrlParam = Union[str, Tuple[str, Callable[[str], Any]]]


def _json_error(error_class, message: str, **data):
    return error_class(text=JSendSchema().dumps(fail(message, **data)), content_type='application/json')


def resolve_match_map(request: Request, match_map: Dict[str, UrlParam]) -> Dict[str, Any]:
    """
    Reads the url parameters named by the match map, converting each one.

    :raises web.HTTPBadRequest: If a parameter cannot be converted.
    """
    resolved = {}
    errors = []

    for argument, param in match_map.items():
        name, convert = (param, str) if isinstance(param, str) else param
        value = request.match_info.get(name)
        try:
            resolved[argument] = convert(value)
        except (ValueError, TypeError):
            errors.append(f'Could not convert url parameter "{value}" to {convert.__name__}.')

    if errors:
        raise _json_error(web.HTTPBadRequest, "Errors with your request.", errors=errors)
    return resolved


def match_getter(getter: Callable, injected_as: str, **match_map: UrlParam):
    """
    Fetches an item from the fleet of the app handling the request,
    and passes it to the route as ``injected_as``.

    .. code-block:: python

        with_bike = match_getter(FleetService.bike, 'bike', bike_id='id')

        @with_bike
        async def get(self, bike: Bike):
            return success(bike=bike.info())

    :param getter: A :class:`~bms.service.fleet.FleetService` method, sync or async.
    :param injected_as: The keyword the item is passed to the route as.
    :param match_map: Each keyword of the getter, mapped to the url parameter it is
        read from, or to a tuple of the url parameter and a converter.
    """

    def attach_instance(route):

        @wraps(route)
        async def with_item(self: View, **kwargs):
            params = resolve_match_map(self.request, match_map)

            item = getter(self.request.app["fleet"], **params)
            if isawaitable(item):
                item = await item

            if item is None:
                raise _json_error(web.HTTPNotFound, f"Could not find {injected_as} with the given params.",
                                  params=params)

            return await route(self, **kwargs, **{injected_as: item})

        return with_item

    return attach_instance
