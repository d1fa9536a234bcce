"""
Decorators
----------

The routes of the system take and give JSend. :func:`expects` turns the
body of a request into validated data before the route runs, and
:func:`returns` dumps whatever the route gives back through a schema, so
that routes can deal in plain dictionaries and fleet objects.

A route that can answer in more than one way (a rental that is created,
or refused because the station is empty) names each of its responses:

.. code:: python

    @expects(RentRequestSchema())
    @returns(
        success=(ResultSchema, HTTPStatus.CREATED),
        conflict=(ResultSchema, HTTPStatus.CONFLICT),
    )
    async def post(self):
        result = await self.fleet.rent_bike(**self.request["data"])
        return ("success" if result else "conflict"), {...}
"""

from functools import wraps
from http import HTTPStatus
from json import JSONDecodeError
from typing import Optional, Tuple, Union, Dict, Any

from aiohttp import web
from aiohttp.web_urldispatcher import View
from marshmallow import Schema, ValidationError

from bms import logger
from bms.serializer.jsend import JSendSchema, fail, error

NamedSchema = Union[Schema, Tuple[Schema, HTTPStatus]]


def _fail(message: str, **data) -> web.Response:
    """A JSend ``fail`` telling the client what was wrong with their request."""
    body = JSendSchema().dump(fail(message, **data))
    return web.json_response(body, status=HTTPStatus.BAD_REQUEST)


def expects(schema: Optional[Schema], into="data"):
    """
    Loads the JSON body of the request with the given schema
    and stores the result on the request under ``into``.

    Requests that are not JSON, cannot be parsed, or do not validate
    never reach the route. They get a 400 listing the fields the
    route accepts.

    .. code:: python

        @expects(ReturnRequestSchema())
        async def post(self):
            bike_id = self.request["data"]["bike_id"]

    :param schema: The schema to load the body with. ``None`` accepts anything.
    :param into: The key on the request to store the loaded data in.
    """

    if schema is None:
        return lambda x: x

    if not isinstance(schema, Schema):
        raise TypeError(f"expects needs a marshmallow Schema, not {type(schema).__name__}")

    accepted_fields = sorted(field.data_key or name for name, field in schema.fields.items() if not field.dump_only)

    def decorator(route):

        @wraps(route)
        async def load_body(self: View, **kwargs):
            request = self.request

            if not request.body_exists or request.content_type != "application/json":
                return _fail(
                    f"This route ({request.method}: {request.rel_url}) only accepts JSON.",
                    fields=accepted_fields
                )

            try:
                request[into] = schema.load(await request.json())
            except JSONDecodeError as err:
                return _fail("Could not parse supplied JSON.", errors=err.args)
            except ValidationError as err:
                return _fail("The request did not validate properly.", errors=err.messages, fields=accepted_fields)

            return await route(self, **kwargs)

        return load_body

    return decorator


def returns(schema: Optional[Schema] = None, return_code: HTTPStatus = HTTPStatus.OK, **named_schema: NamedSchema):
    """
    Dumps the data returned from the route through a schema.

    With a single ``schema`` the route returns just the data. With named
    schemas the route returns a ``(name, data)`` pair, and the name picks
    both the schema and the status code.

    :param schema: The schema of the only response of the route.
    :param return_code: The status code of that response, or of named schemas without their own.
    :param named_schema: Response names, each with a schema or a schema and status code.
    """

    if schema is None and not named_schema:
        return lambda x: x

    responses: Dict[Any, Tuple[Schema, HTTPStatus]] = {
        name: value if isinstance(value, tuple) else (value, return_code)
        for name, value in named_schema.items()
    }
    if schema is not None:
        responses[None] = (schema, return_code)

    def decorator(route):

        @wraps(route)
        async def dump_response(self: View, **kwargs):
            if schema is not None:
                name, data = None, await route(self, **kwargs)
            else:
                name, data = await route(self, **kwargs)

            try:
                response_schema, status = responses[name]
                return web.json_response(response_schema.dump(data), status=status)
            except (ValidationError, KeyError) as err:
                logger.error("Could not send the %r response of %s: %s", name, route.__qualname__, err)
                body = JSendSchema().dump(error(
                    "We tried to send you data back, but it came out wrong.", HTTPStatus.INTERNAL_SERVER_ERROR,
                    errors=err.messages if isinstance(err, ValidationError) else {"response": name}
                ))
                return web.json_response(body, status=HTTPStatus.INTERNAL_SERVER_ERROR)

        return dump_response

    return decorator
