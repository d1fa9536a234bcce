"""
JSend Schema
------------

Every response of the API is a `JSend`_ envelope. This module defines
the envelope, and the helpers the views use to fill it in.

.. _`JSend`: https://github.com/omniti-labs/jsend
"""

from enum import Enum
from typing import Dict, Any, Optional

from marshmallow import Schema, fields, validates_schema, ValidationError

from .fields import EnumField


class JSendStatus(str, Enum):

    SUCCESS = "success"
    """The request did what was asked."""

    FAIL = "fail"
    """The request was refused, because of what was asked or the state of the fleet."""

    ERROR = "error"
    """The server could not handle the request, or found the fleet inconsistent."""


def success(**data) -> Dict[str, Any]:
    return {"status": JSendStatus.SUCCESS, "data": data}


def fail(message: str, **data) -> Dict[str, Any]:
    """A refusal. The message is meant for the person using the client."""
    return {"status": JSendStatus.FAIL, "data": {"message": message, **data}}


def error(message: str, code: Optional[int] = None, **data) -> Dict[str, Any]:
    response = {"status": JSendStatus.ERROR, "message": message}
    if code is not None:
        response["code"] = code
    if data:
        response["data"] = data
    return response


class JSendSchema(Schema):
    """
    The envelope itself. ``success`` and ``fail`` must carry ``data``,
    every ``fail`` must explain itself with ``data.message``, and every
    ``error`` must have a top level ``message``.
    """
    status = EnumField(JSendStatus, required=True)
    data = fields.Dict()
    message = fields.String()
    code = fields.Integer()

    @validates_schema
    def assert_envelope(self, data, **kwargs):
        status = data["status"]

        if status in (JSendStatus.SUCCESS, JSendStatus.FAIL) and "data" not in data:
            raise ValidationError(f"A {status.value} response must include data.")
        if status is JSendStatus.FAIL and "message" not in data["data"]:
            raise ValidationError("A fail response must say why in data.message.")
        if status is JSendStatus.ERROR and "message" not in data:
            raise ValidationError("An error response must include a message.")

    @staticmethod
    def of(**kwargs) -> "JSendSchema":
        """
        Creates a JSendSchema whose ``data`` has the given fields. Each
        value is a field, or a schema to nest.

        >>> station_response = JSendSchema.of(station=StationSchema())
        >>> station_response.load(await response.json())["data"]["station"]["free_docks"]
        """
        data_fields = {
            name: value if isinstance(value, fields.Field) else fields.Nested(value)
            for name, value in kwargs.items()
        }
        data_schema = Schema.from_dict(data_fields, name="JSendData")

        class TypedJSendSchema(JSendSchema):
            data = fields.Nested(data_schema)

        return TypedJSendSchema()
