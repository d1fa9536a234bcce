"""
Utilities
-------------------------

Turns the :class:`~bms.fleet.results.OperationResult` of a fleet
operation into a JSend response. Failures map to a status code by
their :class:`~bms.fleet.results.ErrorKind`.
"""

from http import HTTPStatus
from typing import Tuple, Dict, Any

from marshmallow.fields import String

from bms.fleet import OperationResult, ErrorKind
from bms.serializer import JSendSchema, success, fail, error
from bms.serializer.models import OperationResultSchema

ResultSchema = JSendSchema.of(result=OperationResultSchema(), message=String())

ERROR_RESPONSES = {
    ErrorKind.NOT_FOUND: "not_found",
    ErrorKind.INVALID_STATE: "conflict",
    ErrorKind.CAPACITY_VIOLATION: "conflict",
    ErrorKind.OWNERSHIP_VIOLATION: "forbidden",
    ErrorKind.CONCURRENCY_INCONSISTENCY: "error",
    ErrorKind.MOVE_ROLLBACK_FAILED: "error",
}


def result_responses(success_code: HTTPStatus = HTTPStatus.OK):
    """The named schemas for :func:`~bms.serializer.decorators.returns` on a route that runs an operation."""
    return {
        "success": (ResultSchema, success_code),
        "not_found": (ResultSchema, HTTPStatus.NOT_FOUND),
        "conflict": (ResultSchema, HTTPStatus.CONFLICT),
        "forbidden": (ResultSchema, HTTPStatus.FORBIDDEN),
        "error": (ResultSchema, HTTPStatus.INTERNAL_SERVER_ERROR),
    }


def result_response(result: OperationResult) -> Tuple[str, Dict[str, Any]]:
    if result:
        return "success", success(result=result.serialize())

    name = ERROR_RESPONSES[result.error]
    if name == "error":
        return name, error(result.message, result=result.serialize())
    return name, fail(result.message, result=result.serialize())
