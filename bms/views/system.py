"""
System Views
-------------------------

Operator views over the whole fleet.
"""
from http import HTTPStatus

from aiohttp_apispec import docs

from bms.serializer import JSendSchema, success, error
from bms.serializer.decorators import returns
from bms.serializer.models import OverviewSchema, ValidationReportSchema
from bms.views.base import BaseView


class SystemView(BaseView):
    """
    Gets the occupancy of every station and the operation statistics.
    """
    url = "/system"
    name = "system"

    @docs(summary="Get The System Overview")
    @returns(JSendSchema.of(overview=OverviewSchema()))
    async def get(self):
        return success(overview=self.fleet.overview())


class SystemValidationView(BaseView):
    """
    Checks that every bike is accounted for, either docked or rented.
    """
    url = "/system/validation"

    @docs(summary="Validate The System State")
    @returns(
        valid=JSendSchema.of(report=ValidationReportSchema()),
        invalid=(JSendSchema.of(report=ValidationReportSchema()), HTTPStatus.INTERNAL_SERVER_ERROR)
    )
    async def get(self):
        report = self.fleet.validate()
        if report.is_valid:
            return "valid", success(report=report.serialize())

        message = f"The system is inconsistent: {'; '.join(report.errors)}"
        return "invalid", error(message, HTTPStatus.INTERNAL_SERVER_ERROR, report=report.serialize())
