"""
Houses the tests for the service layer of the program. This layer is what
keeps the fleet and the store in step, and is what any interface should use
to speak through when communicating with the rest of the system.

Asynchronous tests run in pytest-asyncio's auto mode, so they need no marker.
"""
