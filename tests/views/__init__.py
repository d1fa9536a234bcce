"""
Houses the tests for the REST api layer of the program.

The views run against an app with an in-memory store, and the fleet
is set up directly through ``client.app["fleet"]``. The tests assert
that the responses keep their JSend shape, and that each kind of
failed operation maps to the expected status code.
"""
