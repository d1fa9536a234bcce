"""
Version
-------

The name and version the server reports in its api docs and to sentry.

.. autodata:: bms.version.__version__
"""

name = "bms-server"

__version__ = "1.0.0"
"""The current version. Sentry releases are tagged ``name@__version__``."""
