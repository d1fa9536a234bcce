"""
The entry point for the CLI tool
"""

import uvloop
from aiohttp import web

from bms.app import build_app


def run():
    """Builds and runs the app on uvloop."""
    uvloop.install()
    web.run_app(build_app())


if __name__ == '__main__':
    run()
