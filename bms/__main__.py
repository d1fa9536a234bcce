"""
Runs the server with ``python -m bms``.
"""

from bms import logger
from bms.cli import run
from bms.version import __version__, name

if __name__ == '__main__':
    logger.info('Starting %s %s!', name, __version__)
    run()
