"""
The bike management server. Keeps the occupancy of every station
consistent while riders rent, return and reserve bikes, and operators
move them about.

Every module logs through :data:`logger`.
"""

import logging

from bms.config import server_mode

logger = logging.getLogger(__name__)
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter('%(asctime)s %(name)-12s %(levelname)-8s %(message)s'))
logger.addHandler(handler)
logger.setLevel(logging.DEBUG if server_mode == "development" else logging.INFO)

# tortoise logs every query at debug
logging.getLogger("tortoise").setLevel(logging.INFO)
