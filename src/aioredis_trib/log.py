import logging


logger = logging.getLogger("aioredis_trib")
