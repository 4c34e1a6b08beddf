"""Application configuration"""

import logging
from dotenv import load_dotenv

from .loader import load_raw_config
from .core import Core
from .cache import Cache
from .generation import Generation
from .search import Search
from .storage import Storage
from .local_llm import LocalLLM

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=logging.INFO)
logging.getLogger("httpx").setLevel(logging.WARNING)

_RAW_CONFIG = load_raw_config()

local_llm = LocalLLM(_RAW_CONFIG)
core = Core(_RAW_CONFIG, use_local=local_llm.USE_LOCAL)
cache = Cache(_RAW_CONFIG)
generation = Generation(_RAW_CONFIG)
search = Search(_RAW_CONFIG)
storage = Storage(_RAW_CONFIG)

__all__ = ["core", "cache", "generation", "search", "storage", "local_llm"]
