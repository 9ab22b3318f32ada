# ratecaster/config.py
from dotenv import load_dotenv
import os

load_dotenv()

# ------------------------------------------------------------
# Index service
# ------------------------------------------------------------
SUBGRAPH_KEY = os.getenv("SUBGRAPH_KEY", "").strip()
SUBGRAPH_BASE_URL = os.getenv(
    "SUBGRAPH_BASE_URL",
    "https://subgraph.satsuma-prod.com",
).rstrip("/")

HTTP_TIMEOUT = float(os.getenv("RATECASTER_HTTP_TIMEOUT", "10"))  # seconds
PAGE_SIZE = int(os.getenv("RATECASTER_PAGE_SIZE", "1000"))

# ------------------------------------------------------------
# Chain
# ------------------------------------------------------------
RPC_URL = os.getenv("RATECASTER_RPC_URL", "https://polygon-rpc.com")

RECEIPT_TIMEOUT = float(os.getenv("RATECASTER_RECEIPT_TIMEOUT", "120"))
POLL_INTERVAL = float(os.getenv("RATECASTER_POLL_INTERVAL", "4"))

# Compiled artifact with an "abi" key; the inline ABI is used when unset.
ABI_PATH = os.getenv("RATECASTER_ABI_PATH", "")

# ------------------------------------------------------------
# Logging
# ------------------------------------------------------------
LOG_LEVEL = os.getenv("RATECASTER_LOG_LEVEL", "INFO").upper()
