from .api_key import get_api_key
from .block_explorer import BlockExplorer, LogsResult, ResultKind
from .rate_limiter import RateLimiter
