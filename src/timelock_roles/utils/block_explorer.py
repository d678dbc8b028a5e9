import json
import requests
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Any, Sequence, Tuple, Union

from ..errors import BlockExplorerError, ConfigurationError
from .logger import setup_logger
from .rate_limiter import RateLimiter

logger = setup_logger(__name__)

# Read the network table from the same directory as this script
with open(Path(__file__).parent / "block_explorer_config.json", "r") as f:
    block_explorer_config = json.load(f)

REQUEST_TIMEOUT = 30
NO_RECORDS_MESSAGE = "No records found"
MAX_TOPICS = 4
PAGE_SIZE = 1000  # records per getLogs call, the explorer's maximum


class ResultKind(Enum):
    OK = "ok"
    EMPTY = "empty"
    ERROR = "error"


@dataclass
class LogsResult:
    """A getLogs answer normalised into ok / empty / error.

    The explorer reports "nothing matched" with a failure status and a
    message string, so the distinction has to be made here once.
    """

    kind: ResultKind
    records: List[Dict[str, Any]] = field(default_factory=list)
    status: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "LogsResult":
        status = str(data.get("status"))
        message = data.get("message") or "Unknown error"
        result = data.get("result")

        if message == NO_RECORDS_MESSAGE:
            return cls(ResultKind.EMPTY, status=status, message=message)
        if status != "1":
            # error details ("Invalid API Key", "Max rate limit reached") live in result
            if isinstance(result, str) and result:
                message = f"{message}: {result}"
            return cls(ResultKind.ERROR, status=status, message=message)
        if not isinstance(result, list):
            return cls(
                ResultKind.ERROR,
                status=status,
                message=f"unexpected result payload: {result!r}",
            )
        return cls(ResultKind.OK, records=result, status=status, message=message)

    def unwrap(self, url: Optional[str] = None) -> List[Dict[str, Any]]:
        if self.kind is ResultKind.ERROR:
            raise BlockExplorerError(self.status, self.message, url)
        return self.records


class BlockExplorer:
    """Service for interacting with the Etherscan (v2, multichain) API."""

    def __init__(
        self,
        api_key: str,
        chain_name: str,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        if not api_key:
            raise ConfigurationError("API key is required")
        self.api_key = api_key
        self.chain_name = chain_name.lower()
        try:
            self.base_url = block_explorer_config[self.chain_name]["base_url"]
            self.chainid = block_explorer_config[self.chain_name]["chainid"]
        except KeyError:
            raise ConfigurationError(
                f"Unsupported chain: {chain_name}. Supported chains are: {', '.join(block_explorer_config.keys())}"
            )
        self.rate_limiter = rate_limiter or RateLimiter()

        logger.info(f"Initialized BlockExplorer for chain: {self.chain_name}")

    def _redacted_url(self, params: Dict[str, Any]) -> str:
        shown = dict(params, apikey="<redacted>")
        return requests.Request("GET", self.base_url, params=shown).prepare().url

    def _make_request(
        self, module: str, action: str, **extra: Any
    ) -> Tuple[Dict[str, Any], str]:
        """
        Make a throttled GET request to the explorer API.

        Args:
            module (str): The API module to call.
            action (str): The action to perform.
            **extra: Additional query parameters.

        Returns:
            tuple: The decoded JSON body, not yet checked for an error status,
                and the request URL with the API key redacted.

        Raises:
            BlockExplorerError: If the request fails or the HTTP status is not 200.
        """
        params = {"chainid": self.chainid, "module": module, "action": action}
        params.update(extra)
        url = self._redacted_url(params)
        params["apikey"] = self.api_key

        self.rate_limiter.acquire()
        logger.debug(f"GET {url}")
        try:
            with requests.get(
                self.base_url, params=params, timeout=REQUEST_TIMEOUT
            ) as response:
                if response.status_code != 200:
                    raise BlockExplorerError(
                        str(response.status_code), response.text, url
                    )
                data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise BlockExplorerError(None, f"Request failed: {e}", url) from e

        if not isinstance(data, dict):
            raise BlockExplorerError(None, f"unexpected response: {data!r}", url)
        return data, url

    def get_logs(
        self,
        address: str,
        topics: Sequence[Union[str, None]],
        from_block: Union[int, str] = 0,
        to_block: Union[int, str] = "latest",
    ) -> List[Dict[str, Any]]:
        """Fetch every log of `address` matching the indexed topic filters.

        `topics` is positional: topics[0] is the event signature hash, the
        following entries filter on indexed arguments. None leaves a position
        unfiltered. Results are paged, one rate-limited request per page.
        """
        if len(topics) > MAX_TOPICS:
            raise ValueError(f"at most {MAX_TOPICS} topics are supported")

        params: Dict[str, Any] = {
            "address": address,
            "fromBlock": str(from_block),
            "toBlock": str(to_block),
        }
        for i, topic in enumerate(topics):
            if topic is None:
                continue
            if not isinstance(topic, str):
                raise ValueError("non string topic not supported")
            params[f"topic{i}"] = topic
        filtered = [i for i, t in enumerate(topics) if t is not None]
        # consecutive topic filters have to be combined explicitly
        for a, b in zip(filtered, filtered[1:]):
            params[f"topic{a}_{b}_opr"] = "and"

        records: List[Dict[str, Any]] = []
        page = 1
        while True:
            data, url = self._make_request(
                "logs", "getLogs", page=page, offset=PAGE_SIZE, **params
            )
            logs = LogsResult.from_response(data).unwrap(url)
            records.extend(logs)
            # a short (or empty) page is the last one
            if len(logs) < PAGE_SIZE:
                break
            page += 1

        logger.info(
            f"getLogs {address} {list(topics)}: {len(records)} record(s) in {page} page(s)"
        )
        return records

    def eth_call(self, to: str, data: str, tag: str = "latest") -> str:
        """Run a read-only call through the explorer's JSON-RPC proxy."""
        response, url = self._make_request(
            "proxy", "eth_call", to=to, data=data, tag=tag
        )
        if "error" in response:
            error = response["error"]
            if isinstance(error, dict):
                raise BlockExplorerError(
                    str(error.get("code")), error.get("message", "Unknown error"), url
                )
            raise BlockExplorerError(None, str(error), url)
        if str(response.get("status")) == "0":
            raise BlockExplorerError(
                "0", f"{response.get('message')}: {response.get('result')}", url
            )
        result = response.get("result")
        if not isinstance(result, str):
            raise BlockExplorerError(None, f"unexpected eth_call result: {result!r}", url)
        return result
