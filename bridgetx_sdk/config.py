"""
Configuration for the bridge transaction SDK.

``ChainRegistry`` holds the bridge and token vault deployment of every chain
the reconciler may touch. It is loaded once, usually from a JSON file:

    [
        {"chainId": 31336, "bridgeAddress": "0x...", "tokenVaultAddress": "0x...",
         "rpc": "https://l1rpc.example.com", "name": "L1"},
        ...
    ]

RPC URLs can be overridden per chain with ``BRIDGETX_RPC_URL_<CHAIN_ID>``.
"""
import json
import logging
import os
import urllib.parse
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from .exceptions import InvalidArgumentError, UnknownChainError
from .models import ChainRegistryEntry

logger = logging.getLogger(__name__)

REGISTRY_PATH_ENV = "BRIDGETX_CHAIN_REGISTRY"
RPC_URL_ENV_PREFIX = "BRIDGETX_RPC_URL_"


def validate_service_url(url: str, name: str = "url") -> str:
    """
    Check that a service URL uses https unless it points at localhost.

    Set ``BRIDGETX_INSECURE_HTTP=1`` to allow plain http for development.

    Args:
        url: URL to validate
        name: Name used in the error message

    Returns:
        The URL without a trailing slash

    Raises:
        InvalidArgumentError: If the URL is empty or insecure
    """
    if not url:
        raise InvalidArgumentError(f"{name} must be provided")

    parsed = urllib.parse.urlparse(url)
    host = parsed.hostname or ""
    is_local = host in ("localhost", "127.0.0.1", "::1")
    if parsed.scheme != "https" and not is_local:
        if os.environ.get("BRIDGETX_INSECURE_HTTP") != "1":
            raise InvalidArgumentError(
                f"{name} must use https:// for security (got: {parsed.scheme}://). "
                "Set BRIDGETX_INSECURE_HTTP=1 to allow http for development."
            )
    return url.rstrip("/")


class ChainRegistry:
    """Immutable mapping of chain id to bridge deployment"""

    # Registries already loaded from disk, keyed by resolved path
    _file_cache: Dict[str, "ChainRegistry"] = {}

    def __init__(self, entries: Iterable[ChainRegistryEntry]):
        """
        Build a registry from entries.

        Raises:
            ValueError: If a chain id appears twice
        """
        by_id: Dict[int, ChainRegistryEntry] = {}
        for entry in entries:
            if entry.chain_id in by_id:
                raise ValueError(f"Duplicate chain id {entry.chain_id} in chain registry")
            by_id[entry.chain_id] = entry
        self._entries = by_id

    @classmethod
    def from_data(cls, data: Union[List[Dict[str, Any]], Dict[str, Any]]) -> "ChainRegistry":
        """
        Build a registry from parsed JSON.

        Accepts a list of entries, ``{"chains": [...]}``, or a mapping of
        chain id to entry.
        """
        if isinstance(data, dict):
            if "chains" in data:
                raw_entries = data["chains"]
            else:
                raw_entries = [{"chainId": int(chain_id), **entry} for chain_id, entry in data.items()]
        else:
            raw_entries = data
        return cls(ChainRegistryEntry.model_validate(entry) for entry in raw_entries)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "ChainRegistry":
        """
        Load a registry from a JSON file, caching the result per path.

        Args:
            path: Registry file; defaults to ``$BRIDGETX_CHAIN_REGISTRY``

        Raises:
            ValueError: If no path is given or configured
            FileNotFoundError: If the file does not exist
        """
        path = path or os.environ.get(REGISTRY_PATH_ENV)
        if not path:
            raise ValueError(f"No chain registry path given and {REGISTRY_PATH_ENV} is not set")

        cache_key = str(Path(path).resolve())
        if cache_key not in cls._file_cache:
            with open(path, "r") as f:
                data = json.load(f)
            cls._file_cache[cache_key] = cls.from_data(data)
            logger.debug(f"Loaded chain registry from {path}")
        return cls._file_cache[cache_key]

    def get(self, chain_id: int) -> ChainRegistryEntry:
        """
        Raises:
            UnknownChainError: If the chain is not configured
        """
        try:
            return self._entries[int(chain_id)]
        except KeyError:
            raise UnknownChainError(int(chain_id))

    def get_rpc_url(self, chain_id: int, override: Optional[str] = None) -> Optional[str]:
        """
        Resolve the RPC URL of a chain: override, then environment, then registry.

        Raises:
            UnknownChainError: If the chain is not configured
        """
        entry = self.get(chain_id)
        if override:
            return override
        return os.environ.get(f"{RPC_URL_ENV_PREFIX}{entry.chain_id}") or entry.rpc_url

    @property
    def chain_ids(self) -> List[int]:
        return list(self._entries)

    def __contains__(self, chain_id: object) -> bool:
        return chain_id in self._entries

    def __iter__(self) -> Iterator[ChainRegistryEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)


def _env_int(name: str, default: int, minimum: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidArgumentError(f"{name} must be an integer (got: {raw!r})")
    if value < minimum:
        raise InvalidArgumentError(f"{name} must be at least {minimum} (got: {value})")
    return value


@dataclass(frozen=True)
class ReconcilerSettings:
    """Runtime settings for the reconciler"""
    relayer_url: str
    timeout: int = 30
    max_concurrency: int = 0

    @classmethod
    def from_env(cls, relayer_url: Optional[str] = None) -> "ReconcilerSettings":
        """
        Read settings from ``BRIDGETX_RELAYER_URL``, ``BRIDGETX_TIMEOUT`` and
        ``BRIDGETX_MAX_CONCURRENCY``.

        Raises:
            InvalidArgumentError: If no relayer URL is configured, the timeout
                is not a positive integer or the concurrency limit is negative
        """
        url = relayer_url or os.environ.get("BRIDGETX_RELAYER_URL", "")
        return cls(
            relayer_url=validate_service_url(url, "relayer_url"),
            timeout=_env_int("BRIDGETX_TIMEOUT", 30, minimum=1),
            max_concurrency=_env_int("BRIDGETX_MAX_CONCURRENCY", 0, minimum=0),
        )
