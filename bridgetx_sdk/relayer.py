"""
Client for the relayer indexing service.

The relayer records the bridge events it has observed and serves them over
HTTP JSON. This client performs exactly one request per call: no retries and
no pagination beyond what the relayer returns.
"""
import logging
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from .config import validate_service_url
from .exceptions import RelayerAPIError
from .models import RelayerBlockInfo, RelayerEventsPage


class RelayerAPIClient:
    """
    Client for the relayer's ``events`` and ``blockInfo`` endpoints.
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the relayer client

        Args:
            base_url: Relayer base URL (e.g., "https://relayer.example.com")
            timeout: Timeout for HTTP requests in seconds
            session: Optional pre-configured requests session
            logger: Optional logger instance

        Raises:
            InvalidArgumentError: If the URL is missing or does not use https
        """
        self.base_url = validate_service_url(base_url, "base_url")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or logging.getLogger(__name__)

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}/{path}"
        self.logger.debug(f"GET {url} params={params}")
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except requests.HTTPError as e:
            status_code = e.response.status_code if e.response is not None else None
            self.logger.error(f"Relayer request {url} failed with status {status_code}")
            raise RelayerAPIError(f"Relayer request failed: {e}", status_code=status_code) from e
        except requests.RequestException as e:
            self.logger.error(f"Relayer request {url} failed: {e}")
            raise RelayerAPIError(f"Relayer request failed: {e}") from e

        content_type = response.headers.get("Content-Type", "")
        if "application/json" not in content_type:
            self.logger.warning(f"Unexpected Content-Type: {content_type} (expected application/json)")

        try:
            return response.json()
        except ValueError as e:
            self.logger.error(f"Invalid JSON response from relayer: {e}")
            raise RelayerAPIError(f"Invalid JSON response from relayer: {e}", status_code=response.status_code) from e

    def get_events(self, address: str, chain_id: Optional[int] = None) -> RelayerEventsPage:
        """
        Fetch the bridge events recorded for an address.

        Args:
            address: Account address
            chain_id: Optional chain id filter

        Returns:
            One page of events; an empty page is valid

        Raises:
            RelayerAPIError: If the request fails or the payload is malformed
        """
        params: Dict[str, Any] = {"address": address}
        if chain_id is not None:
            params["chainID"] = chain_id

        data = self._get_json("events", params)
        if not data:
            return RelayerEventsPage()
        try:
            page = RelayerEventsPage.model_validate(data)
        except ValidationError as e:
            raise RelayerAPIError(f"Malformed events payload from relayer: {e}") from e

        self.logger.debug(f"Relayer returned {len(page.items)} events for {address}")
        return page

    def get_block_info(self) -> Dict[int, RelayerBlockInfo]:
        """
        Fetch the last block the relayer processed for each chain.

        Returns:
            Mapping of chain id to block info

        Raises:
            RelayerAPIError: If the request fails or the payload is malformed
        """
        data = self._get_json("blockInfo") or {}
        try:
            infos = [RelayerBlockInfo.model_validate(item) for item in data.get("data") or []]
        except (ValidationError, AttributeError) as e:
            raise RelayerAPIError(f"Malformed blockInfo payload from relayer: {e}") from e
        return {info.chain_id: info for info in infos}

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "RelayerAPIClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
