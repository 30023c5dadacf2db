"""
Tests for the relayer API client.
"""
import logging
from unittest.mock import patch

import pytest
import requests

from bridgetx_sdk.exceptions import InvalidArgumentError, RelayerAPIError
from bridgetx_sdk.relayer import RelayerAPIClient
from tests.conftest import H1, OWNER_A, RELAYER_URL, SRC_CHAIN_ID, make_message, relayer_item, tx_hash

EVENTS_URL = f"{RELAYER_URL}/events"
BLOCK_INFO_URL = f"{RELAYER_URL}/blockInfo"
JSON_HEADERS = {"Content-Type": "application/json"}


def test_get_events(relayer, requests_mock):
    item = relayer_item(make_message(), H1, tx_hash(1), status=2, amount="1000000000000000000000000", symbol="ETH")
    requests_mock.get(EVENTS_URL, json={"items": [item]}, headers=JSON_HEADERS)

    page = relayer.get_events(OWNER_A)

    assert len(page.items) == 1
    event = page.items[0]
    assert event.status == 2
    assert event.amount == 10 ** 24
    assert event.canonical_token_symbol == "ETH"
    assert event.expected_msg_hash == H1
    assert event.tx_hash == tx_hash(1)
    assert event.message.deposit_value == 100
    assert event.data.raw.block_number == 10
    assert requests_mock.last_request.qs == {"address": [OWNER_A]}


def test_get_events_chain_filter(relayer, requests_mock):
    requests_mock.get(EVENTS_URL, json={"items": []}, headers=JSON_HEADERS)

    relayer.get_events(OWNER_A, chain_id=SRC_CHAIN_ID)

    assert f"chainID={SRC_CHAIN_ID}" in requests_mock.last_request.url


@pytest.mark.parametrize("body", [{}, {"items": None}, {"items": []}])
def test_get_events_empty(relayer, requests_mock, body):
    requests_mock.get(EVENTS_URL, json=body, headers=JSON_HEADERS)

    assert relayer.get_events(OWNER_A).items == []


def test_get_events_falls_back_to_nested_hash(relayer, requests_mock):
    item = relayer_item(make_message(), None, tx_hash(1))
    item["data"]["MsgHash"] = H1
    requests_mock.get(EVENTS_URL, json={"items": [item]}, headers=JSON_HEADERS)

    assert relayer.get_events(OWNER_A).items[0].expected_msg_hash == H1


def test_get_events_blank_fields_are_none(relayer, requests_mock):
    item = relayer_item(make_message(), H1, tx_hash(1))
    item["amount"] = ""
    item["canonicalTokenSymbol"] = ""
    requests_mock.get(EVENTS_URL, json={"items": [item]}, headers=JSON_HEADERS)

    event = relayer.get_events(OWNER_A).items[0]
    assert event.amount is None
    assert event.canonical_token_symbol is None


def test_get_events_http_error(relayer, requests_mock):
    requests_mock.get(EVENTS_URL, status_code=404, text="not found")

    with pytest.raises(RelayerAPIError) as exc_info:
        relayer.get_events(OWNER_A)

    assert exc_info.value.status_code == 404


def test_get_events_connection_error(relayer, requests_mock):
    requests_mock.get(EVENTS_URL, exc=requests.exceptions.ConnectionError("refused"))

    with pytest.raises(RelayerAPIError, match="refused") as exc_info:
        relayer.get_events(OWNER_A)

    assert exc_info.value.status_code is None


def test_get_events_invalid_json(relayer, requests_mock):
    requests_mock.get(EVENTS_URL, text="<html>oops</html>", headers={"Content-Type": "text/html"})

    with pytest.raises(RelayerAPIError, match="Invalid JSON"):
        relayer.get_events(OWNER_A)


def test_get_events_malformed_items(relayer, requests_mock):
    requests_mock.get(EVENTS_URL, json={"items": [{"status": "new"}]}, headers=JSON_HEADERS)

    with pytest.raises(RelayerAPIError, match="Malformed"):
        relayer.get_events(OWNER_A)


def test_unexpected_content_type_warns(relayer, requests_mock, caplog):
    requests_mock.get(EVENTS_URL, json={"items": []}, headers={"Content-Type": "text/plain"})

    with caplog.at_level(logging.WARNING):
        relayer.get_events(OWNER_A)

    assert "Unexpected Content-Type" in caplog.text


def test_get_block_info(relayer, requests_mock):
    requests_mock.get(BLOCK_INFO_URL, json={"data": [
        {"chainID": 31336, "latestProcessedBlock": 90, "latestBlock": 100},
        {"chainID": 167001, "latestProcessedBlock": 5, "latestBlock": 7},
    ]}, headers=JSON_HEADERS)

    info = relayer.get_block_info()

    assert set(info) == {31336, 167001}
    assert info[31336].latest_processed_block == 90
    assert info[167001].latest_block == 7


def test_get_block_info_empty(relayer, requests_mock):
    requests_mock.get(BLOCK_INFO_URL, json={"data": None}, headers=JSON_HEADERS)

    assert relayer.get_block_info() == {}


def test_get_block_info_malformed(relayer, requests_mock):
    requests_mock.get(BLOCK_INFO_URL, json=["unexpected"], headers=JSON_HEADERS)

    with pytest.raises(RelayerAPIError):
        relayer.get_block_info()


def test_uses_configured_timeout(requests_mock):
    requests_mock.get(EVENTS_URL, json={"items": []}, headers=JSON_HEADERS)
    client = RelayerAPIClient(RELAYER_URL + "/", timeout=7)

    with patch.object(client.session, "get", wraps=client.session.get) as mock_get:
        client.get_events(OWNER_A)

    assert client.base_url == RELAYER_URL
    assert mock_get.call_args.kwargs["timeout"] == 7


def test_rejects_insecure_url(monkeypatch):
    monkeypatch.delenv("BRIDGETX_INSECURE_HTTP", raising=False)

    with pytest.raises(InvalidArgumentError, match="https"):
        RelayerAPIClient("http://relayer.example.com")


def test_allows_localhost_http():
    client = RelayerAPIClient("http://localhost:4102")

    assert client.base_url == "http://localhost:4102"


def test_context_manager_closes_session():
    session = requests.Session()
    with patch.object(session, "close") as mock_close:
        with RelayerAPIClient(RELAYER_URL, session=session) as client:
            assert client.session is session

    mock_close.assert_called_once()
