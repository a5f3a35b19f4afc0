"""Tests for the JSON-RPC client (HTTP layer stubbed)."""

from unittest.mock import MagicMock

import pytest
import requests

from collection_reader.errors import RpcError, TransportError, UnsupportedChain
from collection_reader.models import LogFilter
from collection_reader.rpc_client import RpcClient


def _response(payload=None, status_code=200, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return response


@pytest.fixture
def session():
    return MagicMock()


@pytest.fixture
def client(registry, session):
    return RpcClient(registry, timeout=3, session=session, backoff_seconds=0)


class TestCall:
    def test_returns_result(self, client, session):
        session.post.return_value = _response({"jsonrpc": "2.0", "id": 1, "result": "0x10"})

        assert client.call(1, "eth_blockNumber", []) == "0x10"

        args, kwargs = session.post.call_args
        assert args[0] == "https://eth.example"
        assert kwargs["timeout"] == 3
        assert kwargs["json"]["method"] == "eth_blockNumber"
        assert kwargs["json"]["jsonrpc"] == "2.0"

    def test_routes_by_chain(self, client, session):
        session.post.return_value = _response({"result": "0x1"})
        client.call(8453, "eth_chainId")
        assert session.post.call_args[0][0] == "https://base.example"

    def test_unknown_chain(self, client, session):
        with pytest.raises(UnsupportedChain):
            client.call(999, "eth_blockNumber", [])
        session.post.assert_not_called()

    def test_rpc_error_payload(self, client, session):
        session.post.return_value = _response(
            {"error": {"code": 3, "message": "execution reverted", "data": "0x"}}
        )
        with pytest.raises(RpcError) as excinfo:
            client.call(1, "eth_call", [])
        assert excinfo.value.message == "execution reverted"
        assert excinfo.value.code == 3

    def test_rpc_error_is_not_retried(self, registry, session):
        client = RpcClient(registry, session=session, max_retries=3, backoff_seconds=0)
        session.post.return_value = _response({"error": {"message": "execution reverted"}})
        with pytest.raises(RpcError):
            client.call(1, "eth_call", [])
        assert session.post.call_count == 1

    def test_timeout_is_transport_error(self, client, session):
        session.post.side_effect = requests.Timeout("read timed out")
        with pytest.raises(TransportError):
            client.call(1, "eth_blockNumber", [])

    def test_malformed_json_is_transport_error(self, client, session):
        session.post.return_value = _response(json_error=ValueError("Expecting value"))
        with pytest.raises(TransportError):
            client.call(1, "eth_blockNumber", [])

    def test_missing_result_is_transport_error(self, client, session):
        session.post.return_value = _response({"jsonrpc": "2.0", "id": 1})
        with pytest.raises(TransportError):
            client.call(1, "eth_blockNumber", [])

    def test_http_status_is_transport_error(self, client, session):
        session.post.return_value = _response(status_code=503)
        with pytest.raises(TransportError):
            client.call(1, "eth_blockNumber", [])

    def test_transport_failure_retried_when_configured(self, registry, session):
        client = RpcClient(registry, session=session, max_retries=2, backoff_seconds=0)
        session.post.side_effect = [
            requests.ConnectionError("reset"),
            _response({"result": "0x2"}),
        ]
        assert client.call(1, "eth_blockNumber", []) == "0x2"
        assert session.post.call_count == 2

    def test_request_ids_increase(self, client, session):
        session.post.return_value = _response({"result": "0x1"})
        client.call(1, "eth_blockNumber", [])
        client.call(1, "eth_blockNumber", [])
        ids = [call.kwargs["json"]["id"] for call in session.post.call_args_list]
        assert ids == [1, 2]

    def test_params_must_be_list(self, client):
        with pytest.raises(ValueError):
            client.call(1, "eth_call", {"to": "0x"})


class TestHelpers:
    def test_eth_call_params(self, client, session):
        session.post.return_value = _response({"result": "0x"})
        client.eth_call(1, "0x" + "ab" * 20, "0x18160ddd")
        params = session.post.call_args.kwargs["json"]["params"]
        assert params == [{"to": "0x" + "ab" * 20, "data": "0x18160ddd"}, "latest"]

    def test_get_block_number(self, client, session):
        session.post.return_value = _response({"result": "0xf4240"})
        assert client.get_block_number(1) == 1_000_000

    def test_get_block_number_rejects_garbage(self, client, session):
        session.post.return_value = _response({"result": 12})
        with pytest.raises(TransportError):
            client.get_block_number(1)

    def test_get_logs_filter_encoding(self, client, session):
        session.post.return_value = _response({"result": [{"topics": []}, "junk"]})
        log_filter = LogFilter(
            from_block=995001,
            to_block=1_000_000,
            address="0x" + "ab" * 20,
            topics=("0xaa", "0xbb"),
        )
        logs = client.get_logs(1, log_filter)

        assert logs == [{"topics": []}]
        sent = session.post.call_args.kwargs["json"]
        assert sent["method"] == "eth_getLogs"
        assert sent["params"] == [
            {
                "fromBlock": "0xf2eb9",
                "toBlock": "0xf4240",
                "address": "0x" + "ab" * 20,
                "topics": ["0xaa", "0xbb"],
            }
        ]

    def test_get_logs_null_result(self, client, session):
        session.post.return_value = _response({"result": None})
        assert client.get_logs(1, LogFilter(0, 1, "0x" + "ab" * 20, ())) == []
