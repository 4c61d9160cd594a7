"""
Tests for the matterctl terminal launcher's HTTP client
"""

from unittest.mock import Mock, patch

import pytest
import requests

from matterctl import BridgeClient, BridgeClientError, device_table


def make_response(status_code=200, payload=None):
    response = Mock()
    response.status_code = status_code
    if payload is None:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = payload
    return response


class TestBridgeClient:

    @patch("matterctl.requests.request")
    def test_scan(self, mock_request):
        mock_request.return_value = make_response(payload={
            "status": "success",
            "devices": [{"nodeId": "1", "name": "light1"}],
        })

        devices = BridgeClient("http://bridge:3000/").scan()

        assert devices == [{"nodeId": "1", "name": "light1"}]
        args, kwargs = mock_request.call_args
        assert args == ("POST", "http://bridge:3000/api/discovery/scan")
        assert kwargs["timeout"] == 90

    @patch("matterctl.requests.request")
    def test_pair_sends_camel_case(self, mock_request):
        mock_request.return_value = make_response(payload={
            "status": "success",
            "deviceInfo": {"nodeId": "1", "status": "paired"},
        })

        info = BridgeClient().pair("1", "34970112332")

        assert info["status"] == "paired"
        assert mock_request.call_args.kwargs["json"] == {"nodeId": "1", "setupCode": "34970112332"}

    @patch("matterctl.requests.request")
    def test_logs_date_param(self, mock_request):
        mock_request.return_value = make_response(payload={"status": "success", "logs": ["a"]})

        assert BridgeClient().logs("2024-01-15") == ["a"]
        assert mock_request.call_args.kwargs["params"] == {"date": "2024-01-15"}

    @patch("matterctl.requests.request")
    def test_error_envelope(self, mock_request):
        mock_request.return_value = make_response(404, {
            "status": "error", "code": "NotFound", "message": "Device 9 not found",
        })

        with pytest.raises(BridgeClientError) as exc_info:
            BridgeClient().pair("9", "34970112332")

        assert exc_info.value.code == "NotFound"
        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "Device 9 not found"

    @patch("matterctl.requests.request")
    def test_connection_error(self, mock_request):
        mock_request.side_effect = requests.ConnectionError("refused")

        with pytest.raises(BridgeClientError, match="Cannot reach bridge"):
            BridgeClient().health()

    @patch("matterctl.requests.request")
    def test_non_json_response(self, mock_request):
        mock_request.return_value = make_response(502)

        with pytest.raises(BridgeClientError) as exc_info:
            BridgeClient().devices()
        assert exc_info.value.status_code == 502


class TestDeviceTable:

    def test_rows(self):
        table = device_table([
            {"nodeId": "1", "name": "light1", "addresses": ["10.0.0.2"], "status": "paired"},
            {"nodeId": "2", "networkType": "thread"},
        ])

        assert table.row_count == 2
        assert len(table.columns) == 7
