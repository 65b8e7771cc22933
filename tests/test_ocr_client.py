"""
Tests for the Textract-backed OCR client.

No network access: a MagicMock stands in for the boto3 Textract client, or
``boto3.client`` itself is replaced to inspect how the real client would be
built.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

import reportocr.ocr.client as client_module
from reportocr.core.errors import TransientServiceError
from reportocr.core.settings import Settings
from reportocr.ocr.client import TextractOcrClient


def _stub(response: Any = None, side_effect: Any = None) -> MagicMock:
    stub = MagicMock()
    stub.analyze_document.return_value = response
    stub.analyze_document.side_effect = side_effect
    return stub


def test_detect_document_requests_tables_and_forms(textract_response: dict[str, Any]) -> None:
    stub = _stub(textract_response)
    ocr = TextractOcrClient(client=stub)

    graph = ocr.detect_document(b"\x89PNG...", "image/png")

    stub.analyze_document.assert_called_once_with(
        Document={"Bytes": b"\x89PNG..."},
        FeatureTypes=["TABLES", "FORMS"],
    )
    assert len(graph) == len(textract_response["Blocks"])
    assert graph.get("kv1") is not None


@pytest.mark.parametrize("response", [{}, {"Blocks": []}])  # type: ignore[misc]
def test_empty_response_is_transient(response: dict[str, Any]) -> None:
    ocr = TextractOcrClient(client=_stub(response))
    with pytest.raises(TransientServiceError, match="Empty response from Textract"):
        ocr.detect_document(b"x", "image/png")


def test_malformed_response_is_transient() -> None:
    ocr = TextractOcrClient(client=_stub({"Blocks": [{"BlockType": "LINE"}]}))
    with pytest.raises(TransientServiceError, match="Malformed"):
        ocr.detect_document(b"x", "image/png")


def test_client_error_maps_to_transient() -> None:
    error = ClientError(
        {
            "Error": {"Code": "ProvisionedThroughputExceededException", "Message": "Slow down"},
            "ResponseMetadata": {"RequestId": "req-123"},
        },
        "AnalyzeDocument",
    )
    ocr = TextractOcrClient(client=_stub(side_effect=error))

    with pytest.raises(TransientServiceError) as info:
        ocr.detect_document(b"x", "image/jpeg")

    assert info.value.error_code == "ProvisionedThroughputExceededException"
    assert info.value.request_id == "req-123"
    assert "Slow down" in info.value.message
    assert info.value.__cause__ is error


def test_botocore_error_maps_to_transient() -> None:
    error = EndpointConnectionError(endpoint_url="https://textract.us-east-1.amazonaws.com")
    ocr = TextractOcrClient(client=_stub(side_effect=error))

    with pytest.raises(TransientServiceError, match="AWS SDK error"):
        ocr.detect_document(b"x", "application/pdf")


def test_boto_client_built_lazily_with_explicit_credentials(monkeypatch: Any) -> None:
    captured: dict[str, Any] = {}

    def fake_client(service: str, **kwargs: Any) -> MagicMock:
        captured["service"] = service
        captured.update(kwargs)
        return _stub({"Blocks": [{"BlockType": "PAGE", "Id": "p"}]})

    monkeypatch.setattr(client_module.boto3, "client", fake_client)

    ocr = TextractOcrClient(
        region="eu-central-1",
        access_key_id="AKIA",
        secret_access_key="secret",
        session_token="token",
        timeout_seconds=7.0,
    )
    assert not captured

    ocr.detect_document(b"x", "image/png")

    assert captured["service"] == "textract"
    assert captured["region_name"] == "eu-central-1"
    assert captured["aws_access_key_id"] == "AKIA"
    assert captured["aws_secret_access_key"] == "secret"
    assert captured["aws_session_token"] == "token"
    assert captured["config"].connect_timeout == 7.0
    assert captured["config"].read_timeout == 7.0


def test_boto_client_uses_default_chain_without_secret(monkeypatch: Any) -> None:
    captured: dict[str, Any] = {}

    def fake_client(service: str, **kwargs: Any) -> MagicMock:
        captured.update(kwargs)
        return MagicMock()

    monkeypatch.setattr(client_module.boto3, "client", fake_client)

    TextractOcrClient(access_key_id="AKIA")._boto_client()

    assert "aws_access_key_id" not in captured
    assert "aws_secret_access_key" not in captured


def test_from_settings_passes_region_and_timeout() -> None:
    s = Settings(AWS_REGION="ap-southeast-2", TEXTRACT_TIMEOUT_SECONDS=12)
    ocr = TextractOcrClient.from_settings(s)

    assert ocr.region == "ap-southeast-2"
    assert ocr.timeout_seconds == 12
    assert ocr.client is None
