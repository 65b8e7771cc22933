# -----------------------------------------------------------------------------
# OCR boundary: one document in, one block graph out.
#
# The pipeline only depends on the small `OcrClient` protocol below. The
# production implementation, `TextractOcrClient`, calls AWS Textract's
# synchronous AnalyzeDocument API with the TABLES and FORMS features so that
# the response carries TABLE/CELL and KEY_VALUE_SET blocks next to the plain
# LINE/WORD blocks.
#
# Failure mapping
# ---------------
# Every failure of the remote call (botocore ClientError, BotoCoreError such
# as connect/read timeouts, or an unusable response) surfaces as
# `TransientServiceError`. Nothing is retried here: botocore retries are
# disabled and retrying is left to whoever called the batch.
#
# Region and credentials come from settings and are handed to boto3 as-is.
# Explicit keys are only used when both the key id and the secret are set;
# otherwise boto3's default credential chain (env, profile, IAM role) applies.
# -----------------------------------------------------------------------------
from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError as PydanticValidationError

from reportocr.core.contracts.block import BlockGraph
from reportocr.core.errors import TransientServiceError
from reportocr.core.settings import Settings, get_logger, load_settings

logger = get_logger(__name__)

DEFAULT_FEATURE_TYPES: tuple[str, ...] = ("TABLES", "FORMS")


class OcrClient(Protocol):
    """The only call the pipeline makes to the outside world."""

    def detect_document(self, buffer: bytes, mime_type: str) -> BlockGraph: ...


@dataclass(slots=True)
class TextractOcrClient:
    """AnalyzeDocument-backed :class:`OcrClient`.

    Parameters
    ----------
    region:
        AWS region of the Textract endpoint.
    access_key_id, secret_access_key, session_token:
        Optional explicit credentials, passed through to boto3.
    timeout_seconds:
        Connect and read timeout applied to the botocore client.
    feature_types:
        AnalyzeDocument features to request.
    client:
        Pre-built boto3 Textract client. When None, one is created lazily on
        first use; tests inject a stub here.
    """

    region: str = "us-east-1"
    access_key_id: str | None = None
    secret_access_key: str | None = None
    session_token: str | None = None
    timeout_seconds: float = 30.0
    feature_types: Sequence[str] = DEFAULT_FEATURE_TYPES
    client: Any = field(default=None, repr=False)

    # --------------------------------------------------------------------- #
    # Constructors
    # --------------------------------------------------------------------- #
    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> TextractOcrClient:
        """Construct a client from application settings."""
        s = settings or load_settings()
        return cls(
            region=s.aws_region,
            access_key_id=s.aws_access_key_id,
            secret_access_key=s.aws_secret_access_key,
            session_token=s.aws_session_token,
            timeout_seconds=s.ocr_timeout_seconds,
        )

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #
    def detect_document(self, buffer: bytes, mime_type: str) -> BlockGraph:
        """Run AnalyzeDocument on ``buffer`` and return its block graph.

        Parameters
        ----------
        buffer:
            Raw document bytes (image or single-page PDF).
        mime_type:
            MIME type of ``buffer``; only used for logging, Textract sniffs
            the format itself.

        Raises
        ------
        TransientServiceError
            If the call fails, times out, or returns no usable blocks.
        """
        logger.info(
            "Processing %s with Textract",
            "PDF document" if mime_type == "application/pdf" else "single image",
        )
        response = self._analyze(buffer)
        return self._parse_response(response)

    # --------------------------------------------------------------------- #
    # Internal helpers (test seams)
    # --------------------------------------------------------------------- #
    def _boto_client(self) -> Any:
        """Return the boto3 Textract client, creating it on first use."""
        if self.client is None:
            kwargs: dict[str, Any] = {
                "region_name": self.region,
                "config": Config(
                    connect_timeout=self.timeout_seconds,
                    read_timeout=self.timeout_seconds,
                    retries={"total_max_attempts": 1},
                ),
            }
            if self.access_key_id and self.secret_access_key:
                kwargs["aws_access_key_id"] = self.access_key_id
                kwargs["aws_secret_access_key"] = self.secret_access_key
                if self.session_token:
                    kwargs["aws_session_token"] = self.session_token
            self.client = boto3.client("textract", **kwargs)
            logger.info(
                "Textract client initialized with region %s and credentials %s",
                self.region,
                "(provided)" if "aws_access_key_id" in kwargs else "(default chain)",
            )
        return self.client

    def _analyze(self, buffer: bytes) -> Mapping[str, Any]:
        """Call AnalyzeDocument and translate botocore failures."""
        try:
            response: Mapping[str, Any] = self._boto_client().analyze_document(
                Document={"Bytes": buffer},
                FeatureTypes=list(self.feature_types),
            )
        except ClientError as exc:
            error = exc.response.get("Error", {})
            code = error.get("Code", "Unknown")
            request_id = exc.response.get("ResponseMetadata", {}).get("RequestId")
            logger.warning("Textract API error %s (request_id=%s)", code, request_id)
            raise TransientServiceError(
                f"Textract API error: {error.get('Message', str(exc))}",
                error_code=code,
                request_id=request_id,
            ) from exc
        except BotoCoreError as exc:
            logger.warning("Textract SDK error: %s", type(exc).__name__)
            raise TransientServiceError(f"AWS SDK error: {exc}") from exc
        return response

    @staticmethod
    def _parse_response(response: Mapping[str, Any]) -> BlockGraph:
        """Turn a raw AnalyzeDocument payload into a :class:`BlockGraph`."""
        if not response or not response.get("Blocks"):
            raise TransientServiceError("Empty response from Textract")
        try:
            return BlockGraph.from_textract(response)
        except PydanticValidationError as exc:
            raise TransientServiceError(f"Malformed response from Textract: {exc}") from exc


__all__ = ["DEFAULT_FEATURE_TYPES", "OcrClient", "TextractOcrClient"]
