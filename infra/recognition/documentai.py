"""
Google Document AI recognition client.

Usage:
    client = DocumentAIClient.from_config(config.recognition)
    text = client.recognize(png_bytes)

The underlying DocumentProcessorServiceClient is thread-safe, so one
DocumentAIClient is shared by every recognition worker of a coordinator.
"""

from pathlib import Path
from typing import Any, Optional

from google.api_core.client_options import ClientOptions
from google.auth.exceptions import GoogleAuthError
from google.cloud import documentai_v1 as documentai

from infra.config.schemas import RecognitionConfig
from infra.errors import ConfigurationError

from .provider import RecognitionClient


class DocumentAIClient(RecognitionClient):

    def __init__(
        self,
        processor: str,
        credentials_file: Optional[Path] = None,
        api_endpoint: Optional[str] = None,
        timeout_seconds: Optional[float] = None,
        client: Any = None,
    ):
        """
        Args:
            processor: Full processor resource name
            credentials_file: Service account key file (None uses application default credentials)
            api_endpoint: Regional endpoint, e.g. "eu-documentai.googleapis.com"
            timeout_seconds: Per-request transport timeout
            client: Pre-built DocumentProcessorServiceClient (tests, custom transports)
        """
        self.processor = processor
        self.timeout_seconds = timeout_seconds

        if client is not None:
            self._client = client
            return

        options = ClientOptions(api_endpoint=api_endpoint) if api_endpoint else None
        if credentials_file is not None:
            self._client = documentai.DocumentProcessorServiceClient.from_service_account_file(
                str(credentials_file),
                client_options=options,
            )
        else:
            self._client = documentai.DocumentProcessorServiceClient(client_options=options)

    @classmethod
    def from_config(cls, config: RecognitionConfig, client: Any = None) -> "DocumentAIClient":
        """Build a client, raising ConfigurationError for a missing processor or unusable credentials."""
        config.validate_service()
        credentials = (
            Path(config.credentials_file).expanduser()
            if config.credentials_file is not None else None
        )
        try:
            return cls(
                processor=config.processor,
                credentials_file=credentials,
                api_endpoint=config.endpoint,
                timeout_seconds=config.timeout_seconds,
                client=client,
            )
        except ValueError as e:
            # Malformed service account file
            raise ConfigurationError(f"Invalid credentials file {credentials}: {e}") from e
        except GoogleAuthError as e:
            # No key file and no application default credentials
            raise ConfigurationError(f"Google credentials unavailable: {e}") from e

    @property
    def name(self) -> str:
        return "documentai"

    def recognize(self, image_bytes: bytes, mime_type: str = "image/png") -> str:
        request = documentai.ProcessRequest(
            name=self.processor,
            raw_document=documentai.RawDocument(content=image_bytes, mime_type=mime_type),
        )

        kwargs = {}
        if self.timeout_seconds is not None:
            kwargs['timeout'] = self.timeout_seconds

        result = self._client.process_document(request=request, **kwargs)
        return result.document.text or ""

    def close(self) -> None:
        transport = getattr(self._client, "transport", None)
        if transport is not None and hasattr(transport, "close"):
            transport.close()
