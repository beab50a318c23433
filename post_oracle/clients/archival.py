"""Pinata client for archiving approved posts to IPFS."""

from typing import Any

import httpx

from post_oracle.core.logging import get_logger
from post_oracle.pipeline.models import ArchivalRecord

logger = get_logger(__name__)

PIN_JSON_PATH = "/pinning/pinJSONToIPFS"


class ArchivalError(Exception):
    """Raised when a record could not be pinned."""


class ArchivalClient:
    """Pins :class:`ArchivalRecord` payloads through Pinata's JSON endpoint."""

    def __init__(
        self,
        api_key: str | None,
        secret_key: str | None,
        base_url: str = "https://api.pinata.cloud",
        cid_version: int = 1,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Pinata API key
            secret_key: Pinata secret API key
            base_url: Pinata API base URL
            cid_version: CID version requested for pins
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.api_key = api_key
        self.secret_key = secret_key
        self.endpoint = f"{base_url.rstrip('/')}{PIN_JSON_PATH}"
        self.cid_version = cid_version
        self.timeout = timeout
        self._transport = transport

    @staticmethod
    def pin_name(record: ArchivalRecord) -> str:
        """Name shown for the pin in Pinata."""
        return f"post-{record.post_id}-{record.username}"

    def build_body(self, record: ArchivalRecord) -> dict[str, Any]:
        """Build the pinJSONToIPFS request body for a record."""
        return {
            "pinataOptions": {"cidVersion": self.cid_version},
            "pinataMetadata": {
                "name": self.pin_name(record),
                "keyvalues": {
                    "postId": record.post_id,
                    "username": record.username,
                },
            },
            "pinataContent": record.model_dump(mode="json"),
        }

    async def archive(self, record: ArchivalRecord) -> str:
        """Pin a record and return its content identifier.

        Args:
            record: Approved post to archive

        Returns:
            The IPFS CID reported by Pinata

        Raises:
            ArchivalError: On missing credentials, transport errors,
                non-success responses or a response without ``IpfsHash``
        """
        log = logger.bind(submission_id=record.post_id)
        log.info("archival_upload_started", name=self.pin_name(record))

        try:
            if not self.api_key or not self.secret_key:
                raise ValueError("Pinata credentials are not configured")

            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(
                    self.endpoint,
                    json=self.build_body(record),
                    headers={
                        "Content-Type": "application/json",
                        "pinata_api_key": self.api_key,
                        "pinata_secret_api_key": self.secret_key,
                    },
                )
                response.raise_for_status()
                cid = response.json().get("IpfsHash")
            if not cid:
                raise ValueError("Pinata response did not include IpfsHash")
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            context: dict[str, Any] = {}
            if isinstance(e, httpx.HTTPStatusError):
                context["status_code"] = e.response.status_code
            log.error(
                "archival_upload_failed",
                error=str(e),
                error_type=e.__class__.__name__,
                **context,
            )
            raise ArchivalError("Failed to upload to Pinata") from e

        log.info("archival_upload_completed", cid=cid)
        return str(cid)
