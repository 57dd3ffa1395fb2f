"""
RemoteBlobStore — Opaque payload storage inside a remote multi-file JSON document.

Provides the public API for the remote side of the vault:
- ``fetch(key)`` — return the stored payload, or ``ABSENT`` when the entry
  does not exist yet
- ``store(key, payload)`` — overwrite the entry with a new payload
- ``exists(key)`` — check whether the entry exists

The document is addressed by ``StoreConfig.document_id`` and every request
carries the bearer token. Updates are partial: only the named entry is sent
and the remote service merges it by name.

Writes are unconditional (no version compare-and-swap); when two writers
target the same entry, the last write applied by the remote wins.

Security Note:
    Never log the token, the document id or payload values. Only log entry
    names, operations and HTTP statuses.
"""
import time
import asyncio
import logging
from typing import Any, Optional

import aiohttp
import orjson
from yarl import URL

from .conf import StoreConfig
from .exceptions import TransportError
from .naming import EntryNaming, FixedEntry

logger = logging.getLogger("vault_sync.store")

ENVELOPE_VERSION = 1

# Result of ``fetch`` for an entry that was never written.
ABSENT = None


class RemoteBlobStore:
    """Stores one encrypted payload per entry of a remote JSON document.

    The payload is opaque to the store: it is written and returned verbatim,
    never inspected.
    """

    def __init__(
        self,
        config: StoreConfig,
        naming: Optional[EntryNaming] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ):
        self._config = config
        self._naming = naming or FixedEntry()
        self._session = session
        self._owns_session = session is None

    @property
    def naming(self) -> EntryNaming:
        return self._naming

    # ------------------------------------------------------------------
    # Session helpers
    # ------------------------------------------------------------------

    def _get_session(self) -> aiohttp.ClientSession:
        """Get or create a reusable aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this store created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
        self._session = None

    async def __aenter__(self) -> "RemoteBlobStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # HTTP helper
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        url: str,
        failure: str,
        body: Optional[dict] = None,
    ) -> Any:
        """Issue one request and return the decoded JSON response body.

        Args:
            method: HTTP method.
            url: Target url.
            failure: Generic message used for any TransportError.
            body: Optional JSON body.

        Raises:
            TransportError: On a non-2xx status, a network failure or an
                undecodable response.
        """
        headers = self._config.headers()
        data = None
        if body is not None:
            headers["Content-Type"] = "application/json"
            data = orjson.dumps(body)
        session = self._get_session()
        try:
            async with session.request(
                method, url, headers=headers, data=data
            ) as resp:
                if not 200 <= resp.status < 300:
                    logger.error(
                        "Remote store %s failed with status %d", method, resp.status,
                    )
                    raise TransportError(failure, status=resp.status)
                return await resp.json(loads=orjson.loads, content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as err:
            logger.error("Remote store %s failed: %s", method, type(err).__name__)
            raise TransportError(failure) from err
        except orjson.JSONDecodeError as err:
            logger.error("Remote store %s returned an undecodable body", method)
            raise TransportError(failure) from err

    def _raw_headers(self, url: str) -> dict[str, str]:
        """Headers for a raw content url; the token only goes to the API origin."""
        headers = self._config.headers()
        try:
            same_origin = URL(url).origin() == URL(self._config.api_url).origin()
        except (ValueError, TypeError):
            same_origin = False
        if not same_origin:
            headers.pop("Authorization", None)
        return headers

    async def _read_raw(self, url: str, failure: str) -> str:
        """Read a truncated entry's full content from its raw url."""
        session = self._get_session()
        try:
            async with session.get(url, headers=self._raw_headers(url)) as resp:
                if not 200 <= resp.status < 300:
                    logger.error("Raw entry read failed with status %d", resp.status)
                    raise TransportError(failure, status=resp.status)
                return await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as err:
            logger.error("Raw entry read failed: %s", type(err).__name__)
            raise TransportError(failure) from err

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(self, key: Optional[str] = None) -> Optional[str]:
        """Return the payload stored under the entry for ``key``.

        Args:
            key: Identity used by the naming strategy (ignored by FixedEntry).

        Returns:
            The payload text verbatim, or ``ABSENT`` if the entry does not
            exist yet.

        Raises:
            TransportError: If the document cannot be read or the entry is
                not a valid envelope.
        """
        name = self._naming.entry_name(key)
        failure = f"Could not fetch vault entry {name!r}. Check credentials and network."
        document = await self._request("GET", self._config.document_url, failure)

        files = document.get("files") if isinstance(document, dict) else None
        entry = (files or {}).get(name)
        if not entry:
            logger.warning(
                "Entry %r not found in remote document; it will be created on first save",
                name,
            )
            return ABSENT
        if not isinstance(entry, dict):
            logger.error("Entry %r is not a file object", name)
            raise TransportError(failure)

        content = entry.get("content")
        if entry.get("truncated") and entry.get("raw_url"):
            content = await self._read_raw(entry["raw_url"], failure)
        try:
            envelope = orjson.loads(content)
            payload = envelope["payload"]
        except (orjson.JSONDecodeError, TypeError, KeyError) as err:
            logger.error("Entry %r does not hold a vault envelope", name)
            raise TransportError(failure) from err
        if not isinstance(payload, str):
            raise TransportError(failure)
        logger.debug("Fetched vault entry %r", name)
        return payload

    async def store(self, key: Optional[str], payload: str) -> None:
        """Overwrite the entry for ``key`` with ``payload``.

        Only the named entry is sent; other entries of the document are left
        to the remote service's merge.

        Raises:
            TransportError: If the update is rejected or cannot be sent.
        """
        name = self._naming.entry_name(key)
        envelope = {
            "version": ENVELOPE_VERSION,
            "payload": payload,
            "updatedAt": int(time.time() * 1000),
        }
        owner = self._naming.owner(key)
        if owner is not None:
            envelope["owner"] = owner
        body = {
            "files": {
                name: {"content": orjson.dumps(envelope).decode("utf-8")},
            },
        }
        failure = f"Could not save vault entry {name!r}. Check credentials and network."
        await self._request("PATCH", self._config.document_url, failure, body=body)
        logger.info("Stored vault entry %r", name)

    async def exists(self, key: Optional[str] = None) -> bool:
        """Check whether the entry for ``key`` has been written."""
        return await self.fetch(key) is not ABSENT
