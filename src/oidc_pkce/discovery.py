"""Provider metadata discovery with per-client memoisation.

:class:`DiscoveryCache` fetches the OpenID provider's discovery document
(typically ``https://provider/.well-known/openid-configuration``) on first
use and keeps the decoded :class:`~oidc_pkce.models.ProviderMetadata` for
the lifetime of its owner. There is no TTL and no revalidation: the
metadata is treated as immutable, and a fresh fetch needs a fresh client.
A failed load caches nothing.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from oidc_pkce.exceptions import DiscoveryError
from oidc_pkce.models import ProviderMetadata

logger = logging.getLogger(__name__)


class DiscoveryCache:
    """Load and memoise the provider's discovery document.

    Args:
        discovery_url: URL of the discovery document.
        http_client: Client used for the single GET request.
    """

    def __init__(self, discovery_url: str, http_client: httpx.AsyncClient) -> None:
        self._discovery_url = discovery_url
        self._http = http_client
        self._metadata: Optional[ProviderMetadata] = None

    @property
    def cached(self) -> Optional[ProviderMetadata]:
        """The memoised metadata, or ``None`` before the first successful load."""
        return self._metadata

    async def load(self) -> ProviderMetadata:
        """Return the provider metadata, fetching it on the first call only.

        Returns:
            The decoded :class:`~oidc_pkce.models.ProviderMetadata`.

        Raises:
            DiscoveryError: If the request fails, the status is not 2xx, or
                the body is not a JSON object of the expected shape.
        """
        if self._metadata is not None:
            return self._metadata

        logger.debug("Fetching discovery document from %s", self._discovery_url)
        try:
            response = await self._http.get(
                self._discovery_url,
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            doc: Any = response.json()
        except httpx.HTTPStatusError as exc:
            raise DiscoveryError(
                f"OpenID discovery failed with status {exc.response.status_code}: "
                f"{exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise DiscoveryError(f"OpenID discovery failed: {exc}") from exc
        except ValueError as exc:
            raise DiscoveryError(
                f"OpenID discovery document is not valid JSON: {exc}"
            ) from exc

        if not isinstance(doc, dict):
            raise DiscoveryError("OpenID discovery document is not a JSON object")

        try:
            metadata = ProviderMetadata.model_validate(doc)
        except ValidationError as exc:
            raise DiscoveryError(
                f"OpenID discovery document has an unexpected shape: {exc}"
            ) from exc

        logger.debug("Discovered provider metadata for issuer %s", metadata.issuer or "<unset>")
        self._metadata = metadata
        return metadata
