"""Thin async HTTP helper shared by the Google Maps services."""

import logging
from typing import Any

import httpx

from mapmyway.models import RemoteServiceError

logger = logging.getLogger(__name__)


class GoogleMapsClient:
    """Issues GET requests against the Google Maps web services.

    A fresh ``httpx.AsyncClient`` is opened per call. ``transport`` lets
    tests plug in an ``httpx.MockTransport``.
    """

    DEFAULT_BASE_URL = "https://maps.googleapis.com/maps/api"

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def get_json(
        self,
        path: str,
        params: dict[str, Any],
        error_cls: type[RemoteServiceError],
    ) -> dict[str, Any]:
        """GET ``{base_url}/{path}`` and return the decoded JSON body.

        Transport failures and non-2xx responses are raised as ``error_cls``
        so callers only deal with one error type per service.
        """
        url = f"{self._base_url}/{path.lstrip('/')}"
        query = {**params, "key": self._api_key}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.get(url, params=query)
                response.raise_for_status()
                return response.json()
        except httpx.TimeoutException as e:
            logger.warning(f"[GOOGLE] Timeout calling {path}: {e}")
            raise error_cls("TIMEOUT", str(e)) from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"[GOOGLE] HTTP {e.response.status_code} from {path}")
            raise error_cls(f"HTTP_{e.response.status_code}", str(e)) from e
        except httpx.HTTPError as e:
            logger.warning(f"[GOOGLE] Request to {path} failed: {e}")
            raise error_cls("REQUEST_FAILED", str(e)) from e
        except ValueError as e:
            raise error_cls("INVALID_RESPONSE", str(e)) from e
