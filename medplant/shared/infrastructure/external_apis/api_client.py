# 📄 File: medplant/shared/infrastructure/external_apis/api_client.py

# 🧭 Purpose (Layman Explanation):
# The common "phone line" every outside service call goes through. It opens the connection,
# adds the standard headers, and turns a bad answer from the other side into a clear error.

# 🧪 Purpose (Technical Summary):
# Base async HTTP client built on aiohttp. Owns (or borrows) a ClientSession, builds default
# headers, classifies non-2xx responses into ExternalAPIError with a truncated diagnostic body,
# and rejects 2xx bodies that are not a JSON object.

# 🔗 Dependencies:
# - aiohttp: Async HTTP client
# - medplant.shared.infrastructure.external_apis.errors: classification

# 🔄 Connected Modules / Calls From:
# Used by: GeminiInferenceClient (plant identification), RazorpayClient (checkout orders)

import json
from typing import Any, Dict, Optional

import aiohttp
from aiohttp import ClientSession, ClientTimeout

from medplant.shared.infrastructure.external_apis.errors import (
    APIResponseError,
    ExternalAPIError,
    classify_status,
)
from medplant.shared.utils.logging import get_logger

logger = get_logger(__name__)


class APIClient:
    """
    Generic async HTTP client for external API integrations.

    Features:
    - Lazily created or injected aiohttp session
    - Uniform classification of non-2xx responses
    - Request/response logging without payloads

    A session passed in by the caller is borrowed: ``close()`` leaves it open.
    """

    def __init__(
        self,
        base_url: str,
        api_name: str,
        timeout: float = 30,
        session: Optional[Any] = None
    ):
        self.base_url = base_url.rstrip('/')
        self.api_name = api_name
        self.timeout = timeout

        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> Any:
        if self._session is None or getattr(self._session, "closed", False):
            self._session = ClientSession(
                timeout=ClientTimeout(total=self.timeout),
                headers=self._get_default_headers(),
            )
            self._owns_session = True
        return self._session

    def _get_default_headers(self) -> Dict[str, str]:
        return {
            'Accept': 'application/json',
            'User-Agent': 'MedPlant-Gateway/1.0',
        }

    def _build_url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def post_json(
        self,
        path: str,
        payload: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[aiohttp.BasicAuth] = None
    ) -> Dict[str, Any]:
        """
        POST a JSON body and return the decoded JSON response.

        Raises:
            ExternalAPIError: non-2xx status (classified) or a non-JSON 2xx body
        """
        session = await self._get_session()
        url = self._build_url(path)
        request_headers = {**self._get_default_headers(), **(headers or {})}

        async with session.post(url, json=payload, headers=request_headers, auth=auth) as response:
            status = response.status
            if status < 200 or status >= 300:
                raise self._error_from_response(status, await response.text())

            # Content type is not trusted; the body either parses or it does not
            try:
                data = await response.json(content_type=None)
            except ValueError as e:
                logger.warning(f"{self.api_name} returned a non-JSON body", path=path, status=status)
                raise APIResponseError(
                    f"{self.api_name} returned a non-JSON body: {e}", api_name=self.api_name
                ) from e

        if not isinstance(data, dict):
            raise APIResponseError(f"{self.api_name} returned a non-object JSON body", api_name=self.api_name)

        logger.debug(f"{self.api_name} request succeeded", path=path, status=status)
        return data

    def _error_from_response(self, status: int, body: Optional[str]) -> ExternalAPIError:
        """Build a classified error from a non-2xx response."""
        provider_status = extract_provider_status(body)
        category = classify_status(status, provider_status)
        error = ExternalAPIError(
            f"{self.api_name} returned HTTP {status}"
            + (f" ({provider_status})" if provider_status else ""),
            category=category,
            status=status,
            body=body,
            api_name=self.api_name,
        )
        logger.warning(
            f"{self.api_name} request failed",
            status=status,
            category=category.value,
            body=error.body,
        )
        return error

    async def close(self) -> None:
        """Close the session if this client created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def extract_provider_status(body: Optional[str]) -> Optional[str]:
    """
    Pull a status name out of a JSON error body.

    Google APIs answer ``{"error": {"code": 503, "status": "UNAVAILABLE"}}``;
    anything else yields None.
    """
    if not body:
        return None
    try:
        data = json.loads(body)
    except ValueError:
        return None
    if not isinstance(data, dict):
        return None
    error = data.get("error")
    if isinstance(error, dict) and isinstance(error.get("status"), str):
        return error["status"]
    return None
