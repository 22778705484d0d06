"""
Base Partner Client - shared plumbing for partner platform integrations
"""
from abc import ABC, abstractmethod
from typing import Optional, Dict, Any
import logging

import httpx

logger = logging.getLogger(__name__)


class PartnerResponseError(Exception):
    """Partner answered with a payload we cannot use"""


class BasePartnerClient(ABC):
    """
    Abstract base class for partner platform integrations

    Subclasses call `_request`, which never raises: transport failures,
    non-2xx answers and unparseable bodies come back as
    {"success": False, "error": ...}.
    """
    PLATFORM_NAME: str = "base"

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        account_id: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.account_id = account_id
        self.timeout = timeout
        self._transport = transport

    def for_account(self, api_key: Optional[str], account_id: Optional[str]) -> "BasePartnerClient":
        """Same endpoint and transport, different credentials"""
        return type(self)(
            base_url=self.base_url,
            api_key=api_key,
            account_id=account_id,
            timeout=self.timeout,
            transport=self._transport,
        )

    @abstractmethod
    async def validate_connection(self) -> Dict[str, Any]:
        """
        Check credentials against the partner
        Returns: {success, valid, ...}
        """
        pass

    # ========== Utilities ==========

    def _build_headers(self) -> Dict[str, str]:
        """Build common request headers"""
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}" if self.api_key else "",
            "X-Account-ID": self.account_id or "",
        }

    def _log_api_call(self, method: str, endpoint: str, status_code: int):
        """Log API call for debugging"""
        logger.info(f"[{self.PLATFORM_NAME}] {method} {endpoint} -> {status_code}")

    async def _request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Call the partner and return {"success": True, "data": <json body>}
        or {"success": False, "error": str, "details": <body if any>}
        """
        url = f"{self.base_url}{endpoint}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.request(
                    method, url, json=json, params=params, headers=self._build_headers()
                )
            self._log_api_call(method, endpoint, response.status_code)
            response.raise_for_status()
            data = response.json() if response.content else {}
            if not isinstance(data, (dict, list)):
                raise PartnerResponseError(f"Unexpected response body: {data!r}")
            return {"success": True, "data": data}
        except httpx.HTTPStatusError as e:
            logger.error(f"[{self.PLATFORM_NAME}] {method} {endpoint} failed: {e}")
            return {"success": False, "error": str(e), "details": _safe_body(e.response)}
        except httpx.HTTPError as e:
            logger.error(f"[{self.PLATFORM_NAME}] {method} {endpoint} failed: {e}")
            return {"success": False, "error": str(e) or e.__class__.__name__}
        except (ValueError, PartnerResponseError) as e:
            # ValueError covers JSON decoding
            logger.error(f"[{self.PLATFORM_NAME}] {method} {endpoint} returned bad payload: {e}")
            return {"success": False, "error": f"Malformed response: {e}"}


def _safe_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None
