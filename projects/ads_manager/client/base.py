"""
Cliente HTTP base para a Facebook Graph API.

Implementa App Secret Proof, timeout configurável e tradução uniforme de
erros. Não há retry nem rate limiting: cada chamada é uma única tentativa.
"""

import hashlib
import hmac
from typing import Any, AsyncGenerator, Optional

import httpx

from shared.core.exceptions import RemotePlatformException
from shared.core.logging import get_logger
from projects.ads_manager.config import ads_settings

logger = get_logger(__name__)

TOKEN_EXPIRED_ERROR_CODE = 190
TIMEOUT_ERROR_CODE = -1
TRANSPORT_ERROR_CODE = -2


class FacebookAPIError(RemotePlatformException):
    """Falha de uma chamada à Graph API (erro da plataforma, timeout ou transporte)."""

    def __init__(
        self,
        message: str,
        code: int = 0,
        subcode: int = 0,
        fbtrace_id: str = "",
        status_code: Optional[int] = None,
    ):
        super().__init__(
            message,
            details={
                "code": code,
                "subcode": subcode,
                "fbtrace_id": fbtrace_id,
                "status_code": status_code,
            },
        )
        self.code = code
        self.subcode = subcode
        self.fbtrace_id = fbtrace_id
        self.status_code = status_code


class TokenExpiredError(FacebookAPIError):
    """O Facebook rejeitou o access token (code 190)."""

    pass


def generate_app_secret_proof(access_token: str, app_secret: str) -> str:
    """HMAC-SHA256 do token com o app secret."""
    return hmac.new(
        app_secret.encode("utf-8"),
        access_token.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def account_path(ad_account_id: str) -> str:
    """Normaliza o ID da conta de anúncios para o formato act_<id>."""
    return ad_account_id if ad_account_id.startswith("act_") else f"act_{ad_account_id}"


class FacebookGraphClient:
    """Uma conexão httpx por token; cada request é uma única tentativa."""

    BASE_URL = "https://graph.facebook.com"
    PAGE_SIZE = 100

    def __init__(
        self,
        access_token: str,
        timeout: Optional[float] = None,
        api_version: Optional[str] = None,
        app_secret: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.timeout = timeout if timeout is not None else ads_settings.ads_request_timeout_seconds
        self.api_version = api_version or ads_settings.facebook_api_version
        self.app_secret = app_secret if app_secret is not None else ads_settings.facebook_app_secret
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return f"{self.BASE_URL}/{self.api_version}"

    async def __aenter__(self) -> "FacebookGraphClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                limits=httpx.Limits(
                    max_connections=10, max_keepalive_connections=5
                ),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    def _add_auth_params(self, params: dict) -> dict:
        """Token sempre na query string, nunca no corpo do formulário."""
        params["access_token"] = self.access_token
        if self.app_secret:
            params["appsecret_proof"] = generate_app_secret_proof(
                self.access_token, self.app_secret
            )
        return params

    @staticmethod
    def _decode(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            return {}
        if isinstance(body, dict):
            return body
        return {"data": body}

    def _parse_error(self, response_data: dict, status_code: int) -> FacebookAPIError:
        error = response_data.get("error") or {}
        if not isinstance(error, dict):
            error = {"message": str(error)}
        code = error.get("code", 0)
        subcode = error.get("error_subcode", 0)
        message = error.get("message") or f"Falha na chamada à Graph API (HTTP {status_code})"
        fbtrace_id = error.get("fbtrace_id", "")

        if code == TOKEN_EXPIRED_ERROR_CODE:
            return TokenExpiredError(message, code, subcode, fbtrace_id, status_code)
        return FacebookAPIError(message, code, subcode, fbtrace_id, status_code)

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Optional[dict] = None,
        data: Optional[dict] = None,
    ) -> dict:
        """Corpo form-encoded; erros viram FacebookAPIError, inclusive com HTTP 200."""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        params = self._add_auth_params(dict(params or {}))
        client = await self._get_client()

        logger.debug("Facebook API request", method=method, endpoint=endpoint)

        try:
            response = await client.request(method, url, params=params, data=data)
        except httpx.TimeoutException as e:
            logger.warning("Facebook API timeout", endpoint=endpoint, timeout=self.timeout)
            raise FacebookAPIError(f"Timeout: {e}", code=TIMEOUT_ERROR_CODE) from e
        except httpx.HTTPError as e:
            logger.warning("Facebook API transport error", endpoint=endpoint, error=str(e))
            raise FacebookAPIError(f"HTTP error: {e}", code=TRANSPORT_ERROR_CODE) from e

        response_data = self._decode(response)

        if response.status_code >= 400 or "error" in response_data:
            error = self._parse_error(response_data, response.status_code)
            logger.warning(
                "Facebook API error",
                endpoint=endpoint,
                status=response.status_code,
                error_code=error.code,
                error_subcode=error.subcode,
                fbtrace_id=error.fbtrace_id,
                message=error.message,
            )
            raise error

        return response_data

    async def get(self, endpoint: str, params: Optional[dict] = None) -> dict:
        return await self.request("GET", endpoint, params=params)

    async def post(
        self,
        endpoint: str,
        data: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> dict:
        return await self.request("POST", endpoint, params=params, data=data)

    async def delete(self, endpoint: str, params: Optional[dict] = None) -> dict:
        return await self.request("DELETE", endpoint, params=params)

    async def paginate(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        limit: int = PAGE_SIZE,
    ) -> AsyncGenerator[list[dict], None]:
        """Segue os cursores ``after`` enquanto houver ``paging.next``."""
        params = dict(params or {})
        params["limit"] = limit

        while True:
            response = await self.get(endpoint, params)
            data = response.get("data", [])

            if data:
                yield data

            paging = response.get("paging", {})
            cursors = paging.get("cursors", {})
            next_url = paging.get("next")

            if not next_url or not cursors.get("after"):
                break

            params["after"] = cursors["after"]

    async def get_all(
        self,
        endpoint: str,
        params: Optional[dict] = None,
        limit: int = PAGE_SIZE,
    ) -> list[dict[str, Any]]:
        all_results = []
        async for page in self.paginate(endpoint, params, limit):
            all_results.extend(page)
        return all_results
