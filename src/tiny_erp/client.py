import json
import logging
import os
import time
from typing import Any, Dict, List, Mapping, Optional, Tuple, Type, TypeVar

import httpx
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

T = TypeVar("T", bound=BaseModel)

API_BASE_URL = "https://api.tiny.com.br/api2"
RESPONSE_FORMAT = "json"
STATUS_OK = "OK"
UNKNOWN_API_ERROR = "Unknown Tiny API error."


class TinyClientError(Exception):
    """Base error for client failures."""


class TinyConfigurationError(TinyClientError, ValueError):
    """Raised at construction time when the API token is missing."""


class TinyTransportError(TinyClientError):
    """Network-level failure (DNS, connect, timeout). Cause is chained."""


class TinyParseError(TinyClientError):
    def __init__(self, message: str, *, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class TinyApiError(TinyClientError):
    """
    Business failure reported inside the ``retorno`` envelope.

    Tiny answers most business failures with HTTP 200, so this is raised
    from the payload's status marker and never from the HTTP status.
    """

    def __init__(
        self,
        *,
        code: Any = None,
        processing_status: Any = None,
        errors: Optional[List[str]] = None,
        response_json: Optional[Dict[str, Any]] = None,
    ):
        self.errors = list(errors or [])
        self.message = self.errors[0] if self.errors else UNKNOWN_API_ERROR
        super().__init__(self.message)
        self.code = code
        self.processing_status = processing_status
        self.response_json = response_json

    @classmethod
    def from_envelope(cls, retorno: Dict[str, Any]) -> "TinyApiError":
        return cls(
            code=retorno.get("codigo_erro"),
            processing_status=retorno.get("status_processamento"),
            errors=error_messages(retorno.get("erros")),
            response_json=retorno,
        )


class TinyModelValidationError(TinyClientError):
    pass


def error_messages(raw: Any) -> List[str]:
    """Flatten Tiny's ``[{"erro": "..."}]`` list into plain messages."""
    if not isinstance(raw, list):
        return []
    messages: List[str] = []
    for item in raw:
        if isinstance(item, dict):
            messages.append(str(item.get("erro", "")))
        else:
            messages.append(str(item))
    return messages


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class TinyClient:
    """
    Shared HTTP client for the Tiny ERP API v2.
    - Injects the token and ``formato=json`` into every query string
    - Sends writes as form fields holding a JSON string
    - Strips the ``retorno`` envelope and raises on business errors
    - Single attempt per call; no retries, no caching
    """

    def __init__(
        self,
        *,
        token: str,
        logger: Optional[logging.Logger] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        token = (token or "").strip()
        if not token:
            raise TinyConfigurationError("token must be provided.")

        self._token = token
        self.base_url = API_BASE_URL
        self.log = logger or logging.getLogger("tiny_erp.client")

        # A caller-supplied AsyncClient carries the caller's timeout/pool policy.
        self._owns_http = http is None
        self.http = http or httpx.AsyncClient(
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_env(cls, **kwargs) -> "TinyClient":
        load_dotenv()
        return cls(token=os.getenv("TINY_API_TOKEN", ""), **kwargs)

    async def aclose(self) -> None:
        if self._owns_http:
            await self.http.aclose()

    async def __aenter__(self) -> "TinyClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    def _url(self, endpoint: str) -> str:
        return self.base_url + "/" + endpoint.lstrip("/")

    def _query(self, params: Optional[Mapping[str, Any]]) -> List[Tuple[str, str]]:
        query = [("token", self._token), ("formato", RESPONSE_FORMAT)]
        for key, value in (params or {}).items():
            query.append((key, _text(value)))
        return query

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        data: Optional[Mapping[str, Any]] = None,
        resource: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Core request method.
        - Raises TinyTransportError on network/timeout errors
        - Raises TinyParseError if the body isn't a JSON ``retorno`` envelope
        - Raises TinyApiError if ``retorno.status`` isn't "OK"
        - Returns the ``retorno`` object on success
        """
        method = method.upper()
        start = time.perf_counter()
        form = None
        if data is not None:
            form = {key: _text(value) for key, value in data.items()}

        try:
            resp = await self.http.request(
                method,
                self._url(endpoint),
                params=self._query(params),
                data=form,
            )
        except (httpx.TimeoutException, httpx.NetworkError) as exc:
            raise TinyTransportError(
                f"Network/timeout error calling {method} {endpoint}: {exc}"
            ) from exc
        except httpx.HTTPError as exc:
            raise TinyTransportError(
                f"HTTPX error calling {method} {endpoint}: {exc}"
            ) from exc

        duration_ms = int((time.perf_counter() - start) * 1000)
        # The URL carries the token; log the endpoint only.
        self.log.debug(
            "tiny.request",
            extra={
                "resource": resource,
                "method": method,
                "endpoint": endpoint,
                "status": resp.status_code,
                "duration_ms": duration_ms,
            },
        )

        retorno = self._envelope(resp, endpoint=endpoint)
        if retorno.get("status") != STATUS_OK:
            raise TinyApiError.from_envelope(retorno)
        return retorno

    def _envelope(self, resp: httpx.Response, *, endpoint: str) -> Dict[str, Any]:
        try:
            payload = resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            snippet = (resp.text or "")[:200]
            raise TinyParseError(
                f"Expected JSON from {endpoint} (HTTP {resp.status_code}), "
                f"got non-JSON body snippet: {snippet!r}",
                status_code=resp.status_code,
            ) from exc

        retorno = payload.get("retorno") if isinstance(payload, dict) else None
        if not isinstance(retorno, dict):
            raise TinyParseError(
                f"Expected a 'retorno' object from {endpoint} "
                f"(HTTP {resp.status_code})",
                status_code=resp.status_code,
            )
        return retorno

    async def get(
        self,
        endpoint: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        resource: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.request("GET", endpoint, params=params, resource=resource)

    async def post(
        self,
        endpoint: str,
        *,
        data: Mapping[str, Any],
        resource: Optional[str] = None,
    ) -> Dict[str, Any]:
        return await self.request("POST", endpoint, data=data, resource=resource)

    @staticmethod
    def validate(model: Type[T], payload: Any) -> T:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise TinyModelValidationError(
                f"Response did not match model {model.__name__}: {exc}"
            ) from exc
