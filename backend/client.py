"""
Async JSON/HTTP client for the CDC backend.

This module is the only place the client touches the network:
- One shared httpx.AsyncClient per BackendClient
- Bearer token authentication when an API key is configured
- Translation of every failure into the client exception taxonomy
- No retries: a failed request surfaces once and is never reissued
"""

import httpx
from typing import Any, Dict, Optional, Type, TypeVar
from pydantic import BaseModel, ValidationError as PydanticValidationError
from core.config import settings
from core.exceptions import (
    RequestError,
    TransportError,
    ResponseParseError,
    GENERIC_REQUEST_FAILURE,
)
import logging

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def failure_message(data: Any) -> Optional[str]:
    """Backend-supplied failure text, ``message`` taking precedence over ``error``"""
    if isinstance(data, dict):
        return data.get("message") or data.get("error") or None
    return None


def parse_model(model: Type[ModelT], data: Any, context: Optional[Dict[str, Any]] = None) -> ModelT:
    """
    Validate a backend payload against a schema.
    
    Raises:
        ResponseParseError: If the payload does not match the schema
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ResponseParseError(
            f"Malformed {model.__name__} payload from backend",
            context=dict(context or {}),
            original_exception=e
        )


class BackendClient:
    """
    Thin request/response wrapper around the CDC backend API.
    
    Paths are relative to ``base_url``. Every response is expected to be
    JSON; enveloped endpoints answer ``{success, ...}`` and a
    ``success: false`` answer is raised as RequestError with the backend
    message verbatim.
    
    Attributes:
        base_url: API root, e.g. ``http://localhost:8080/api``
        api_key: Optional bearer token
        timeout: Request timeout in seconds
    """
    
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = (base_url or settings.CDC_API_BASE_URL).rstrip("/")
        self.api_key = api_key or settings.API_KEY
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self._http = http_client
        self._owns_http = http_client is None
    
    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers
    
    def _client(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout
            )
        return self._http
    
    async def aclose(self):
        if self._http is not None and self._owns_http:
            await self._http.aclose()
            self._http = None
    
    async def __aenter__(self) -> "BackendClient":
        return self
    
    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
    
    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
        envelope: bool = True
    ) -> Any:
        """
        Issue one request and return the decoded JSON body.
        
        Args:
            method: HTTP method
            path: Path relative to the API base URL
            json: Request body
            params: Query parameters
            envelope: Whether the endpoint answers with a ``success`` envelope
        
        Returns:
            Decoded JSON body
        
        Raises:
            TransportError: Network failure before a response was received
            ResponseParseError: Successful status with an undecodable body
            RequestError: Non-2xx status or ``success: false``
        """
        context = {"method": method, "path": path}
        logger.debug(f"{method} {path}")
        
        try:
            response = await self._client().request(
                method,
                path,
                json=json,
                params=params,
                headers=self._headers()
            )
        except httpx.TimeoutException as e:
            raise TransportError(
                f"Request timed out after {self.timeout} seconds",
                context=context,
                original_exception=e
            )
        except httpx.HTTPError as e:
            raise TransportError(context=context, original_exception=e)
        
        try:
            data = response.json()
        except ValueError as e:
            if response.is_success:
                raise ResponseParseError(
                    "Failed to parse JSON response",
                    context={**context, "response_body": response.text[:500]},
                    original_exception=e
                )
            raise RequestError(
                response.reason_phrase or GENERIC_REQUEST_FAILURE,
                status_code=response.status_code,
                context=context
            )
        
        if not response.is_success:
            raise RequestError(
                failure_message(data) or response.reason_phrase or GENERIC_REQUEST_FAILURE,
                status_code=response.status_code,
                context=context,
                payload=data
            )
        
        if envelope and isinstance(data, dict) and data.get("success") is False:
            raise RequestError(
                failure_message(data) or GENERIC_REQUEST_FAILURE,
                status_code=response.status_code,
                context=context,
                payload=data
            )
        
        return data
    
    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)
    
    async def post(self, path: str, **kwargs) -> Any:
        return await self.request("POST", path, **kwargs)
    
    async def put(self, path: str, **kwargs) -> Any:
        return await self.request("PUT", path, **kwargs)
    
    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)
