"""
REST Graph Store.

Implements the GraphStore protocol against the operator console's REST API:

    GET  {api_url}/graph/products   -> {"nodes": [...], "edges": [...]}
    POST {api_url}/graph/save       <- the complete graph
    GET  {api_url}/products/        -> [...] or {"results": [...], "next": url}

Request failures (transport, timeout, decoding, redirects) and 5xx answers become NetworkError; 400/409/422
become ValidationError carrying the response body; 401/403 become
AuthenticationError (a 401 also expires the session token).

Requires: pip install httpx
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from product_graph.auth.session import SessionManager
from product_graph.config import DEFAULT_TIMEOUT
from product_graph.errors import (
    AuthenticationError,
    MalformedGraphError,
    NetworkError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

GRAPH_PATH = "/graph/products"
SAVE_PATH = "/graph/save"
PRODUCTS_PATH = "/products/"

VALIDATION_STATUSES = (400, 409, 422)
AUTH_STATUSES = (401, 403)

# Upper bound on catalog pages followed through 'next' links
MAX_CATALOG_PAGES = 100


class RestGraphStore:
    """
    Graph store backed by the console REST API.

    Args:
        api_url: Base URL, e.g. 'http://localhost:8000/api'
        session: SessionManager providing the bearer token
        timeout: Transport timeout in seconds; expiry raises NetworkError
        client: Optional pre-configured httpx.AsyncClient (not closed by close())
        transport: Optional httpx transport for the owned client (tests use MockTransport)
    """

    def __init__(
        self,
        api_url: str,
        session: Optional[SessionManager] = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self._session = session or SessionManager()
        self._timeout = timeout
        self._transport = transport
        self._client = client
        self._owns_client = client is None

    @property
    def backend_type(self) -> str:
        return "rest"

    @property
    def session(self) -> SessionManager:
        return self._session

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                timeout=self._timeout,
                headers={"Content-Type": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, url: str, json: Any = None) -> httpx.Response:
        client = self._get_client()
        try:
            response = await client.request(
                method, url, json=json, headers=self._session.auth_headers()
            )
        except httpx.TimeoutException as e:
            logger.error(f"{method} {url} timed out after {self._timeout}s")
            raise NetworkError(f"Request to {url} timed out") from e
        except httpx.RequestError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise NetworkError(f"Could not reach {url}: {e}") from e

        status = response.status_code
        if status < 400:
            return response

        details = _decode_body(response)
        if status in AUTH_STATUSES:
            if status == 401:
                self._session.expire()
            raise AuthenticationError(f"{method} {url} was refused ({status})")
        if status in VALIDATION_STATUSES:
            logger.warning(f"{method} {url} rejected ({status}): {details}")
            raise ValidationError(f"Backend rejected the request ({status})", details=details)
        if status >= 500:
            logger.error(f"{method} {url} server error ({status}): {details}")
            raise NetworkError(f"Backend error {status} for {url}")
        raise StoreError(f"Unexpected status {status} for {method} {url}")

    async def fetch_graph(self) -> Dict[str, Any]:
        response = await self._request("GET", GRAPH_PATH)
        try:
            return response.json()
        except ValueError as e:
            raise MalformedGraphError(f"Graph response is not JSON: {e}") from e

    async def save_graph(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", SAVE_PATH, json=payload)
        if not response.content:
            return {}
        try:
            body = response.json()
        except ValueError:
            logger.warning("Save response is not JSON, ignoring body")
            return {}
        return body if isinstance(body, dict) else {}

    async def list_products(self) -> List[Dict[str, Any]]:
        """Fetch the catalog, following 'next' links of paginated responses."""
        products: List[Dict[str, Any]] = []
        url: Optional[str] = PRODUCTS_PATH
        pages = 0
        while url and pages < MAX_CATALOG_PAGES:
            response = await self._request("GET", url)
            try:
                data = response.json()
            except ValueError as e:
                raise StoreError(f"Catalog response is not JSON: {e}") from e
            pages += 1
            if isinstance(data, list):
                products.extend(data)
                url = None
                break
            if not isinstance(data, dict):
                raise StoreError(f"Unexpected catalog response: {data!r}")
            products.extend(data.get("results") or [])
            url = data.get("next")
        if url and pages >= MAX_CATALOG_PAGES:
            logger.warning(f"Catalog still has pages after {MAX_CATALOG_PAGES}, ignoring the rest ({url})")
        return [p for p in products if isinstance(p, dict)]


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
