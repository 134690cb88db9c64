"""
Hosted table backend for Toolshelf.
Talks to a PostgREST-style API (``/rest/v1/<table>``) over HTTP.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

import requests

from config import Config
from core.errors import AlreadyExists, RemoteFailure, UnexpectedShape
from core.ports.backend import Backend, Row
from core.session import SessionContext, UserSession

logger = logging.getLogger(__name__)


class RestBackend(Backend):
    """Backend port over a PostgREST-compatible HTTP API.

    Equality predicates become ``field=eq.value`` query parameters. Upserts
    use ``Prefer: resolution=merge-duplicates``. Counter increments call a
    server-side function (``/rest/v1/rpc/<name>``) so they are atomic.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        session: Optional[SessionContext] = None,
        timeout: Optional[float] = None,
        http: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            base_url: API root, defaults to Config.BACKEND_URL
            api_key: Project API key, defaults to Config.BACKEND_API_KEY
            session: Session context; its access token authorizes requests
            timeout: Request timeout in seconds
            http: requests session to reuse
        """
        self.base_url = (base_url or Config.BACKEND_URL).rstrip("/")
        self.api_key = api_key or Config.BACKEND_API_KEY
        self.session = session or SessionContext()
        self.timeout = timeout or Config.REQUEST_TIMEOUT
        self.http = http or requests.Session()

    # ==================== HTTP ====================

    def _headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["apikey"] = self.api_key
        user = self.session.current
        token = (user.access_token if user else None) or self.api_key
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> Any:
        url = f"{self.base_url}/rest/v1/{path}"
        try:
            response = self.http.request(
                method,
                url,
                params=params,
                json=json,
                headers=self._headers(prefer),
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            if status == 409:
                raise AlreadyExists(f"{method} {path}: row already exists")
            logger.warning(f"Backend returned HTTP {status} for {method} {path}")
            raise RemoteFailure(f"Backend error {status} on {method} {path}")
        except requests.exceptions.Timeout:
            raise RemoteFailure(f"Backend timed out on {method} {path}")
        except requests.exceptions.RequestException as e:
            logger.warning(f"Backend request failed: {e}")
            raise RemoteFailure(f"Cannot reach backend: {e}")

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            raise UnexpectedShape(f"Backend sent a non-JSON body for {method} {path}")

    @staticmethod
    def _filters(predicates: Optional[Row]) -> Dict[str, str]:
        return {field: f"eq.{value}" for field, value in (predicates or {}).items()}

    @staticmethod
    def _rows(body: Any, context: str) -> List[Row]:
        if body is None:
            return []
        if not isinstance(body, list) or not all(isinstance(r, dict) for r in body):
            raise UnexpectedShape(f"{context}: expected a list of rows")
        return body

    # ==================== BACKEND PORT ====================

    def query_items(self, table: str, predicates: Optional[Row] = None) -> List[Row]:
        params = {"select": "*", **self._filters(predicates)}
        logger.debug(f"GET {table} {params}")
        return self._rows(self._request("GET", table, params=params), table)

    def insert_row(self, table: str, row: Row) -> None:
        self._request("POST", table, json=[row], prefer="return=minimal")

    def upsert_row(self, table: str, row: Row, conflict_key: Sequence[str]) -> None:
        self._request(
            "POST",
            table,
            params={"on_conflict": ",".join(conflict_key)},
            json=[row],
            prefer="resolution=merge-duplicates,return=minimal",
        )

    def delete_row(self, table: str, predicates: Row) -> int:
        if not predicates:
            raise RemoteFailure("Refusing to delete without predicates")
        body = self._request(
            "DELETE", table, params=self._filters(predicates), prefer="return=representation"
        )
        return len(self._rows(body, table))

    def increment(self, table: str, key: Row, counters: Dict[str, int]) -> Row:
        body = self._request(
            "POST",
            f"rpc/{Config.STATISTICS_RPC}",
            json={"target_table": table, "key": key, "counters": counters},
        )
        if isinstance(body, list) and len(body) == 1:
            body = body[0]
        if not isinstance(body, dict):
            raise UnexpectedShape(f"rpc/{Config.STATISTICS_RPC}: expected the updated row")
        return body

    def current_session(self) -> Optional[UserSession]:
        return self.session.current
