"""
API Client for the VR Benchmark query service.
"""

import httpx
from dataclasses import dataclass
from typing import Any, Optional

from pydantic import ValidationError

from vr_benchmark import __version__
from vr_benchmark.config.settings import settings
from vr_benchmark.models import RunDetail, RunSummary


@dataclass
class QueryResult:
    """Result of an API query."""
    success: bool
    data: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None


class ProfileAPIClient:
    """Client for the run comparison API."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize API client.

        Args:
            base_url: API base URL. Defaults to settings.API_URL.
            timeout: Request timeout in seconds.
            transport: Custom httpx transport (used by tests).
        """
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self.transport,
            headers={"User-Agent": f"VRBenchmark/{__version__}"},
        )

    def _get(self, path: str) -> QueryResult:
        """GET a path and return the decoded JSON body."""
        try:
            with self._client() as client:
                response = client.get(path)
        except httpx.ConnectError:
            return QueryResult(
                success=False,
                error=f"Connection to {self.base_url} failed. Is 'vrb serve' running?",
            )
        except httpx.TimeoutException:
            return QueryResult(success=False, error="Request timed out. Please try again.")
        except httpx.HTTPError as e:
            return QueryResult(success=False, error=f"Unexpected error: {e}")

        if response.status_code == 200:
            return QueryResult(success=True, data=response.json())

        try:
            body = response.json()
            detail = body.get("detail", response.text)
            error_type = body.get("type")
        except ValueError:
            detail, error_type = response.text, None
        return QueryResult(
            success=False,
            error=f"Request failed ({response.status_code}): {detail}",
            error_type=error_type,
        )

    def list_runs(self) -> QueryResult:
        """
        Get all runs, most recent first.

        Returns:
            QueryResult whose data is a list of RunSummary.
        """
        result = self._get("/profiles")
        if result.success:
            try:
                result.data = [RunSummary.model_validate(item) for item in result.data]
            except ValidationError as e:
                return QueryResult(success=False, error=f"Unexpected response: {e}")
        return result

    def get_run(self, run_id: int) -> QueryResult:
        """
        Get the comparison view of one run.

        Returns:
            QueryResult whose data is a RunDetail.
        """
        result = self._get(f"/profiles/{run_id}")
        if result.success:
            try:
                result.data = RunDetail.model_validate(result.data)
            except ValidationError as e:
                return QueryResult(success=False, error=f"Unexpected response: {e}")
        return result

    def health_check(self) -> bool:
        """
        Check if the API is reachable.

        Returns:
            True if API is healthy, False otherwise.
        """
        return self._get("/health").success
