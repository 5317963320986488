"""
Base API Client with rate limiting, timeouts, and error handling.
All marketplace clients (BitSkins, CSFloat, Steam, FX rates) inherit from this.
"""

from abc import ABC
from typing import Optional, Dict, Any, Tuple, Union
import random
import requests
from requests.adapters import HTTPAdapter
import time
import logging
import threading

from core.constants import API_TIMEOUT_DEFAULT, HTTP_POOL_MAXSIZE

# Get logger - configuration should be done by application entrypoint, not library modules
logger = logging.getLogger(__name__)


class APIError(Exception):
    """Generic API error.

    Attributes:
        status_code: HTTP status of the failed response, or None for
            transport failures (timeouts, connection errors, bad JSON).
        payload: Decoded JSON error body when the provider sent one.
    """

    def __init__(
            self,
            message: str,
            status_code: Optional[int] = None,
            payload: Optional[Any] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

    @property
    def error_code(self) -> Optional[str]:
        """Provider error code from the payload (e.g. ``GLO_005``), if any."""
        if isinstance(self.payload, dict):
            code = self.payload.get("code")
            if code is None and isinstance(self.payload.get("error"), dict):
                code = self.payload["error"].get("code")
            return str(code) if code is not None else None
        return None


class RateLimitExceeded(APIError):
    """Raised when API rate limit is hit"""

    def __init__(self, retry_after: int = 60):
        self.retry_after = retry_after
        super().__init__(
            f"Rate limit exceeded. Retry after {retry_after} seconds.",
            status_code=429,
        )


class AuthSkewError(APIError):
    """Token rejected for a clock-skew reason; another time window may work."""
    pass


class RateLimiter:
    """Thread-safe rate limiter using token bucket algorithm"""

    def __init__(self, calls_per_second: float = 1.0):
        """
        Args:
            calls_per_second: Maximum requests per second (e.g., 0.33 = 1 req per 3 sec)
        """
        self.calls_per_second = calls_per_second
        self.min_interval = 1.0 / calls_per_second
        self.last_call_time = 0.0
        self.lock = threading.Lock()

    def wait_if_needed(self):
        """Block if necessary to respect rate limit"""
        with self.lock:
            current_time = time.time()
            time_since_last_call = current_time - self.last_call_time

            if time_since_last_call < self.min_interval:
                sleep_time = self.min_interval - time_since_last_call
                # Add small jitter to avoid thundering herd across threads/processes
                jitter = min(0.25, 0.1 * self.min_interval)
                sleep_time += random.uniform(0, jitter)
                logger.debug(f"Rate limiting: sleeping {sleep_time:.2f}s (with jitter)")
                time.sleep(sleep_time)

            self.last_call_time = time.time()


TimeoutType = Union[int, float, Tuple[int, int], Tuple[float, float]]


class BaseAPIClient(ABC):
    """
    Abstract base class for all API clients.
    Provides pooled sessions, optional rate limiting, timeouts and error mapping.

    Requests are never retried here. The one retry policy in the engine is
    the auth-skew window stepping done by the history resolver.
    """

    POOL_CONNECTIONS = 10  # Number of connection pools to cache
    POOL_MAXSIZE = HTTP_POOL_MAXSIZE  # Max connections per pool (fan-out size)

    def __init__(
            self,
            base_url: str,
            rate_limit: Optional[float] = None,
            user_agent: Optional[str] = None,
            timeout: TimeoutType = API_TIMEOUT_DEFAULT,
            session: Optional[requests.Session] = None,
    ):
        """
        Args:
            base_url: Base URL for the API
            rate_limit: Requests per second, or None for no client-side limit
            user_agent: Custom User-Agent header
            timeout: Request timeout in seconds, or a (connect, read) tuple
            session: Optional pre-built session (tests inject fakes here)
        """
        self.base_url = base_url.rstrip('/')
        self.rate_limiter = RateLimiter(calls_per_second=rate_limit) if rate_limit else None
        self.timeout: TimeoutType = timeout

        self.user_agent = user_agent or "SkinMarketWatch/1.0 (+https://github.com/skin-market-watch)"

        if session is not None:
            self.session = session
        else:
            self.session = requests.Session()
            self.session.headers.update({
                'User-Agent': self.user_agent,
                'Accept': 'application/json'
            })
            adapter = HTTPAdapter(
                pool_connections=self.POOL_CONNECTIONS,
                pool_maxsize=self.POOL_MAXSIZE,
                max_retries=0,
            )
            self.session.mount('https://', adapter)
            self.session.mount('http://', adapter)

        rate_desc = f"{rate_limit} req/s" if rate_limit else "unlimited"
        logger.info(f"Initialized {self.__class__.__name__} - Rate: {rate_desc}, Timeout: {timeout}s")

    def _make_request(
            self,
            method: str,
            endpoint: str,
            params: Optional[Dict] = None,
            data: Optional[Dict] = None,
            headers: Optional[Dict[str, str]] = None,
            cookies: Optional[Dict[str, str]] = None,
            timeout_override: Optional[TimeoutType] = None,
    ) -> Any:
        """
        Make HTTP request with rate limiting and error mapping.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint (will be appended to base_url)
            params: Query parameters
            data: JSON request body (for POST/PUT)
            headers: Per-request headers (auth tokens change per call)
            cookies: Per-request cookies

        Returns:
            Decoded JSON response

        Raises:
            RateLimitExceeded: If API returns 429
            APIError: For other API, transport and decoding errors
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        if self.rate_limiter is not None:
            self.rate_limiter.wait_if_needed()

        try:
            logger.debug(f"{method} {url} - params: {params}")

            response = self.session.request(
                method=method,
                url=url,
                params=params,
                json=data,
                headers=headers,
                cookies=cookies,
                timeout=(timeout_override if timeout_override is not None else self.timeout)
            )
        except requests.RequestException as e:
            logger.error(f"Request failed: {method} {endpoint}: {e}")
            raise APIError(f"Request failed: {e}") from e

        # Handle rate limiting
        if response.status_code == 429:
            retry_after = int(response.headers.get('Retry-After', 60))
            logger.warning(f"Rate limited! Retry after {retry_after}s")
            raise RateLimitExceeded(retry_after=retry_after)

        if response.status_code >= 400:
            payload = _safe_json(response)
            error_msg = f"API error {response.status_code}: {response.text[:200]}"
            logger.error(error_msg)
            raise APIError(error_msg, status_code=response.status_code, payload=payload)

        try:
            json_data = response.json()
        except ValueError as e:
            raise APIError(f"Invalid JSON from {endpoint}: {e}", status_code=response.status_code) from e

        logger.debug(f"Request successful: {method} {endpoint}")
        return json_data

    def get(self, endpoint: str, params: Optional[Dict] = None, **kwargs: Any) -> Any:
        """GET request wrapper"""
        return self._make_request('GET', endpoint, params=params, **kwargs)

    def post(self, endpoint: str, data: Optional[Dict] = None, **kwargs: Any) -> Any:
        """POST request wrapper"""
        return self._make_request('POST', endpoint, data=data, **kwargs)

    def close(self):
        """Clean up resources"""
        self.session.close()
        logger.info(f"Closed {self.__class__.__name__}")

    def __enter__(self):
        """Context manager entry - returns self for use in 'with' blocks."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensures session is closed."""
        self.close()
        return False  # Don't suppress exceptions


def _safe_json(response: requests.Response) -> Optional[Any]:
    try:
        return response.json()
    except ValueError:
        return None
