"""
Pooled HTTP client used by every scanner.

Wraps httpx with the settings that make scraping Banner fast and reliable:
- one connection pool per hostname, capped per host (some upstream hosts
  throttle or fall over when hit with too many sockets)
- keep-alive connections and a process-wide DNS cache, so thousands of
  requests to the same host cost one lookup
- automatic retry with a short jittered delay, so hundreds of concurrent
  failures don't all retry at the same instant
- explicit cookie jars per call, carried across redirects; the client
  itself never stores cookies
- per-host analytics, logged while requests are in flight
"""
import asyncio
import logging
import socket
import time
from dataclasses import asdict, dataclass
from http.cookiejar import DefaultCookiePolicy
from typing import Optional
from urllib.parse import urlsplit

import anyio
import httpcore
import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
    wait_random,
)

from catalog_scraper.config import settings

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:53.0) Gecko/20100101 Firefox/53.0"
)

# Socket caps found by trial against each host. Everything else gets
# settings.default_max_sockets.
HOST_MAX_SOCKETS = {
    # CCIS rejects requests when a single IP sends too many too quickly
    "www.ccis.northeastern.edu": 8,
    "www.khoury.northeastern.edu": 8,
    # northeastern.edu redirects /cssh to a server that 500s under load
    "www.northeastern.edu": 25,
    "genisys.regent.edu": 50,
    "prod-ssb-01.dccc.edu": 100,
    # ~20 min full scrape at 100 sockets with 100ms/150ms retry delays
    "wl11gp.neu.edu": 100,
    "nubanner.neu.edu": 100,
}


class DNSCachingBackend(httpcore.AsyncNetworkBackend):
    """Network backend that resolves each host once and reuses the address.

    TLS still verifies against the original hostname: httpcore passes the
    origin host as the SNI name after the TCP connection is established.
    """

    def __init__(self, backend: Optional[httpcore.AsyncNetworkBackend] = None):
        self._backend = backend or httpcore.AnyIOBackend()
        self._addresses: dict[tuple[str, int], str] = {}

    async def resolve(self, host: str, port: int) -> str:
        key = (host, port)
        address = self._addresses.get(key)
        if address is None:
            infos = await anyio.getaddrinfo(host, port, type=socket.SOCK_STREAM)
            address = infos[0][4][0]
            self._addresses[key] = address
            logger.debug(f"Resolved {host} -> {address}")
        return address

    async def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: Optional[float] = None,
        local_address: Optional[str] = None,
        socket_options=None,
    ) -> httpcore.AsyncNetworkStream:
        address = await self.resolve(host, port)
        return await self._backend.connect_tcp(
            address,
            port,
            timeout=timeout,
            local_address=local_address,
            socket_options=socket_options,
        )

    async def connect_unix_socket(self, path: str, timeout: Optional[float] = None, socket_options=None):
        return await self._backend.connect_unix_socket(
            path, timeout=timeout, socket_options=socket_options
        )

    async def sleep(self, seconds: float) -> None:
        await self._backend.sleep(seconds)


# One cache for the whole process, shared by every pool
DNS_CACHE = DNSCachingBackend()


@dataclass
class HostAnalytics:
    """Running totals for one hostname."""
    total_bytes_downloaded: int = 0
    total_errors: int = 0
    total_good_requests: int = 0
    start_time: Optional[float] = None


class FetchClient:
    """
    Retrying HTTP client with one connection pool per hostname.

    Usage:
        async with FetchClient() as client:
            response = await client.get(url, params={...}, cookies=jar)
    """

    def __init__(
        self,
        max_retries: Optional[int] = None,
        retry_delay: Optional[float] = None,
        retry_delay_delta: Optional[float] = None,
        default_max_sockets: Optional[int] = None,
        timeout: Optional[float] = None,
        verify: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.retry_delay = settings.retry_delay if retry_delay is None else retry_delay
        self.retry_delay_delta = (
            settings.retry_delay_delta if retry_delay_delta is None else retry_delay_delta
        )
        self.default_max_sockets = default_max_sockets or settings.default_max_sockets
        self.timeout = timeout or settings.request_timeout
        self.verify = settings.verify_ssl if verify is None else verify
        # Tests inject an httpx.MockTransport here
        self._transport = transport

        self._clients: dict[str, httpx.AsyncClient] = {}
        self.open_requests = 0
        self.analytics: dict[str, HostAnalytics] = {}
        self.active_hostnames: set[str] = set()
        self._timer: Optional[asyncio.Task] = None
        self._launch_time = time.monotonic()

    async def __aenter__(self) -> "FetchClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._stop_analytics_timer()
        for client in self._clients.values():
            await client.aclose()
        self._clients.clear()

    def max_sockets_for(self, hostname: str) -> int:
        return HOST_MAX_SOCKETS.get(hostname, self.default_max_sockets)

    def _pooled_transport(self, hostname: str) -> httpx.AsyncHTTPTransport:
        max_sockets = self.max_sockets_for(hostname)
        transport = httpx.AsyncHTTPTransport(
            verify=self.verify,
            limits=httpx.Limits(
                max_connections=max_sockets,
                max_keepalive_connections=max_sockets,
            ),
        )
        # httpx has no public hook for the network backend, so fail loudly if
        # the pool it builds ever stops looking like httpcore's
        pool = getattr(transport, "_pool", None)
        if not isinstance(pool, httpcore.AsyncConnectionPool) or not hasattr(pool, "_network_backend"):
            raise RuntimeError(
                f"Cannot install the DNS cache: unexpected httpx transport pool {pool!r}"
            )
        pool._network_backend = DNS_CACHE
        return transport

    def _client_for(self, hostname: str) -> httpx.AsyncClient:
        client = self._clients.get(hostname)
        if client is None:
            client = httpx.AsyncClient(
                transport=self._transport or self._pooled_transport(hostname),
                timeout=self.timeout,
                headers={"User-Agent": DEFAULT_USER_AGENT},
            )
            # Cookies only travel in the jar a caller passes in
            client.cookies.jar.set_policy(DefaultCookiePolicy(allowed_domains=[]))
            self._clients[hostname] = client
        return client

    def _ensure_analytics(self, hostname: str) -> HostAnalytics:
        if hostname not in self.analytics:
            self.analytics[hostname] = HostAnalytics()
        return self.analytics[hostname]

    # === Analytics ===

    def log_analytics(self) -> None:
        """Log every hostname that was active since the last call, then reset."""
        for hostname in sorted(self.active_hostnames):
            stats = asdict(self.analytics[hostname])
            stats["max_sockets"] = self.max_sockets_for(hostname)
            logger.debug(f"{hostname}: {stats}")
        self.active_hostnames = set()

        uptime = (time.monotonic() - self._launch_time) / 60
        logger.debug(f"Uptime: {uptime:.2f} min, open requests: {self.open_requests}")

    async def _analytics_loop(self) -> None:
        while True:
            await asyncio.sleep(settings.analytics_interval)
            self.log_analytics()

    def _start_analytics_timer(self) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        if self._timer is None or self._timer.done():
            logger.debug("Starting request analytics timer.")
            self._timer = asyncio.ensure_future(self._analytics_loop())

    def _stop_analytics_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            logger.debug("Stopping request analytics timer.")
            self._timer.cancel()
        self._timer = None

    # === Requests ===

    async def _send_following_redirects(
        self,
        client: httpx.AsyncClient,
        request: httpx.Request,
        cookies: Optional[httpx.Cookies],
    ) -> httpx.Response:
        """
        Send a request and follow its redirects by hand.

        httpx would build each hop from the client's own jar, which is always
        empty here. Following by hand lets the caller's jar pick up cookies
        set on every hop and go out with every redirected request.
        """
        response = await client.send(request, follow_redirects=False)
        redirects = 0
        while True:
            if cookies is not None:
                cookies.extract_cookies(response)
            next_request = response.next_request
            if next_request is None:
                return response

            redirects += 1
            if redirects > client.max_redirects:
                await response.aclose()
                raise httpx.TooManyRedirects(
                    f"Exceeded {client.max_redirects} redirects from {request.url}",
                    request=next_request,
                )
            await response.aclose()

            next_request.headers.pop("Cookie", None)
            if cookies is not None:
                cookies.set_cookie_header(next_request)
            logger.debug(f"Following redirect to {next_request.url}")
            response = await client.send(next_request, follow_redirects=False)

    async def _fire_request(
        self,
        method: str,
        url: str,
        hostname: str,
        params: Optional[dict] = None,
        form: Optional[dict] = None,
        cookies: Optional[httpx.Cookies] = None,
    ) -> httpx.Response:
        stats = self._ensure_analytics(hostname)
        self.active_hostnames.add(hostname)
        if stats.start_time is None:
            stats.start_time = time.time()

        client = self._client_for(hostname)
        request = client.build_request(
            method,
            url,
            params=params,
            data=form,
            # Some old sites block requests that don't look like they came
            # from a page on the site
            headers={"Referer": url},
        )
        if cookies is not None:
            cookies.set_cookie_header(request)

        logger.debug(f"Firing request to {request.url}")
        if self.open_requests == 0:
            self._start_analytics_timer()
        self.open_requests += 1
        started = time.monotonic()

        try:
            response = await self._send_following_redirects(client, request, cookies)
            response.raise_for_status()
        except httpx.HTTPError:
            stats.total_errors += 1
            raise
        finally:
            self.open_requests -= 1
            if self.open_requests == 0:
                self._stop_analytics_timer()

        duration_ms = int((time.monotonic() - started) * 1000)
        stats.total_good_requests += 1
        stats.total_bytes_downloaded += len(response.content)
        logger.debug(f"Parsed {len(response.content)} in {duration_ms} ms from {url}")
        return response

    def _log_retry(self, url: str):
        def before_sleep(retry_state: RetryCallState) -> None:
            exc = retry_state.outcome.exception() if retry_state.outcome else None
            if isinstance(exc, httpx.HTTPStatusError):
                code = exc.response.status_code
            else:
                code = repr(exc)
            message = (
                f"Try#: {retry_state.attempt_number} Code: {code} "
                f"Open request count: {self.open_requests} Url: {url}"
            )
            if retry_state.attempt_number > 5:
                logger.warning(message)
            else:
                logger.debug(message)

        return before_sleep

    async def request(
        self,
        method: str,
        url: str,
        params: Optional[dict] = None,
        form: Optional[dict] = None,
        cookies: Optional[httpx.Cookies] = None,
    ) -> httpx.Response:
        """
        Send a request, retrying transport errors and non-2xx responses.

        Args:
            method: "GET" or "POST"
            url: Absolute URL
            params: Query string parameters
            form: Form body (sent url-encoded)
            cookies: Jar to send cookies from and store response cookies in

        Returns:
            The successful httpx.Response

        Raises:
            httpx.HTTPError: after every retry failed
        """
        hostname = urlsplit(url).hostname or ""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_fixed(self.retry_delay) + wait_random(0, self.retry_delay_delta),
            retry=retry_if_exception_type(httpx.HTTPError),
            before_sleep=self._log_retry(url),
            reraise=True,
        )

        async for attempt in retrying:
            with attempt:
                response = await self._fire_request(
                    method, url, hostname, params=params, form=form, cookies=cookies
                )
        return response

    async def get(
        self,
        url: str,
        params: Optional[dict] = None,
        cookies: Optional[httpx.Cookies] = None,
    ) -> httpx.Response:
        return await self.request("GET", url, params=params, cookies=cookies)

    async def post(
        self,
        url: str,
        form: Optional[dict] = None,
        cookies: Optional[httpx.Cookies] = None,
    ) -> httpx.Response:
        return await self.request("POST", url, form=form, cookies=cookies)
