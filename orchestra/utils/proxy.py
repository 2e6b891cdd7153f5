"""Outbound HTTP proxy configuration.

Reads PROXY_* environment variables and, when enabled, exports
HTTP_PROXY / HTTPS_PROXY so that LLM and storage clients pick the proxy up.
"""

from __future__ import annotations

import logging
import os
from collections.abc import MutableMapping

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

PROXY_TEST_URL = "https://httpbin.org/ip"
DEFAULT_NO_PROXY = "localhost,127.0.0.1"


class ProxyConfig(BaseModel):
    """proxy settings for outbound requests."""

    enabled: bool = False
    host: str = "127.0.0.1"
    port: int = 7890
    protocol: str = "http"  # "http", "https", "socks5"
    timeout_ms: int = 30000
    max_redirects: int = 5

    @property
    def url(self) -> str:
        return f"{self.protocol}://{self.host}:{self.port}"

    @classmethod
    def from_env(cls, environ: MutableMapping[str, str] | None = None) -> ProxyConfig:
        env = os.environ if environ is None else environ
        return cls(
            enabled=env.get("PROXY_ENABLED", "false").lower() == "true",
            host=env.get("PROXY_HOST", "127.0.0.1"),
            port=int(env.get("PROXY_PORT", "7890")),
            protocol=env.get("PROXY_PROTOCOL", "http"),
            timeout_ms=int(env.get("PROXY_TIMEOUT", "30000")),
            max_redirects=int(env.get("PROXY_MAX_REDIRECTS", "5")),
        )


class ProxySettings:
    """Applies a ProxyConfig to the process environment once."""

    def __init__(self, environ: MutableMapping[str, str] | None = None) -> None:
        self.environ = os.environ if environ is None else environ
        self.config = ProxyConfig.from_env(self.environ)
        self.initialized = False

    def initialize(self) -> ProxyConfig:
        """export proxy variables; repeated calls are no-ops."""
        if self.initialized:
            return self.config

        if not self.config.enabled:
            logger.info("Proxy disabled, using direct connections")
        else:
            url = self.config.url
            self.environ["HTTP_PROXY"] = url
            self.environ["HTTPS_PROXY"] = url
            self.environ.setdefault("NO_PROXY", DEFAULT_NO_PROXY)
            logger.info("Proxy enabled: %s", url)

        self.initialized = True
        return self.config

    def client(self) -> httpx.Client:
        """Build an httpx client honouring the proxy config."""
        self.initialize()
        timeout = self.config.timeout_ms / 1000
        if not self.config.enabled:
            return httpx.Client(timeout=timeout, follow_redirects=True)
        return httpx.Client(
            proxy=self.config.url,
            timeout=timeout,
            follow_redirects=True,
            max_redirects=self.config.max_redirects,
        )

    def test_connection(self, url: str = PROXY_TEST_URL) -> bool:
        """Check that a request through the proxy succeeds.

        Returns:
            False when the proxy is disabled or the request fails.
        """
        if not self.config.enabled:
            logger.info("Proxy disabled, skipping connection test")
            return False
        try:
            with self.client() as client:
                response = client.get(url, timeout=5.0)
                response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("Proxy connection test failed: %s", e)
            return False
        logger.info("Proxy connection test succeeded: %s", response.text[:200])
        return True
