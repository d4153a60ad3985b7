"""
Document Provider for the Listing Facts service.
Supplies the parsed product document for an identifier: the currently
displayed document when it is the same product, otherwise a fresh retrieval.
"""
from dataclasses import dataclass
from typing import Optional

import httpx
from bs4 import BeautifulSoup

from listing_facts.config import config
from listing_facts.utils.identifiers import asin_from_url, normalize_asin
from listing_facts.utils.logger import LayerLogger


class FetchError(Exception):
    """Product document could not be retrieved."""

    def __init__(self, asin: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"Document fetch failed for {asin}: {message}")
        self.asin = asin
        self.status_code = status_code


@dataclass
class CurrentDocument:
    """The document already on display, with the URL it was loaded from."""
    url: str
    soup: BeautifulSoup

    @property
    def asin(self) -> Optional[str]:
        return asin_from_url(self.url)


def parse_document(html: str) -> BeautifulSoup:
    """Parse raw HTML into a product document."""
    return BeautifulSoup(html, "lxml")


class DocumentProvider:
    """
    Retrieval adapter for product documents.

    Contract: no request is made when the identifier matches the current
    document. Any failure to retrieve raises FetchError.
    """

    def __init__(
        self,
        timeout: int = config.REQUEST_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout
        self.client = client
        self.current: Optional[CurrentDocument] = None
        self.logger = LayerLogger("document_provider")

    def set_current_document(self, url: str, html: str) -> None:
        """Register the document currently on display."""
        self.current = CurrentDocument(url=url, soup=parse_document(html))

    def clear_current_document(self) -> None:
        self.current = None

    def _get_headers(self) -> dict:
        """Get request headers mimicking a browser."""
        return {
            "User-Agent": config.USER_AGENT,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            "Accept-Language": config.ACCEPT_LANGUAGE,
            "Cache-Control": "no-cache",
        }

    async def get_document(self, asin: str) -> BeautifulSoup:
        """
        Get the product document for an identifier.

        Args:
            asin: Product identifier

        Returns:
            Parsed document

        Raises:
            FetchError: retrieval failed
        """
        normalized = normalize_asin(asin)
        if normalized is None:
            raise FetchError(str(asin), "invalid identifier")

        if self.current is not None and self.current.asin == normalized:
            self.logger.log_decision(
                decision="reuse_current_document",
                reason="Identifier matches the document on display",
                asin=normalized,
            )
            return self.current.soup

        url = config.product_url(normalized)
        self.logger.log_action("fetch_document", "started", url=url, asin=normalized)
        try:
            if self.client is not None:
                response = await self.client.get(url, headers=self._get_headers())
            else:
                async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                    response = await client.get(url, headers=self._get_headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.log_fetch(url, normalized, status_code=e.response.status_code, error="http_status")
            raise FetchError(normalized, str(e), status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            self.logger.log_fetch(url, normalized, error="transport", detail=str(e))
            raise FetchError(normalized, str(e)) from e
        except httpx.InvalidURL as e:
            # Malformed MARKETPLACE_BASE_URL
            self.logger.log_fetch(url, normalized, error="invalid_url", detail=str(e))
            raise FetchError(normalized, str(e)) from e

        html = response.text
        self.logger.log_fetch(
            url,
            normalized,
            status_code=response.status_code,
            content_length=len(html),
        )
        return parse_document(html)
