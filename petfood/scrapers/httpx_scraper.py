"""
HTTP product page scraper - httpx + BeautifulSoup.

Fetches the page with async httpx (browser headers, redirects followed,
exponential backoff on transient failures) under one deadline that covers
every attempt, and extracts title and ingredients with BeautifulSoup.

Extraction order for ingredients:
1. zooplus-style block (#ingredients / anchors_anchorsHTML class)
2. elements whose id or class mentions ingredients or composition
3. a heading labelled "Ingredients" / "Composition" and the element after it
4. an "Ingredients:" / "Composition:" line anywhere in the page text
"""

import asyncio
import logging
import re
from typing import Optional

import httpx
from bs4 import BeautifulSoup
from django.conf import settings

from petfood.exceptions import ScrapingError
from petfood.scrapers.base import BaseScraper, ScrapedProduct

logger = logging.getLogger(__name__)

UNKNOWN_PRODUCT = "Unknown Product"

INGREDIENT_MARKER = re.compile(r"ingredient|composition", re.IGNORECASE)
INGREDIENT_HEADING = re.compile(r"^\s*(ingredients|composition)\s*:?\s*$", re.IGNORECASE)
INGREDIENT_LINE = re.compile(r"\b(?:ingredients|composition)\s*:\s*(\S.*)", re.IGNORECASE)

CONTAINER_TAGS = ["div", "section", "p", "span", "ul", "dd", "td"]
HEADING_TAGS = ["h2", "h3", "h4", "h5", "h6", "strong", "b", "dt", "th"]


def normalize_whitespace(text: str) -> str:
    """Collapse runs of spaces and tabs, drop blank lines."""
    text = re.sub(r"[ \t\r\f\v\xa0]+", " ", text)
    lines = [line.strip() for line in text.split("\n")]
    return "\n".join(line for line in lines if line)


def _element_text(element) -> str:
    return normalize_whitespace(element.get_text("\n"))


def extract_product_name(soup: BeautifulSoup) -> str:
    """Product title from the page, "Unknown Product" when none is found."""
    title = soup.select_one('h1[data-zta="ProductTitle__Title"]')
    if title is None:
        title = soup.select_one('h1[class*="ProductTitle_title__"]')
    if title is not None:
        name = " ".join(title.get_text(" ").split())
        if name:
            return name

    og_title = soup.find("meta", attrs={"property": "og:title"})
    if og_title and og_title.get("content", "").strip():
        return " ".join(og_title["content"].split())

    first_h1 = soup.find("h1")
    if first_h1 is not None:
        name = " ".join(first_h1.get_text(" ").split())
        if name:
            return name

    return UNKNOWN_PRODUCT


def _has_ingredient_marker(element) -> bool:
    element_id = element.get("id") or ""
    classes = " ".join(element.get("class") or [])
    return bool(INGREDIENT_MARKER.search(element_id) or INGREDIENT_MARKER.search(classes))


def extract_ingredients(soup: BeautifulSoup) -> Optional[str]:
    """Ingredient list from the page, None when no section is recognised."""
    for tag in soup(["script", "style", "noscript", "template"]):
        tag.decompose()

    # zooplus
    block = soup.select_one('#ingredients [class*="anchors_anchorsHTML"]')
    if block is None:
        block = soup.select_one('[class*="anchors_anchorsHTML"]')
    if block is not None:
        text = _element_text(block)
        if text:
            return text

    for element in soup.find_all(CONTAINER_TAGS):
        if not _has_ingredient_marker(element):
            continue
        text = _element_text(element)
        if text and not INGREDIENT_HEADING.match(text):
            return text

    for heading in soup.find_all(HEADING_TAGS):
        if not INGREDIENT_HEADING.match(heading.get_text(" ")):
            continue
        sibling = heading.find_next_sibling()
        if sibling is not None:
            text = _element_text(sibling)
            if text:
                return text

    for line in soup.get_text("\n").split("\n"):
        match = INGREDIENT_LINE.search(line)
        if match:
            return normalize_whitespace(match.group(1))

    return None


def parse_product_page(html: str) -> ScrapedProduct:
    """Extract title and ingredients from a product page."""
    soup = BeautifulSoup(html, "html.parser")
    name = extract_product_name(soup)
    ingredients = extract_ingredients(soup)
    return ScrapedProduct(name=name, ingredients=ingredients)


class HttpxScraper(BaseScraper):
    """
    Scraper using async httpx.

    Features:
    - Browser User-Agent and Accept headers
    - Redirects followed
    - Configurable timeout and retry count
    - No retry on 4xx client errors
    """

    DEFAULT_USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )

    # httpx does not decode brotli without the extra package
    DEFAULT_HEADERS = {
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
        "Accept-Encoding": "gzip, deflate",
    }

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        user_agent: Optional[str] = None,
    ):
        """
        Initialize the scraper.

        Args:
            timeout: Overall deadline in seconds, retries included (default from settings)
            max_retries: Maximum attempts per page (default from settings)
            user_agent: Custom User-Agent string
        """
        self.timeout = timeout or getattr(settings, "PETFOOD_SCRAPER_TIMEOUT", 30)
        self.max_retries = max_retries or getattr(settings, "PETFOOD_SCRAPER_MAX_RETRIES", 2)
        self.user_agent = user_agent or self.DEFAULT_USER_AGENT

    async def scrape(self, url: str) -> ScrapedProduct:
        headers = {**self.DEFAULT_HEADERS, "User-Agent": self.user_agent}

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers=headers,
                follow_redirects=True,
            ) as client:
                response = await asyncio.wait_for(
                    self._fetch_with_retry(client, url), self.timeout
                )
        except asyncio.TimeoutError as e:
            logger.warning(f"Scraping {url} exceeded {self.timeout}s overall")
            raise ScrapingError(f"Timed out fetching product page after {self.timeout}s") from e
        except httpx.TimeoutException as e:
            logger.warning(f"Timeout scraping {url}: {e}")
            raise ScrapingError(f"Timed out fetching product page after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            logger.warning(f"HTTP {e.response.status_code} scraping {url}")
            raise ScrapingError(f"Product page returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.warning(f"Error scraping {url}: {e}")
            raise ScrapingError(f"Could not fetch product page: {e}") from e

        if response.status_code >= 400:
            logger.warning(f"HTTP {response.status_code} scraping {url}")
            raise ScrapingError(f"Product page returned HTTP {response.status_code}")

        try:
            product = parse_product_page(response.text)
        except Exception as e:
            logger.error(f"Failed to parse product page {url}: {e}")
            raise ScrapingError(f"Could not parse product page: {e}") from e

        if product.has_ingredients:
            logger.info(
                f"Scraped {url}: '{product.name}' "
                f"({len(product.ingredients)} chars of ingredients)"
            )
        else:
            logger.info(f"Scraped {url}: '{product.name}', no ingredient section found")
        return product

    async def _fetch_with_retry(self, client: httpx.AsyncClient, url: str) -> httpx.Response:
        """
        Fetch with exponential backoff retry logic.

        4xx responses are returned without retrying.
        """
        last_error = None

        for attempt in range(self.max_retries):
            try:
                response = await client.get(url)

                if 400 <= response.status_code < 500:
                    return response

                response.raise_for_status()
                return response

            except httpx.TimeoutException as e:
                last_error = e
                logger.warning(
                    f"Timeout fetching {url} (attempt {attempt + 1}/{self.max_retries})"
                )

            except httpx.HTTPStatusError as e:
                last_error = e
                logger.warning(
                    f"HTTP error {e.response.status_code} for {url} "
                    f"(attempt {attempt + 1}/{self.max_retries})"
                )

            except httpx.HTTPError as e:
                last_error = e
                logger.warning(
                    f"Error fetching {url}: {e} (attempt {attempt + 1}/{self.max_retries})"
                )

            if attempt < self.max_retries - 1:
                await asyncio.sleep(2 ** attempt)

        if last_error:
            raise last_error
        raise httpx.HTTPError(f"Failed to fetch {url} after {self.max_retries} attempts")
