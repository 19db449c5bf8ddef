"""Playwright session and page capture for the Pandora Campus reader."""

import asyncio
import logging
import re
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from playwright.async_api import BrowserContext, Page, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from pandora_pdf.browser.render import EXTRACT_SCRIPT, TOC_SCRIPT, build_page_html
from pandora_pdf.config import Credentials, PandoraConfig
from pandora_pdf.core.capture import Capturer
from pandora_pdf.core.storage import page_artifact_name
from pandora_pdf.errors import CaptureFailed, LoginFailed, PandoraError
from pandora_pdf.models.book import PageDescriptor

log = logging.getLogger(__name__)

USERNAME_SELECTOR = "#mainLogindialogjsonform-username"
PASSWORD_SELECTOR = "#mainLogindialogjsonform-password"
SUBMIT_SELECTOR = "#mainLogindialogjsonform-dorestlogin"
READ_BUTTON_SELECTOR = "a.btn.read"
CONTENT_SELECTOR = "#selectableArea"

LOADER_HIDDEN_SCRIPT = """
() => {
  const loader = document.querySelector("#reader-main-loader");
  return loader && loader.classList.contains("hide");
}
"""

CLICK_LOGIN_SCRIPT = """
() => {
  const el = Array.from(document.querySelectorAll("a, button")).find(
    (e) => (e.textContent || "").toLowerCase().includes("login") ||
           (e.getAttribute("href") || "").includes("login")
  );
  if (el) { el.click(); return true; }
  return false;
}
"""

# /doi/10.978.8815/415073/_11_9 -> 10.978.8815/415073
BOOK_NUMBER_RE = re.compile(r"/doi/([\d.]+/\d+)/")


def book_number_from_url(url: str) -> str:
    match = BOOK_NUMBER_RE.search(url)
    if not match:
        raise PandoraError(f"Could not extract book number from URL: {url}")
    return match.group(1)


class PlaywrightCapturer(Capturer):
    """Captures reader pages through a logged-in browser context."""

    def __init__(
        self,
        context: BrowserContext,
        page: Page,
        config: PandoraConfig,
        book_number: str | None = None,
    ):
        self.context = context
        self.page = page
        self.config = config
        self.book_number = book_number

    @property
    def main_page(self) -> Page:
        return self.page

    async def open_page(self) -> Page:
        return await self.context.new_page()

    async def close_page(self, page: Page) -> None:
        await page.close()

    def page_url(self, descriptor: PageDescriptor) -> str:
        if not self.book_number:
            raise PandoraError("Book number not set on capture session")
        return f"{self.config.base_url}/doi/{self.book_number}/{descriptor.id}"

    async def capture(
        self,
        page: Page,
        descriptor: PageDescriptor,
        target_dir: Path,
    ) -> Path:
        url = self.page_url(descriptor)
        try:
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.config.navigation_timeout_ms,
            )
            await asyncio.sleep(self.config.settle_delay)
            await page.wait_for_selector(
                CONTENT_SELECTOR, timeout=self.config.element_timeout_ms
            )
            await asyncio.sleep(self.config.render_delay)
            extracted = await page.evaluate(EXTRACT_SCRIPT)
        except PlaywrightTimeoutError as e:
            raise CaptureFailed(descriptor, f"timed out loading {url}: {e}") from e
        except PlaywrightError as e:
            raise CaptureFailed(descriptor, f"could not load {url}: {e}") from e

        if not extracted:
            raise CaptureFailed(descriptor, f"{CONTENT_SELECTOR} not found on {url}")

        output_path = target_dir / page_artifact_name(descriptor)
        render_page = await self.context.new_page()
        try:
            await render_page.set_content(
                build_page_html(extracted), wait_until="networkidle"
            )
            await render_page.pdf(
                path=str(output_path),
                format="A4",
                print_background=True,
                margin={"top": "1cm", "right": "1cm", "bottom": "1cm", "left": "1cm"},
                prefer_css_page_size=False,
                display_header_footer=False,
            )
        except PlaywrightError as e:
            raise CaptureFailed(descriptor, f"could not render PDF: {e}") from e
        finally:
            await render_page.close()

        return output_path


async def login(page: Page, credentials: Credentials, config: PandoraConfig) -> None:
    """Log in through the site's login dialog.

    Raises:
        LoginFailed: If any step of the login flow fails
    """
    log.info("Navigating to %s", config.base_url)
    try:
        await page.goto(f"{config.base_url}/", wait_until="domcontentloaded")
        await asyncio.sleep(2)

        log.info("Opening login dialog...")
        clicked = await page.evaluate(CLICK_LOGIN_SCRIPT)
        if not clicked:
            raise LoginFailed("Login button not found")
        await page.wait_for_selector(USERNAME_SELECTOR, timeout=config.login_timeout_ms)

        await page.fill(USERNAME_SELECTOR, credentials.email)
        await page.fill(PASSWORD_SELECTOR, credentials.password)

        log.info("Submitting login form...")
        async with page.expect_navigation(
            wait_until="networkidle", timeout=config.login_timeout_ms
        ):
            await page.click(SUBMIT_SELECTOR)
    except PlaywrightError as e:
        raise LoginFailed(f"Login failed: {e}") from e

    log.info("Login completed, current URL: %s", page.url)


@asynccontextmanager
async def open_session(
    config: PandoraConfig,
    credentials: Credentials,
    book_number: str | None = None,
) -> AsyncIterator[PlaywrightCapturer]:
    """Launch a browser, log in, and yield a capturer. The browser is always closed."""
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=config.headless)
        try:
            context = await browser.new_context()
            page = await context.new_page()
            await login(page, credentials, config)
            yield PlaywrightCapturer(context, page, config, book_number)
        finally:
            await browser.close()
            log.info("Browser closed.")


async def open_first_book(capturer: PlaywrightCapturer) -> list[PageDescriptor]:
    """Open the first book in My Books and read its table of contents.

    Sets capturer.book_number from the reader URL.
    """
    page = capturer.main_page
    config = capturer.config

    log.info("Navigating to My Books page...")
    try:
        await page.goto(
            f"{config.base_url}/pandora/mybooks", wait_until="domcontentloaded"
        )
        await asyncio.sleep(2)

        read_button = await page.wait_for_selector(
            READ_BUTTON_SELECTOR, timeout=config.element_timeout_ms
        )
        if read_button is None:
            raise PandoraError('Could not find any "Leggi" button')
        await read_button.click()

        log.info("Waiting for reader page to load...")
        await page.wait_for_function(LOADER_HIDDEN_SCRIPT, timeout=config.reader_timeout_ms)
        await asyncio.sleep(config.settle_delay)

        rows = await page.evaluate(TOC_SCRIPT)
    except PlaywrightError as e:
        raise PandoraError(f"Could not open the reader: {e}") from e

    capturer.book_number = book_number_from_url(page.url)
    log.info("Book number: %s", capturer.book_number)

    page_ids = [row for row in rows or [] if row.get("docbookId")]
    pages = [
        PageDescriptor(id=row["docbookId"], title=row["title"], page_num=index)
        for index, row in enumerate(page_ids, start=1)
    ]
    log.info("Table of contents extracted: %d items", len(pages))
    return pages
