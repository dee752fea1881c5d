"""Fake Playwright page/locator doubles shared by the tests"""

from dataclasses import replace

import pytest
from playwright.async_api import Error as PlaywrightError

from liveping.strategies import GENERIC, SiteStrategy


class FakeLocator:
    def __init__(self, page, selector, visible_only=False):
        self.page = page
        self.selector = selector
        self.visible_only = visible_only

    def locator(self, selector):
        assert selector == "visible=true"
        return FakeLocator(self.page, self.selector, visible_only=True)

    def _check(self, action):
        if self.selector in self.page.broken:
            raise PlaywrightError(f"{action} on {self.selector} timed out")
        if self.visible_only and self.selector not in self.page.visible:
            raise PlaywrightError(f"{action} on {self.selector} timed out waiting for a visible match")

    @property
    def first(self):
        return self

    async def is_visible(self):
        if self.selector in self.page.errors:
            raise PlaywrightError(f"locator {self.selector} exploded")
        return self.selector in self.page.visible

    async def click(self, **kwargs):
        self._check("click")
        self.page.clicks.append(self.selector)
        callback = self.page.on_click.get(self.selector)
        if callback:
            callback(self.page)

    async def fill(self, value, **kwargs):
        self._check("fill")
        self.page.fills.append((self.selector, value))


class FakePage:
    def __init__(self, url="about:blank", visible=(), html="<html></html>"):
        self.url = url
        self.visible = set(visible)
        self.html = html
        self.errors = set()
        self.broken = set()
        self.on_click = {}
        self.clicks = []
        self.fills = []
        self.gotos = []
        self.waits = []
        self.goto_error = None

    def locator(self, selector):
        return FakeLocator(self, selector)

    async def content(self):
        return self.html

    async def screenshot(self, **kwargs):
        return b"\x89PNG fake"

    async def goto(self, url, **kwargs):
        if self.goto_error:
            raise PlaywrightError(self.goto_error)
        self.gotos.append(url)
        self.url = url

    async def wait_for_timeout(self, timeout):
        self.waits.append(timeout)


def instant(strategy: SiteStrategy) -> SiteStrategy:
    """Same selectors, zero waits."""
    return replace(
        strategy,
        login=replace(strategy.login, probe_timeout_ms=0, password_timeout_ms=0, form_wait_ms=0, settle_ms=0),
        selection=replace(strategy.selection, seat_timeout_ms=0, booking_timeout_ms=0, settle_ms=0),
        checkout=replace(strategy.checkout, probe_timeout_ms=0, settle_ms=0),
    )


@pytest.fixture
def page():
    return FakePage(url="https://example.com/event")


@pytest.fixture
def generic():
    return instant(GENERIC)
