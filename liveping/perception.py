"""Perception: workflow allowlist, page-state classification and snapshots"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple
from urllib.parse import urlsplit

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from .models import PageState

logger = logging.getLogger(__name__)

# Path segments that belong to a normal login -> seat -> checkout flow
WORKFLOW_SEGMENTS = (
    "/login",
    "/signin",
    "/auth",
    "/seat",
    "/ticket",
    "/checkout",
    "/payment",
    "/confirm",
    "/captcha",
)

CHALLENGE_SELECTORS = (
    'iframe[src*="recaptcha"]',
    "div.g-recaptcha",
    'iframe[src*="hcaptcha"]',
    "div.h-captcha",
    'iframe[src*="challenges.cloudflare.com"]',
    "div.cf-turnstile",
    '[id*="captcha"]',
    '[class*="captcha"]',
    'input[name*="captcha"]',
    'input[id*="captcha"]',
    'img[src*="captcha"]',
    '[aria-label*="captcha" i]',
)

CHALLENGE_TIMEOUT_MS = 1000
POLL_INTERVAL_MS = 100
MAX_DOM_CHARS = 100_000

REASON_OFF_WORKFLOW = "unexpected workflow URL"
REASON_CHALLENGE = "captcha detected"


def _origin(url: str) -> Optional[str]:
    """scheme://host[:port] of an absolute URL, None if it has none."""
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname:
        return None
    origin = f"{parts.scheme}://{parts.hostname}"
    if port is not None:
        origin += f":{port}"
    return origin


def build_allowlist(target: str) -> Tuple[str, ...]:
    """
    Derive the URL patterns that count as "on workflow" for this run.

    Order: the target itself, its origin, origin-qualified segments, then the
    bare segments (used when the origin changes mid-flow).
    """
    entries = [target]
    origin = _origin(target)
    if origin:
        entries.append(origin)
        entries.extend(origin + segment for segment in WORKFLOW_SEGMENTS)
    entries.extend(WORKFLOW_SEGMENTS)
    return tuple(dict.fromkeys(entries))


def matches_allowlist(url: str, allowlist: Sequence[str]) -> bool:
    """
    Decide whether ``url`` belongs to the expected workflow.

    - full URL entries: same origin and the path starts with the entry's path
    - bare "/segment" entries: the path starts with the segment
    - anything else: literal prefix of the lowercased URL
    """
    current = url.strip().lower()
    entries = [entry.strip().lower() for entry in allowlist if entry and entry.strip()]

    origin = _origin(current)
    if origin is None:
        return any(current.startswith(entry) for entry in entries)
    path = urlsplit(current).path or "/"

    for entry in entries:
        entry_origin = _origin(entry)
        if entry_origin is not None:
            entry_path = urlsplit(entry).path or "/"
            if entry_origin == origin and path.startswith(entry_path):
                return True
        elif entry.startswith("/"):
            if path.startswith(entry):
                return True
        elif current.startswith(entry):
            return True
    return False


async def is_visible_within(locator: Locator, timeout_ms: int) -> bool:
    """Poll ``locator.is_visible()`` until it is true or the budget runs out."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + max(timeout_ms, 0) / 1000
    while True:
        try:
            if await locator.is_visible():
                return True
        except PlaywrightError:
            return False
        if loop.time() >= deadline:
            return False
        await asyncio.sleep(POLL_INTERVAL_MS / 1000)


async def capture_page_state(page: Page) -> PageState:
    """Grab DOM and screenshot together. Errors propagate to the caller."""
    dom, screenshot = await asyncio.gather(page.content(), page.screenshot())
    if len(dom) > MAX_DOM_CHARS:
        dom = dom[:MAX_DOM_CHARS]
    return PageState(url=page.url, dom=dom, screenshot=screenshot)


class Perception:
    """
    Classifies the live page against the workflow allowlist.

    Both checks run on demand; nothing is polled in the background.
    """

    def __init__(self, allowlist: Sequence[str], challenge_timeout_ms: int = CHALLENGE_TIMEOUT_MS):
        self.allowlist = tuple(allowlist)
        self.challenge_timeout_ms = challenge_timeout_ms

    def is_on_workflow(self, page: Page) -> bool:
        return matches_allowlist(page.url, self.allowlist)

    async def detect_challenge(self, page: Page) -> bool:
        for selector in CHALLENGE_SELECTORS:
            if await is_visible_within(page.locator(selector).first, self.challenge_timeout_ms):
                logger.info(f"🧩 Challenge indicator visible: {selector}")
                return True
        return False

    async def assess(self, page: Page) -> List[str]:
        """Return the divergence reasons for the current page; empty means on workflow."""
        reasons = []
        if not self.is_on_workflow(page):
            reasons.append(REASON_OFF_WORKFLOW)
        if await self.detect_challenge(page):
            reasons.append(REASON_CHALLENGE)
        return reasons
