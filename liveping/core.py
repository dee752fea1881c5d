"""Run controller: login -> seat selection -> checkout, guarded at every step"""

import logging
from datetime import datetime
from typing import Awaitable, Callable, Mapping, Optional

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from .config import BotConfig, ConfigurationError, start_time_passed
from .controller import Controller
from .models import GuardReport, RunOutcome, RunStatus, StepResult
from .perception import Perception, build_allowlist
from .planner import Planner
from .steps import perform_checkout, perform_login, select_item
from .strategies import SiteStrategy, select_strategy

logger = logging.getLogger(__name__)

NAVIGATION_TIMEOUT_MS = 30000
VIEWPORT = {"width": 1280, "height": 720}
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
LAUNCH_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

STEP_NAVIGATION = "navigation"
STEP_LOGIN = "login"
STEP_SELECTION = "item-selection"
STEP_CHECKOUT = "checkout"
STEP_CONFIGURATION = "configuration"
STEP_BROWSER = "browser"


class EventBot:
    """
    Drives one run against a single page.

    Allowlist and strategy are fixed at construction; page snapshots and
    oracle instructions are used once and dropped.
    """

    def __init__(
        self,
        config: BotConfig,
        strategy: Optional[SiteStrategy] = None,
        planner: Optional[Planner] = None,
        perception: Optional[Perception] = None,
    ):
        self.config = config
        self.allowlist = build_allowlist(config.event_url)
        self.strategy = strategy or select_strategy(config.event_url)
        self.planner = planner or Planner.from_config(
            config.openai_api_key, config.openai_model, config.openai_base_url
        )
        self.perception = perception or Perception(self.allowlist)

    async def guard(self, page: Page, context: str) -> GuardReport:
        """Classify the page and, if it diverged, try the oracle's corrections."""
        reasons = tuple(await self.perception.assess(page))
        if not reasons:
            return GuardReport(reasons)

        reason = "; ".join(reasons)
        logger.warning(f"🚧 Workflow diverged after {context}: {reason} ({page.url})")
        instructions = await self.planner.request_instructions(page, reason, self.allowlist)
        executed = await Controller(page).execute(instructions)
        if executed:
            await page.wait_for_timeout(self.config.settle_ms)
        else:
            logger.info("ℹ️ No corrective instruction was applied")
        return GuardReport(reasons, executed)

    async def _run_step(
        self, page: Page, name: str, attempt: Callable[[], Awaitable[StepResult]]
    ) -> Optional[RunOutcome]:
        """
        Run one step followed by its guard. Returns a failure outcome, or None
        when the flow may continue.
        """
        result = await attempt()
        if result.ok:
            logger.info(f"✅ {name} succeeded ({result.detail})")
            await self.guard(page, name)
            return None

        logger.warning(f"⚠️ {name} {result.status.value}: {result.detail}")
        report = await self.guard(page, f"{name} failure")
        if not report.executed:
            return RunOutcome.failed(name, result.detail)

        remaining = await self.perception.assess(page)
        if remaining:
            return RunOutcome.failed(
                name, f"still off workflow after correction: {'; '.join(remaining)}"
            )

        logger.info(f"🔁 Page corrected, retrying {name} once")
        retry = await attempt()
        if not retry.ok:
            return RunOutcome.failed(name, retry.detail)
        logger.info(f"✅ {name} succeeded on retry ({retry.detail})")
        await self.guard(page, name)
        return None

    async def run_flow(self, page: Page) -> RunOutcome:
        target = self.config.event_url
        logger.info(f"🌐 Navigating to {target} (strategy: {self.strategy.name})")
        try:
            await page.goto(target, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)
        except PlaywrightError as e:
            return RunOutcome.failed(STEP_NAVIGATION, str(e))
        await self.guard(page, STEP_NAVIGATION)

        logger.info("🔐 Attempting to login...")
        failure = await self._run_step(
            page,
            STEP_LOGIN,
            lambda: perform_login(page, self.config.email, self.config.password, self.strategy.login),
        )
        if failure:
            return failure

        if page.url != target:
            logger.info("↩️ Returning to event page...")
            try:
                await page.goto(target, wait_until="networkidle", timeout=NAVIGATION_TIMEOUT_MS)
            except PlaywrightError as e:
                return RunOutcome.failed(STEP_NAVIGATION, str(e))
            await self.guard(page, STEP_NAVIGATION)

        logger.info("🎫 Attempting to select seat...")
        failure = await self._run_step(page, STEP_SELECTION, lambda: select_item(page, self.strategy.selection))
        if failure:
            return failure

        logger.info("💳 Attempting checkout...")
        failure = await self._run_step(page, STEP_CHECKOUT, lambda: perform_checkout(page, self.strategy.checkout))
        if failure:
            return failure

        return RunOutcome.success()


async def run(environ: Optional[Mapping[str, str]] = None, now: Optional[datetime] = None) -> RunOutcome:
    """
    One complete run: configuration, start gate, browser session, workflow.

    No browser is launched when configuration fails or the gate is not
    reached yet.
    """
    try:
        config = BotConfig.from_env(environ)
    except ConfigurationError as e:
        return RunOutcome.failed(STEP_CONFIGURATION, str(e))

    if not start_time_passed(config.start_time, now):
        return RunOutcome.not_yet(f"Start time not reached ({config.start_time})")

    logger.info(f"📍 Event URL: {config.event_url}")
    bot = EventBot(config)

    try:
        async with async_playwright() as p:
            logger.info("🚀 Launching Chromium browser...")
            browser = await p.chromium.launch(headless=not config.headful, args=LAUNCH_ARGS)
            try:
                context = await browser.new_context(viewport=VIEWPORT, user_agent=USER_AGENT)
                page = await context.new_page()
                return await bot.run_flow(page)
            finally:
                await browser.close()
                logger.info("🔒 Browser closed")
    except PlaywrightError as e:
        return RunOutcome.failed(STEP_BROWSER, str(e))


async def main(environ: Optional[Mapping[str, str]] = None) -> int:
    outcome = await run(environ)
    if outcome.status is RunStatus.FAILED:
        logger.error(outcome.message)
    else:
        logger.info(outcome.message)
    print(outcome.message)
    return outcome.exit_code
