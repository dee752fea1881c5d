"""Step executors: login, item selection and checkout"""

import logging
from typing import Optional, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page

from .models import StepResult
from .perception import is_visible_within
from .strategies import CheckoutStrategy, LoginStrategy, SelectionStrategy

logger = logging.getLogger(__name__)


async def find_first_visible(
    page: Page, selectors: Sequence[str], timeout_ms: int
) -> Optional[Tuple[str, Locator]]:
    """Try candidates in priority order; the first visible match wins."""
    for selector in selectors:
        locator = page.locator(selector).first
        if await is_visible_within(locator, timeout_ms):
            return selector, locator
    return None


async def perform_login(page: Page, email: str, password: str, strategy: LoginStrategy) -> StepResult:
    """
    Open the login form if there is a link to it, then fill and submit it.

    No email field at all is taken as "already logged in" and reported as
    success. Whether the page is the right one is the classifier's business.
    """
    try:
        login_button = await find_first_visible(page, strategy.login_buttons, strategy.probe_timeout_ms)
        if login_button:
            await login_button[1].click()
        else:
            logger.info("⚠️ No login button found, checking if already logged in...")

        await page.wait_for_timeout(strategy.form_wait_ms)

        email_input = await find_first_visible(page, strategy.email_inputs, strategy.probe_timeout_ms)
        if not email_input:
            logger.info("⚠️ Email input not found, may already be logged in")
            return StepResult.success("no login form, assuming already authenticated")

        await email_input[1].fill(email)
        logger.info("📧 Email entered")

        password_input = page.locator(strategy.password_input).first
        if not await is_visible_within(password_input, strategy.password_timeout_ms):
            return StepResult.inconclusive("password input did not appear")
        await password_input.fill(password)
        logger.info("🔑 Password entered")

        submit = await find_first_visible(page, strategy.submit_buttons, strategy.probe_timeout_ms)
        if submit:
            await submit[1].click()
        else:
            logger.info("⚠️ No submit button found, relying on the form's own submit")

        await page.wait_for_timeout(strategy.settle_ms)
        return StepResult.success("credentials submitted")

    except PlaywrightError as e:
        logger.error(f"❌ Login error: {e}")
        return StepResult.error(str(e))


async def select_item(page: Page, strategy: SelectionStrategy) -> StepResult:
    """Click the first available seat, else the first generic booking button."""
    try:
        seat = await find_first_visible(page, strategy.seats, strategy.seat_timeout_ms)
        if seat:
            await seat[1].click()
            logger.info(f"🪑 Seat clicked: {seat[0]}")
            await page.wait_for_timeout(strategy.settle_ms)
            return StepResult.success(seat[0])

        button = await find_first_visible(page, strategy.booking_buttons, strategy.booking_timeout_ms)
        if button:
            await button[1].click()
            logger.info(f"📝 Booking button clicked: {button[0]}")
            await page.wait_for_timeout(strategy.settle_ms)
            return StepResult.success(button[0])

        logger.warning("⚠️ No seat or booking button visible")
        return StepResult.inconclusive("no seats available or seat selection failed")

    except PlaywrightError as e:
        logger.error(f"❌ Seat selection error: {e}")
        return StepResult.error(str(e))


async def find_confirmation(page: Page, patterns: Sequence[str]) -> Optional[str]:
    content = (await page.content()).lower()
    for pattern in patterns:
        if pattern.lower() in content:
            return pattern
    return None


async def perform_checkout(page: Page, strategy: CheckoutStrategy) -> StepResult:
    """
    Click through checkout. Without a checkout button the step still succeeds
    when the page already shows a confirmation message.
    """
    try:
        button = await find_first_visible(page, strategy.checkout_buttons, strategy.probe_timeout_ms)
        if button:
            await button[1].click()
            logger.info(f"🛒 Checkout button clicked: {button[0]}")
            await page.wait_for_timeout(strategy.settle_ms)

            confirmation = await find_confirmation(page, strategy.confirmation_patterns)
            if confirmation:
                logger.info(f"✅ Found confirmation: {confirmation}")
            return StepResult.success(button[0])

        confirmation = await find_confirmation(page, strategy.confirmation_patterns)
        if confirmation:
            logger.info(f"✅ No checkout button, but page shows confirmation: {confirmation}")
            return StepResult.success(confirmation)

        logger.warning("⚠️ No explicit checkout button found")
        return StepResult.inconclusive("checkout process failed")

    except PlaywrightError as e:
        logger.error(f"❌ Checkout error: {e}")
        return StepResult.error(str(e))
