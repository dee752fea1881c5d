"""Controller: applies oracle instructions to the live page"""

import logging
from typing import Sequence

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from .models import Instruction
from .planner import MAX_VALUE_LENGTH, validate_instruction

logger = logging.getLogger(__name__)

ACTION_TIMEOUT_MS = 5000


class Controller:
    """Executes instructions one by one; a failed one never stops the batch"""

    def __init__(self, page: Page, action_timeout_ms: int = ACTION_TIMEOUT_MS):
        self.page = page
        self.action_timeout_ms = action_timeout_ms

    async def execute(self, instructions: Sequence[Instruction]) -> bool:
        """
        Run the instructions in order, returning whether at least one succeeded.
        """
        executed = False
        for instruction in instructions:
            checked = validate_instruction(
                {"action": instruction.action, "selector": instruction.selector, "value": instruction.value}
            )
            if checked is None:
                logger.warning(f"⚠️ Skipping malformed instruction: {instruction.describe()}")
                continue

            try:
                if checked.action == "click":
                    await self._click(checked.selector)
                else:
                    await self._type(checked.selector, checked.value or "")
                executed = True
            except PlaywrightError as e:
                logger.warning(f"⚠️ Failed to execute oracle instruction ({checked.describe()}): {e}")

        return executed

    def _first_visible(self, selector: str):
        return self.page.locator(selector).locator("visible=true").first

    async def _click(self, selector: str):
        await self._first_visible(selector).click(timeout=self.action_timeout_ms)
        logger.info(f"✓ Clicked {selector}")

    async def _type(self, selector: str, value: str):
        await self._first_visible(selector).fill(value[:MAX_VALUE_LENGTH], timeout=self.action_timeout_ms)
        logger.info(f"✓ Typed into {selector}")
