"""Planner: asks the LLM oracle for corrective UI actions"""

import base64
import json
import logging
import re
from typing import Any, Callable, List, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page

from .models import Instruction
from .perception import capture_page_state

logger = logging.getLogger(__name__)

SUPPORTED_ACTIONS = ("click", "type")
MAX_SELECTOR_LENGTH = 500
MAX_VALUE_LENGTH = 500

_FENCED = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_EMBEDDED = re.compile(r"\[[\s\S]*\]|\{[\s\S]*\}")


def build_prompt(url: str, reason: str, allowlist: Sequence[str]) -> str:
    workflow_list = "\n- ".join(allowlist)
    return "\n".join([
        "You are assisting a Playwright bot with the workflow: login -> seat selection -> checkout -> notification.",
        "The page may contain a captcha or be outside the expected workflow.",
        f"Current URL: {url}",
        f"Reason for request: {reason}",
        "Expected workflow URLs or patterns:",
        f"- {workflow_list}",
        "Use the provided DOM and screenshot to decide the next action.",
        "Respond with ONLY a JSON array (or a single JSON object) of instructions. "
        "You may wrap the JSON in ```json``` fences if needed, but no additional prose.",
        "Each instruction must be one of:",
        '{"action":"click","selector":"<css selector>"}',
        '{"action":"type","selector":"<css selector>","value":"<text to enter>"}',
        "Prefer minimal steps that move the flow forward toward checkout.",
        "If no meaningful action is possible, return an empty JSON array []",
    ])


def _from_fence(text: str) -> Optional[str]:
    match = _FENCED.search(text)
    return match.group(1).strip() if match else None


def _from_bare(text: str) -> Optional[str]:
    return text if text.startswith(("[", "{")) else None


def _from_embedded(text: str) -> Optional[str]:
    match = _EMBEDDED.search(text)
    return match.group(0).strip() if match else None


# tried in order, first non-None payload wins
EXTRACTORS: Sequence[Callable[[str], Optional[str]]] = (_from_fence, _from_bare, _from_embedded)


def extract_json_payload(text: str) -> Optional[str]:
    trimmed = text.strip()
    for extract in EXTRACTORS:
        payload = extract(trimmed)
        if payload:
            return payload
    return None


def validate_instruction(raw: Any) -> Optional[Instruction]:
    """Turn one raw JSON entry into an Instruction, or None if it is malformed."""
    if not isinstance(raw, dict):
        return None
    action = raw.get("action")
    selector = raw.get("selector")
    value = raw.get("value")

    if action not in SUPPORTED_ACTIONS or not isinstance(selector, str):
        return None
    selector = selector.strip()
    if not selector or len(selector) > MAX_SELECTOR_LENGTH or len(selector.splitlines()) > 1:
        return None
    if action == "type":
        if not isinstance(value, str) or len(value) > MAX_VALUE_LENGTH:
            return None
        return Instruction(action, selector, value)
    return Instruction(action, selector)


def parse_instructions(text: str) -> List[Instruction]:
    """Parse an oracle reply into valid instructions; malformed entries are dropped."""
    payload = extract_json_payload(text)
    if not payload:
        logger.warning("⚠️ Oracle response did not contain a JSON payload")
        return []

    try:
        parsed = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.error(f"❌ Failed to parse oracle response JSON: {e}")
        return []

    candidates = parsed if isinstance(parsed, list) else [parsed]
    instructions = []
    for raw in candidates:
        instruction = validate_instruction(raw)
        if instruction is None:
            logger.warning(f"⚠️ Discarding invalid instruction: {str(raw)[:200]}")
            continue
        instructions.append(instruction)
    return instructions


class Planner:
    """Escalates a diverged page to the oracle and returns instructions to try"""

    def __init__(self, client: Optional[AsyncOpenAI], model: str):
        self.client = client
        self.model = model
        self._warned_disabled = False

    @classmethod
    def from_config(cls, api_key: Optional[str], model: str, base_url: Optional[str] = None) -> "Planner":
        if not api_key:
            return cls(None, model)
        return cls(AsyncOpenAI(api_key=api_key, base_url=base_url), model)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    async def request_instructions(self, page: Page, reason: str, allowlist: Sequence[str]) -> List[Instruction]:
        """
        Capture the page, ask the oracle what to do, and return the valid
        instructions. Every failure along the way yields an empty list.
        """
        if not self.enabled:
            if not self._warned_disabled:
                logger.warning("⚠️ OPENAI_API_KEY not set; skipping oracle assistance.")
                self._warned_disabled = True
            return []

        try:
            state = await capture_page_state(page)
        except PlaywrightError as e:
            logger.error(f"❌ Failed to capture page state: {e}")
            return []

        prompt = build_prompt(state.url, reason, allowlist)
        image = base64.b64encode(state.screenshot).decode("ascii")
        logger.info(f"🧠 Asking oracle for help ({reason})")

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                temperature=0,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": f"{prompt}\n\nDOM (truncated if large):\n{state.dom}"},
                            {"type": "image_url", "image_url": {"url": f"data:image/png;base64,{image}"}},
                        ],
                    }
                ],
            )
        except OpenAIError as e:
            logger.error(f"❌ Oracle API error: {e}")
            return []

        if not response.choices:
            logger.error("❌ Oracle returned an empty response")
            return []
        text = (response.choices[0].message.content or "").strip()
        if not text:
            return []

        logger.debug(f"Oracle raw response: {text}")
        instructions = parse_instructions(text)
        logger.info(f"🧠 Oracle suggested {len(instructions)} instruction(s)")
        return instructions
