"""
LivePing event bot - Playwright + OpenAI ticket purchasing bot

Flow: navigate -> login -> seat selection -> checkout. After every step the
page is checked against the expected workflow; when it drifts (unexpected URL
or a captcha) the LLM oracle is asked for corrective clicks/typing.

Setup:
    pip install -e .
    playwright install chromium

Run:
    EVENT_URL=... LOGIN_EMAIL=... LOGIN_PASSWORD=... python event_bot.py

Exit codes: 0 bought, 1 failed, 3 start time not reached yet.
"""

import asyncio
import logging
import os
import sys

from dotenv import load_dotenv

from liveping.core import main

if __name__ == "__main__":
    # .env values never override variables already set by the scheduler
    load_dotenv()
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    sys.exit(asyncio.run(main()))
