"""LivePing event bot package

Modules:
- models: data models
- config: environment configuration and start-time gate
- perception: workflow allowlist and page-state classification
- strategies: per-site selector strategies
- steps: login / item-selection / checkout executors
- planner: oracle escalation (LLM) client
- controller: executes oracle instructions
- core: run controller
"""

from .config import BotConfig, ConfigurationError, start_time_passed
from .controller import Controller
from .core import EventBot, main, run
from .models import GuardReport, Instruction, PageState, RunOutcome, RunStatus, StepResult, StepStatus
from .perception import Perception, build_allowlist, matches_allowlist
from .planner import Planner, parse_instructions
from .strategies import SiteStrategy, select_strategy

__all__ = [
    "BotConfig",
    "ConfigurationError",
    "start_time_passed",
    "Controller",
    "EventBot",
    "main",
    "run",
    "GuardReport",
    "Instruction",
    "PageState",
    "RunOutcome",
    "RunStatus",
    "StepResult",
    "StepStatus",
    "Perception",
    "build_allowlist",
    "matches_allowlist",
    "Planner",
    "parse_instructions",
    "SiteStrategy",
    "select_strategy",
]
