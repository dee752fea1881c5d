"""Site strategies: candidate selectors and waits per workflow step"""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class LoginStrategy:
    login_buttons: Tuple[str, ...]
    email_inputs: Tuple[str, ...]
    submit_buttons: Tuple[str, ...]
    password_input: str = 'input[type="password"]'
    probe_timeout_ms: int = 2000
    password_timeout_ms: int = 5000
    form_wait_ms: int = 1000
    settle_ms: int = 3000


@dataclass(frozen=True)
class SelectionStrategy:
    seats: Tuple[str, ...]
    booking_buttons: Tuple[str, ...]
    seat_timeout_ms: int = 3000
    booking_timeout_ms: int = 2000
    settle_ms: int = 1000


@dataclass(frozen=True)
class CheckoutStrategy:
    checkout_buttons: Tuple[str, ...]
    confirmation_patterns: Tuple[str, ...]
    probe_timeout_ms: int = 3000
    settle_ms: int = 2000


@dataclass(frozen=True)
class SiteStrategy:
    """Everything the step executors need for one site"""
    name: str
    login: LoginStrategy
    selection: SelectionStrategy
    checkout: CheckoutStrategy


GENERIC = SiteStrategy(
    name="generic",
    login=LoginStrategy(
        login_buttons=(
            'a:has-text("Login")',
            'a:has-text("Sign in")',
            'a:has-text("Log in")',
            'button:has-text("Login")',
            'button:has-text("Sign in")',
            '[href*="login"]',
            '[href*="signin"]',
            "#login",
            ".login",
        ),
        email_inputs=(
            'input[type="email"]',
            'input[name="email"]',
            'input[name="username"]',
            'input[placeholder*="email" i]',
            "#email",
            "#username",
        ),
        submit_buttons=(
            'button[type="submit"]',
            'button:has-text("Login")',
            'button:has-text("Sign in")',
            'button:has-text("Log in")',
            'input[type="submit"]',
        ),
    ),
    selection=SelectionStrategy(
        seats=(
            ".seat.available",
            ".seat:not(.occupied)",
            "button.seat:not([disabled])",
            '[class*="seat"]:not([class*="occupied"]):not([disabled])',
            'button:has-text("Select")',
            'button:has-text("Choose")',
            ".available-seat",
        ),
        booking_buttons=(
            'button:has-text("Book")',
            'button:has-text("Reserve")',
            'button:has-text("Buy")',
            'a:has-text("Book")',
            'a:has-text("Reserve")',
        ),
    ),
    checkout=CheckoutStrategy(
        checkout_buttons=(
            'button:has-text("Checkout")',
            'button:has-text("Proceed")',
            'button:has-text("Continue")',
            'button:has-text("Confirm")',
            'button:has-text("Purchase")',
            'button:has-text("Buy")',
            'a:has-text("Checkout")',
            'a:has-text("Proceed")',
            '[href*="checkout"]',
            "#checkout",
            ".checkout-button",
        ),
        confirmation_patterns=("Success", "Confirmed", "Complete", "Thank you", "Order placed"),
    ),
)

TIXCRAFT = SiteStrategy(
    name="tixcraft",
    login=LoginStrategy(
        login_buttons=(
            'a:has-text("登入")',
            'a:has-text("Sign in")',
            'button:has-text("登入")',
            'button:has-text("Login")',
            "#loginBtn",
            '[href*="login"]',
        ),
        email_inputs=(
            "input#uid",
            'input[name="uid"]',
            'input[type="email"]',
            'input[name="email"]',
        ),
        submit_buttons=(
            "button#btnLogin",
            'button:has-text("登入")',
            'button:has-text("Login")',
            'input[type="submit"]',
        ),
    ),
    selection=SelectionStrategy(
        seats=(
            ".zone .area-list button:not([disabled])",
            'button:has-text("立即購票")',
            'a:has-text("立即購票")',
            ".seat.available",
        ),
        booking_buttons=(
            'button:has-text("立即購票")',
            'a:has-text("立即購票")',
        ),
    ),
    checkout=CheckoutStrategy(
        checkout_buttons=(
            'button:has-text("同意")',
            'button:has-text("下一步")',
            'button:has-text("確認訂單")',
            'button:has-text("結帳")',
            'button:has-text("付款")',
        ),
        confirmation_patterns=("成功", "完成", "已確認", "Thank you", "Order placed"),
    ),
)

# site identifier (matched as a substring of the lowercased target) -> bundle
REGISTRY: Tuple[Tuple[str, SiteStrategy], ...] = (
    ("tixcraft", TIXCRAFT),
)


def select_strategy(target: str) -> SiteStrategy:
    normalized = target.lower()
    for identifier, strategy in REGISTRY:
        if identifier in normalized:
            return strategy
    return GENERIC
