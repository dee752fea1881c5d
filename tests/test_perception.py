import pytest

from liveping.perception import (
    CHALLENGE_SELECTORS,
    REASON_CHALLENGE,
    REASON_OFF_WORKFLOW,
    WORKFLOW_SEGMENTS,
    Perception,
    build_allowlist,
    capture_page_state,
    is_visible_within,
    matches_allowlist,
)
from tests.conftest import FakePage

TARGET = "https://example.com/event"


def test_allowlist_contains_target_and_origin():
    allowlist = build_allowlist(TARGET)
    assert allowlist[0] == TARGET
    assert allowlist[1] == "https://example.com"
    assert "https://example.com/checkout" in allowlist
    for segment in WORKFLOW_SEGMENTS:
        assert segment in allowlist


def test_allowlist_is_deduplicated():
    allowlist = build_allowlist("https://example.com")
    assert len(allowlist) == len(set(allowlist))
    assert allowlist.count("https://example.com") == 1


def test_allowlist_for_unparsable_target_keeps_target_and_segments():
    allowlist = build_allowlist("not a url")
    assert allowlist == ("not a url",) + WORKFLOW_SEGMENTS


def test_allowlist_origin_drops_credentials_and_keeps_port():
    allowlist = build_allowlist("https://user:pw@Tickets.Example.com:8443/show")
    assert "https://tickets.example.com:8443" in allowlist


@pytest.mark.parametrize(
    "target",
    [TARGET, "https://Tixcraft.com/activity/detail/24_abc", "http://localhost:3000/", "https://example.com"],
)
def test_target_is_on_workflow(target):
    assert matches_allowlist(target, build_allowlist(target))


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://example.com/event?id=3", True),
        ("https://EXAMPLE.com/Event", True),
        ("https://example.com/anything", True),  # origin entry covers the whole site
        ("https://sso.other.com/login?next=/event", True),  # bare segment
        ("https://pay.other.com/payment/step1", True),
        ("https://ads.other.com/promo", False),
        ("https://example.com.evil.io/event", False),
    ],
)
def test_matches_allowlist(url, expected):
    assert matches_allowlist(url, build_allowlist(TARGET)) is expected


def test_literal_entries_and_unparsable_urls_use_prefix_matching():
    allowlist = ("about:", "/checkout")
    assert matches_allowlist("about:blank", allowlist)
    assert matches_allowlist("https://[::1/broken", ("https://[::1",))
    assert not matches_allowlist("chrome-error://chromewebdata/", allowlist)


async def test_is_visible_within_zero_budget_checks_once():
    page = FakePage(visible={"#a"})
    assert await is_visible_within(page.locator("#a"), 0)
    assert not await is_visible_within(page.locator("#b"), 0)


async def test_is_visible_within_polls_until_visible():
    page = FakePage()
    locator = page.locator("#late")
    calls = []

    async def appear():
        calls.append(1)
        return len(calls) >= 3

    locator.is_visible = appear
    assert await is_visible_within(locator, 1000)
    assert len(calls) == 3


async def test_is_visible_within_treats_driver_error_as_hidden():
    page = FakePage()
    page.errors.add("#x")
    assert not await is_visible_within(page.locator("#x"), 0)


async def test_detect_challenge_absent():
    perception = Perception(build_allowlist(TARGET), challenge_timeout_ms=0)
    assert not await perception.detect_challenge(FakePage(url=TARGET))


@pytest.mark.parametrize("selector", CHALLENGE_SELECTORS)
async def test_detect_challenge_present(selector):
    perception = Perception(build_allowlist(TARGET), challenge_timeout_ms=0)
    assert await perception.detect_challenge(FakePage(url=TARGET, visible={selector}))


async def test_assess_reports_both_reasons_independently():
    perception = Perception(build_allowlist(TARGET), challenge_timeout_ms=0)

    assert await perception.assess(FakePage(url=TARGET)) == []
    assert await perception.assess(FakePage(url="https://ads.other.com/")) == [REASON_OFF_WORKFLOW]
    assert await perception.assess(FakePage(url=TARGET, visible={"div.g-recaptcha"})) == [REASON_CHALLENGE]
    assert await perception.assess(FakePage(url="https://ads.other.com/", visible={"div.g-recaptcha"})) == [
        REASON_OFF_WORKFLOW,
        REASON_CHALLENGE,
    ]


async def test_capture_page_state_truncates_dom():
    page = FakePage(url=TARGET, html="x" * 150_000)
    state = await capture_page_state(page)
    assert state.url == TARGET
    assert len(state.dom) == 100_000
    assert state.screenshot.startswith(b"\x89PNG")
