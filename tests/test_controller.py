from liveping.controller import Controller
from liveping.models import Instruction
from tests.conftest import FakePage


async def test_empty_batch_executes_nothing():
    page = FakePage()
    assert await Controller(page).execute([]) is False
    assert page.clicks == [] and page.fills == []


async def test_instructions_run_in_order():
    page = FakePage(visible={"#qty", "#next"})
    executed = await Controller(page).execute(
        [Instruction("type", "#qty", "2"), Instruction("click", "#next")]
    )
    assert executed
    assert page.fills == [("#qty", "2")]
    assert page.clicks == ["#next"]


async def test_failure_does_not_abort_batch():
    page = FakePage(visible={"#gone", "#next"})
    page.broken = {"#gone"}
    executed = await Controller(page).execute(
        [Instruction("click", "#gone"), Instruction("click", "#next")]
    )
    assert executed
    assert page.clicks == ["#next"]


async def test_all_failing_reports_nothing_executed():
    page = FakePage(visible={"#gone"})
    page.broken = {"#gone"}
    assert await Controller(page).execute([Instruction("click", "#gone")]) is False


async def test_only_visible_matches_are_targeted():
    page = FakePage(visible={"#shown"})
    executed = await Controller(page).execute(
        [Instruction("click", "#hidden"), Instruction("type", "#hidden", "x"), Instruction("click", "#shown")]
    )
    assert executed
    assert page.clicks == ["#shown"]
    assert page.fills == []


async def test_malformed_instruction_is_skipped():
    page = FakePage(visible={"#a\n#b", "#x"})
    executed = await Controller(page).execute(
        [Instruction("click", "#a\n#b"), Instruction("type", "#x", "v" * 600)]
    )
    assert executed is False
    assert page.clicks == [] and page.fills == []
