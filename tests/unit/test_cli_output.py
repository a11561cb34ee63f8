"""
Unit tests for the terminal prompts and summaries of the CLI.
"""

import io

import pytest
from rich.console import Console

from src.cli import main as cli
from src.delivery import ReviewPrompt, RunState, RunSummary


@pytest.fixture
def output(monkeypatch):
    """Capture everything the CLI console prints."""
    buffer = io.StringIO()
    monkeypatch.setattr(cli, "console", Console(file=buffer, width=120, color_system=None))
    return buffer


@pytest.fixture
def typed(monkeypatch):
    """Feed lines to console.input."""

    def _feed(*lines):
        remaining = iter(lines)
        monkeypatch.setattr("builtins.input", lambda *args: next(remaining))

    return _feed


def make_prompt(responses):
    return ReviewPrompt(
        card_id="card-1",
        question="Capital of [France]?",
        answer="Paris",
        difficult=False,
        starred=False,
        responses=responses,
        number=1,
    )


class TestAskUser:
    """Presenting a card and reading a response."""

    @pytest.mark.parametrize(
        "responses,shown",
        [(("y", "n"), "[y/n]"), (("0", "1", "2"), "[0/1/2]"), (("good", "bad"), "[good/bad]")],
    )
    def test_choices_are_shown(self, output, typed, responses, shown):
        typed("", responses[0])

        assert cli.ask_user(make_prompt(responses)) == responses[0]
        assert shown in output.getvalue()

    def test_question_text_kept_verbatim(self, output, typed):
        typed("", "y")
        cli.ask_user(make_prompt(("y", "n")))

        assert "Capital of [France]?" in output.getvalue()

    def test_invalid_response_asked_again(self, output, typed):
        typed("", "maybe", "n")

        assert cli.ask_user(make_prompt(("y", "n"))) == "n"
        assert "Invalid option" in output.getvalue()

    def test_end_of_input_cancels(self, output, monkeypatch):
        def closed(*args):
            raise EOFError

        monkeypatch.setattr("builtins.input", closed)
        with pytest.raises(cli.CancelledError):
            cli.ask_user(make_prompt(("y", "n")))


class TestDisplaySummary:
    """End-of-run messages."""

    def test_completed(self, output):
        cli._display_summary(RunSummary(RunState.COMPLETED, 3, 5, resumed=True))

        assert "Run complete" in output.getvalue()
        assert "Cards reviewed in this run: 5" in output.getvalue()

    def test_resumed_run_already_at_limit(self, output):
        cli._display_summary(RunSummary(RunState.COMPLETED, 0, 4, resumed=True))

        text = output.getvalue()
        assert "4 cards were already reviewed" in text
        assert "--count" in text

    def test_nothing_to_review(self, output):
        cli._display_summary(RunSummary(RunState.COMPLETED, 0, 0, resumed=False))

        assert "Nothing to review" in output.getvalue()

    def test_aborted(self, output):
        cli._display_summary(RunSummary(RunState.ABORTED, 2, 2, resumed=False))

        assert "Stopped after 2 cards" in output.getvalue()
