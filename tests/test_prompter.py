import io

import pytest
from rich.console import Console
from rich.prompt import Prompt

from agentstart.errors import AmbiguousError, SelectionError
from agentstart.resolution.models import AssetMatch, AssetSource, Category
from agentstart.resolution.prompter import (
    InteractivePrompter,
    NonInteractivePrompter,
    make_prompter,
    parse_multi_selection,
    parse_selection,
)


def _matches(*names, source=AssetSource.INSTALLED, category=Category.ROLES):
    return [AssetMatch(name=n, category=category, source=source, score=3) for n in names]


class TtyInput(io.StringIO):
    def isatty(self):
        return True


# ----------------------------------------------------------------------
# parse_selection
# ----------------------------------------------------------------------
def test_selection_by_index():
    displayed = _matches("golang/debug", "review/debug")
    assert parse_selection("2\n", displayed).name == "review/debug"


def test_selection_by_exact_name_case_insensitive():
    displayed = _matches("go", "go-expert")
    assert parse_selection("GO", displayed).name == "go"


def test_selection_by_unique_substring():
    displayed = _matches("golang/debug", "review/debug")
    assert parse_selection("rev", displayed).name == "review/debug"


@pytest.mark.parametrize("raw", ["0", "3", "", "debug", "python", "\u00b2"])
def test_invalid_selection(raw):
    with pytest.raises(SelectionError):
        parse_selection(raw, _matches("golang/debug", "review/debug"))


# ----------------------------------------------------------------------
# parse_multi_selection
# ----------------------------------------------------------------------
@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1", ["a"]),
        ("3,1", ["c", "a"]),
        ("2-4", ["b", "c", "d"]),
        ("1-2, 2, 4", ["a", "b", "d"]),
        ("all", ["a", "b", "c", "d"]),
        ("  ", []),
    ],
)
def test_multi_selection(raw, expected):
    assert parse_multi_selection(raw, ["a", "b", "c", "d"]) == expected


@pytest.mark.parametrize("raw", ["5", "0", "3-2", "1-9", "x", "a-b", "\u00b2"])
def test_invalid_multi_selection(raw):
    with pytest.raises(SelectionError):
        parse_multi_selection(raw, ["a", "b", "c", "d"])


# ----------------------------------------------------------------------
# Prompters
# ----------------------------------------------------------------------
def test_non_interactive_select_raises_ambiguous():
    prompter = NonInteractivePrompter()
    with pytest.raises(AmbiguousError) as exc:
        prompter.select(_matches("b-role", "a-role"), Category.ROLES, "role")
    assert exc.value.names == ["b-role", "a-role"]
    assert "ambiguous role 'role'" in str(exc.value)


def test_non_interactive_never_confirms():
    with pytest.raises(SelectionError, match="--yes"):
        NonInteractivePrompter().confirm("Remove?")
    with pytest.raises(SelectionError, match="--yes"):
        NonInteractivePrompter().select_many(["a", "b"], Category.TASKS, "abc")


def test_interactive_select_truncates_display():
    out = io.StringIO()
    prompter = InteractivePrompter(
        console=Console(file=out, width=120), stdin=io.StringIO("3\n"), max_display=3
    )
    matches = _matches(*[f"role-{i:02d}" for i in range(1, 6)])

    assert prompter.select(matches, Category.ROLES, "role").name == "role-03"
    text = out.getvalue()
    assert "Found 5 roles matching 'role'" in text
    assert "Showing 3 of 5 matches" in text
    assert "role-04" not in text


def test_interactive_select_cannot_pick_hidden_entry():
    prompter = InteractivePrompter(
        console=Console(file=io.StringIO()), stdin=io.StringIO("5\n"), max_display=3
    )
    with pytest.raises(SelectionError):
        prompter.select(_matches("a1", "a2", "a3", "a4", "a5"), Category.ROLES, "a")


def test_interactive_closed_input():
    prompter = InteractivePrompter(console=Console(file=io.StringIO()), stdin=io.StringIO(""))
    with pytest.raises(SelectionError, match="input closed"):
        prompter.select(_matches("x1", "x2"), Category.AGENTS, "x")


def test_interactive_mixed_categories_show_category():
    out = io.StringIO()
    prompter = InteractivePrompter(console=Console(file=out, width=120), stdin=io.StringIO("1\n"))
    matches = _matches("golang", source=AssetSource.REGISTRY, category=Category.ROLES)
    matches += _matches("golang-ctx", source=AssetSource.REGISTRY, category=Category.CONTEXTS)

    prompter.select(matches, "assets", "golang")
    text = out.getvalue()
    assert "Found 2 assets matching 'golang'" in text
    assert "context, registry" in text


def test_interactive_confirm_and_select_many():
    prompter = InteractivePrompter(console=Console(file=io.StringIO()), stdin=io.StringIO("1,3\ny\n"))

    assert prompter.select_many(["a", "b", "c"], Category.TASKS, "abc") == ["a", "c"]
    assert prompter.confirm("Remove?") is True


def test_make_prompter_checks_terminal():
    assert not make_prompter(stdin=io.StringIO()).interactive
    assert make_prompter(stdin=TtyInput()).interactive
    assert not make_prompter(stdin=TtyInput(), no_input=True).interactive


def test_interactive_input_goes_through_rich_prompt(monkeypatch):
    stdin = io.StringIO()
    asked = []

    def fake_ask(prompt, **kwargs):
        asked.append((prompt, kwargs["stream"]))
        return "2"

    monkeypatch.setattr(Prompt, "ask", fake_ask)
    prompter = InteractivePrompter(console=Console(file=io.StringIO()), stdin=stdin)

    assert prompter.select(_matches("a1", "a2"), Category.ROLES, "a1").name == "a2"
    assert asked == [("Select (1-2)", stdin)]


def test_interactive_blank_line_is_no_selection():
    prompter = InteractivePrompter(console=Console(file=io.StringIO()), stdin=io.StringIO("\n"))
    with pytest.raises(SelectionError, match="no selection made"):
        prompter.select(_matches("x1", "x2"), Category.AGENTS, "x")


def test_interactive_confirm_asks_again_then_defaults_to_no():
    out = io.StringIO()
    prompter = InteractivePrompter(console=Console(file=out), stdin=io.StringIO("maybe\ny\n"))
    assert prompter.confirm("Remove?") is True
    assert "Please enter Y or N" in out.getvalue()

    closed = InteractivePrompter(console=Console(file=io.StringIO()), stdin=io.StringIO(""))
    assert closed.confirm("Remove?") is False
