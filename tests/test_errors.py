import click

from agentstart.errors import (
    AgentStartError,
    AmbiguousError,
    AmbiguousShortNameError,
    NotFoundError,
    QueryTooShortError,
    format_name_list,
)


def test_errors_are_click_exceptions():
    assert issubclass(AgentStartError, click.ClickException)
    assert NotFoundError("agents", "x").exit_code == 1


def test_name_list_truncates_past_cap():
    names = [f"role-{i:02d}" for i in range(25)]
    text = format_name_list(names)

    assert text.startswith("role-00, role-01")
    assert "role-19" in text and "role-20" not in text
    assert text.endswith("(showing 20 of 25)")


def test_ambiguous_message_enumerates_names():
    err = AmbiguousError("tasks", "debug", ["golang/debug", "review/debug"])
    assert str(err) == "ambiguous task 'debug' matches: golang/debug, review/debug"


def test_ambiguous_short_name_sorts_and_suggests_full_name():
    err = AmbiguousShortNameError("roles", "code", ["python/review/code", "golang/review/code"])

    assert isinstance(err, AmbiguousError)
    assert err.names == ["golang/review/code", "python/review/code"]
    assert "golang/review/code, python/review/code" in str(err)
    assert err.hint == "Use the full name, e.g. golang/review/code"


def test_not_found_names_query_and_category():
    assert str(NotFoundError("contexts", "golang")) == "context 'golang' not found"


def test_formatted_message_includes_hint():
    text = QueryTooShortError("ab", 3).formatted_message
    assert "'ab' is too short" in text
    assert "💡" in text
