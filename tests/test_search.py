import re

import pytest

from agentstart.assets.search import (
    Candidate,
    compile_patterns,
    parse_search_patterns,
    parse_search_terms,
    score_candidate,
    score_candidates,
    search_index,
    validate_query,
)
from agentstart.errors import InvalidPatternError, QueryTooShortError

from conftest import make_index


def test_parse_splits_on_commas_and_whitespace():
    assert parse_search_patterns(" golang, review  code,,") == ["golang", "review", "code"]


def test_parse_dedupes_case_insensitively_keeping_first_spelling():
    assert parse_search_patterns(r"Go go \S+ GO") == ["Go", r"\S+"]
    assert parse_search_terms("Go REVIEW") == ["go", "review"]


@pytest.mark.parametrize("query", ["", "a", "ab", "a b", "a,b"])
def test_short_queries_rejected(query):
    with pytest.raises(QueryTooShortError):
        validate_query(query)


def test_length_gate_counts_all_terms():
    assert validate_query("a bc") == ["a", "bc"]


def test_tags_only_query_allowed():
    assert validate_query("", tags=["golang"]) == []


def test_invalid_pattern():
    with pytest.raises(InvalidPatternError) as exc:
        compile_patterns(["ok", "[unclosed"])
    assert exc.value.term == "[unclosed"
    assert isinstance(exc.value.__cause__, re.error)


def test_patterns_are_case_insensitive_and_support_anchors():
    patterns = compile_patterns(["^GO"])
    assert score_candidate(Candidate("golang/review"), patterns) == (3, 1)
    assert score_candidate(Candidate("review/golang"), patterns) == (0, 0)


def test_score_weights():
    candidate = Candidate("go-reviewer", "Reviews Go code", ("golang", "review"))
    patterns = compile_patterns(["go", "review"])

    # go: name 3 + description 1 + tag 1; review: name 3 + description 1 + tag 1
    assert score_candidate(candidate, patterns) == (10, 2)
    assert score_candidate(candidate, patterns, name_only=True) == (6, 2)


def test_zero_scores_are_excluded_and_ties_sort_by_name():
    candidates = [Candidate("zeta-go"), Candidate("alpha-go"), Candidate("python"), Candidate("go", "go")]
    results = score_candidates(candidates, compile_patterns(["go"]))

    assert [(r.name, r.score) for r in results] == [("go", 4), ("alpha-go", 3), ("zeta-go", 3)]


def test_require_all_gate():
    candidates = [Candidate("golang-review"), Candidate("golang-debug")]
    patterns = compile_patterns(["golang", "review"])

    assert [r.name for r in score_candidates(candidates, patterns)] == ["golang-review", "golang-debug"]
    assert [r.name for r in score_candidates(candidates, patterns, require_all=True)] == ["golang-review"]


@pytest.fixture
def index():
    return make_index(
        agents={"claude": {"description": "Anthropic Claude", "tags": ["anthropic"]}},
        roles={
            "golang/assistant": {"description": "Go helper", "tags": ["golang"]},
            "golang/review/code": {"description": "Go code review", "tags": ["golang", "review"]},
        },
        tasks={"golang/review/pr": {"description": "Review a pull request", "tags": ["golang", "review"]}},
    )


def test_search_index_requires_every_term(index):
    results = search_index(index, "golang review")
    assert [(r.category, r.name) for r in results] == [
        ("roles", "golang/review/code"),
        ("tasks", "golang/review/pr"),
    ]


def test_search_index_orders_by_score_then_category(index):
    results = search_index(index, "golang")
    assert [r.name for r in results] == ["golang/assistant", "golang/review/code", "golang/review/pr"]
    assert len({r.score for r in results}) == 1


def test_search_index_tags_only(index):
    results = search_index(index, "", tags=["anthropic", "REVIEW"])
    assert [(r.name, r.score) for r in results] == [
        ("claude", 1),
        ("golang/review/code", 1),
        ("golang/review/pr", 1),
    ]


def test_search_index_tag_filter_combines_with_terms(index):
    assert [r.name for r in search_index(index, "golang", tags=["review"])] == [
        "golang/review/code",
        "golang/review/pr",
    ]


def test_search_index_without_index():
    assert search_index(None, "golang") == []
