from __future__ import annotations

import pytest

from code_prompt.exceptions import PatternCompileError
from code_prompt.patterns import PatternSet, compile_pattern, expand_braces, split_patterns


@pytest.mark.unit
def test_split_patterns_keeps_commas_inside_braces() -> None:
    assert split_patterns("*.png,*.ico,lib/{generated,l10n}*") == [
        "*.png",
        "*.ico",
        "lib/{generated,l10n}*",
    ]


@pytest.mark.unit
def test_split_patterns_tolerates_unbalanced_closing_brace() -> None:
    assert split_patterns("a,b}") == ["a", "b}"]


@pytest.mark.unit
def test_split_patterns_stray_closing_brace_does_not_swallow_later_commas() -> None:
    assert split_patterns("}a,b") == ["}a", "b"]


@pytest.mark.unit
def test_split_patterns_unclosed_brace_keeps_rest_together() -> None:
    assert split_patterns("x,{a,b") == ["x", "{a,b"]


@pytest.mark.unit
def test_split_patterns_drops_empty_entries() -> None:
    assert split_patterns("") == []
    assert split_patterns(",,*.rs,,") == ["*.rs"]


@pytest.mark.unit
def test_expand_braces_nested() -> None:
    assert expand_braces("lib/{gen,l10n/{a,b}}*") == ["lib/gen*", "lib/l10n/a*", "lib/l10n/b*"]


@pytest.mark.unit
def test_expand_braces_keeps_unbalanced_pattern_literal() -> None:
    assert expand_braces("lib/{a,b") == ["lib/{a,b"]
    assert expand_braces("*.rs") == ["*.rs"]


@pytest.mark.unit
def test_compile_pattern_matches_basename_at_any_depth() -> None:
    pattern = compile_pattern("*.png")

    assert pattern.matches("logo.png")
    assert pattern.matches("assets/img/logo.png")
    assert not pattern.matches("logo.png.txt")


@pytest.mark.unit
def test_compile_pattern_with_braces_matches_each_alternative() -> None:
    pattern = compile_pattern("lib/{generated,l10n}*")

    assert pattern.matches("lib/generated_api.dart")
    assert pattern.matches("lib/l10n/intl_en.arb")
    assert not pattern.matches("lib/main.dart")


@pytest.mark.unit
def test_compile_pattern_regex_prefix() -> None:
    pattern = compile_pattern(r"regex:^src/.*_test\.go$")

    assert pattern.matches("src/api/handler_test.go")
    assert not pattern.matches("src/api/handler.go")


@pytest.mark.unit
def test_compile_pattern_invalid_regex_raises() -> None:
    with pytest.raises(PatternCompileError) as exc_info:
        compile_pattern("regex:(unclosed")

    assert exc_info.value.pattern == "regex:(unclosed"


@pytest.mark.unit
def test_compile_pattern_that_never_matches_raises() -> None:
    with pytest.raises(PatternCompileError):
        compile_pattern("#comment")


@pytest.mark.unit
def test_build_aborts_on_first_invalid_pattern() -> None:
    with pytest.raises(PatternCompileError):
        PatternSet.build(include="*.rs,regex:[", exclude="*.png")


@pytest.mark.unit
def test_exclude_wins_over_include() -> None:
    patterns = PatternSet.build(include="important.log", exclude="*.log")

    assert patterns.decide("important.log") is False


@pytest.mark.unit
def test_no_patterns_accepts_everything() -> None:
    patterns = PatternSet.build()

    assert not patterns.has_patterns
    assert patterns.decide("src/main.rs") is True
    assert patterns.decide("assets/logo.png") is True


@pytest.mark.unit
def test_exclude_only_accepts_unmatched_paths() -> None:
    patterns = PatternSet.build(exclude="*.tmp")

    assert patterns.decide("x.tmp") is False
    assert patterns.decide("x.md") is True


@pytest.mark.unit
def test_include_configured_rejects_unmatched_paths() -> None:
    patterns = PatternSet.build(include="*.rs")

    assert patterns.decide("src/main.rs") is True
    assert patterns.decide("README.md") is False


@pytest.mark.unit
def test_explicit_default_applies_when_nothing_matches() -> None:
    patterns = PatternSet.build(include="*.rs")

    assert patterns.decide("README.md", default_include=True) is True
    assert PatternSet.build().decide("README.md", default_include=False) is False


@pytest.mark.unit
def test_whitespace_around_patterns_is_ignored() -> None:
    patterns = PatternSet.build(exclude="*.png, *.ico ")

    assert [p.source for p in patterns.exclude] == ["*.png", "*.ico"]


@pytest.mark.unit
def test_leading_bang_moves_pattern_to_other_list() -> None:
    patterns = PatternSet.build(include="*.rs,!target/**")

    assert [p.source for p in patterns.include] == ["*.rs"]
    assert [p.source for p in patterns.exclude] == ["target/**"]
    assert patterns.decide("target/debug/build.rs") is False


@pytest.mark.unit
def test_anchored_pattern_only_matches_from_root() -> None:
    patterns = PatternSet.build(exclude="/build")

    assert patterns.decide("build/out.txt") is False
    assert patterns.decide("src/build/out.txt") is True


@pytest.mark.unit
def test_prunes_directories_matched_by_exclude_globs() -> None:
    patterns = PatternSet.build(exclude="node_modules,regex:^src/")

    assert patterns.prunes("web/node_modules")
    assert not patterns.prunes("web/src")
    assert not patterns.prunes("src")


@pytest.mark.unit
def test_match_reports_only_explicit_pattern_verdicts() -> None:
    patterns = PatternSet.build(include="*.rs", exclude="gen/*")

    assert patterns.match("src/main.rs") is True
    assert patterns.match("gen/api.rs") is False
    assert patterns.match("README.md") is None
