import sys
import types
from types import SimpleNamespace
from typing import Any

import pytest

from quillcheck.suggest.base import AnalysisRequest, Category, Severity
from quillcheck.suggest.composite import CompositeProvider
from quillcheck.suggest.languagetool import LanguageToolProvider, category_for
from quillcheck.utils.errors import ProviderError


def _match(**kwargs: Any) -> SimpleNamespace:
    base = {
        "offset": 0,
        "errorLength": 0,
        "ruleId": "SOME_RULE",
        "message": "",
        "replacements": [],
        "ruleIssueType": "grammar",
        "category": "GRAMMAR",
    }
    base.update(kwargs)
    return SimpleNamespace(**base)


class FakeTool:
    def __init__(self, matches: list[SimpleNamespace] | None = None, error: Exception | None = None):
        self.matches = matches or []
        self.error = error
        self.checked: list[str] = []
        self.closed = False

    def check(self, text: str) -> list[SimpleNamespace]:
        self.checked.append(text)
        if self.error is not None:
            raise self.error
        return self.matches

    def close(self) -> None:
        self.closed = True


def test_matches_become_issues() -> None:
    tool = FakeTool(
        [
            _match(
                offset=4,
                errorLength=3,
                ruleId="MORFOLOGIK_RULE_EN_US",
                message="Possible spelling mistake found.",
                replacements=["the", "tea"],
                ruleIssueType="misspelling",
                category="TYPOS",
            )
        ]
    )
    provider = LanguageToolProvider(tool=tool)
    result = provider.analyze(AnalysisRequest.of("Fix teh quick brun fox."))
    issue = result.issues[0]
    assert (issue.start, issue.end) == (4, 7)
    assert issue.rule_id == "MORFOLOGIK_RULE_EN_US"
    assert issue.provider_name == "LanguageTool"
    assert issue.category is Category.SPELLING
    assert issue.severity is Severity.ERROR
    assert issue.replacements == ("the", "tea")
    assert issue.metadata["lt_category"] == "TYPOS"
    assert tool.checked == ["Fix teh quick brun fox."]


def test_offsets_are_clamped() -> None:
    tool = FakeTool([_match(offset=20, errorLength=10), _match(offset=6, errorLength=50)])
    result = LanguageToolProvider(tool=tool).analyze(AnalysisRequest.of("12345678"))
    assert [(i.start, i.end) for i in result.issues] == [(8, 8), (6, 8)]


def test_missing_rule_id_uses_placeholder() -> None:
    tool = FakeTool([_match(offset=0, errorLength=1, ruleId=None)])
    result = LanguageToolProvider(tool=tool).analyze(AnalysisRequest.of("abc"))
    assert result.issues[0].rule_id == "UNKNOWN_RULE"


def test_request_filters_are_applied() -> None:
    tool = FakeTool(
        [
            _match(offset=0, errorLength=5, ruleId="SPELL", ruleIssueType="misspelling"),
            _match(offset=6, errorLength=3, ruleId="AGREEMENT"),
            _match(offset=10, errorLength=4, ruleId="WORDY", ruleIssueType="style"),
        ]
    )
    provider = LanguageToolProvider(tool=tool)
    text = "Quill are very good"
    assert len(provider.analyze(AnalysisRequest.of(text)).issues) == 3
    req = AnalysisRequest(text=text, user_dictionary=frozenset({"quill"}))
    assert [i.rule_id for i in provider.analyze(req).issues] == ["AGREEMENT", "WORDY"]
    req = AnalysisRequest(text=text, disabled_rule_ids=frozenset({"AGREEMENT"}))
    assert [i.rule_id for i in provider.analyze(req).issues] == ["SPELL", "WORDY"]
    req = AnalysisRequest(text=text, enabled_categories=frozenset({"STYLE"}))
    assert [i.rule_id for i in provider.analyze(req).issues] == ["WORDY"]


def test_check_failure_raises_provider_error() -> None:
    provider = LanguageToolProvider(tool=FakeTool(error=OSError("server gone")))
    with pytest.raises(ProviderError) as excinfo:
        provider.analyze(AnalysisRequest.of("text"))
    assert isinstance(excinfo.value.cause, OSError)
    assert excinfo.value.provider == "languagetool"


def test_check_failure_is_absorbed_by_composite() -> None:
    provider = LanguageToolProvider(tool=FakeTool(error=OSError("server gone")))
    result = CompositeProvider([provider]).analyze(AnalysisRequest.of("text"))
    assert result.issues == ()


def test_missing_library_optional(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "language_tool_python", None)
    provider = LanguageToolProvider()
    result = provider.analyze(AnalysisRequest.of("teh"))
    assert result.issues == ()
    assert provider.analyze(AnalysisRequest.of("teh")).issues == ()


def test_missing_library_required(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setitem(sys.modules, "language_tool_python", None)
    provider = LanguageToolProvider(require=True)
    with pytest.raises(ProviderError):
        provider.analyze(AnalysisRequest.of("teh"))


def test_lazy_tool_creation(monkeypatch: pytest.MonkeyPatch) -> None:
    created: list[str] = []

    class FakeLanguageTool(FakeTool):
        def __init__(self, language: str) -> None:
            super().__init__([_match(offset=0, errorLength=3)])
            created.append(language)

    module = types.ModuleType("language_tool_python")
    module.LanguageTool = FakeLanguageTool  # type: ignore[attr-defined]
    module.__version__ = "2.8"  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "language_tool_python", module)

    provider = LanguageToolProvider("en-GB")
    assert created == []
    result = provider.analyze(AnalysisRequest.of("teh cat"))
    provider.analyze(AnalysisRequest.of("teh cat"))
    assert created == ["en-GB"]
    assert result.provider_version == "languagetool/2.8"
    assert len(result.issues) == 1


def test_tool_start_failure(monkeypatch: pytest.MonkeyPatch) -> None:
    def broken(language: str) -> None:
        raise RuntimeError("java not found")

    module = types.ModuleType("language_tool_python")
    module.LanguageTool = broken  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "language_tool_python", module)
    with pytest.raises(ProviderError):
        LanguageToolProvider().analyze(AnalysisRequest.of("text"))


def test_default_language_and_close() -> None:
    tool = FakeTool()
    provider = LanguageToolProvider(" ", tool=tool)
    assert provider.language == "en-US"
    provider.close()
    assert tool.closed is True


def test_category_mapping() -> None:
    assert category_for("misspelling") is Category.SPELLING
    assert category_for("whitespace") is Category.PUNCTUATION
    assert category_for("style") is Category.STYLE
    assert category_for(None, "TYPOS") is Category.SPELLING
    assert category_for("other", "PUNCTUATION") is Category.PUNCTUATION
    assert category_for("grammar", "GRAMMAR") is Category.GRAMMAR
    assert category_for(None, None) is Category.GRAMMAR
