"""Build the configured provider stack.

Providers are registered explicitly from configuration at startup; nothing is
discovered dynamically.  Heavy optional dependencies (LanguageTool) are only
imported when their provider is enabled.  :func:`build_analyzer` wires the
provider into a debounced analyzer using the scheduler settings.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor

from quillcheck.config import ConfigModel
from quillcheck.schedule.debounce import DebouncedAnalyzer

from .base import AnalysisRequest, AnalysisResult, SuggestionProvider
from .composite import CompositeProvider

__all__ = ["build_providers", "build_provider", "build_analyzer"]


def build_providers(cfg: ConfigModel) -> list[SuggestionProvider]:
    """Instantiate enabled providers in ``cfg.providers.order``."""

    settings = cfg.providers
    providers: list[SuggestionProvider] = []
    for name in settings.order:
        if name == "typos" and settings.typos.enabled:
            from .typos import CommonTyposProvider

            providers.append(CommonTyposProvider(extra=settings.typos.extra))
        elif name == "rules" and settings.rules.enabled:
            from .rules import get_provider as rules_provider

            providers.append(
                rules_provider(
                    settings.rules.dictionary_path,
                    long_sentence_words=settings.rules.long_sentence_words,
                    passive_voice=settings.rules.passive_voice,
                )
            )
        elif name == "languagetool" and settings.languagetool.enabled:
            from .languagetool import LanguageToolProvider

            providers.append(
                LanguageToolProvider(
                    settings.languagetool.language or cfg.locale,
                    require=settings.languagetool.require,
                )
            )
    return providers


def build_provider(cfg: ConfigModel, *, executor: Executor | None = None) -> CompositeProvider:
    """Return a :class:`CompositeProvider` over every enabled provider."""

    return CompositeProvider(
        build_providers(cfg),
        executor=executor,
        concurrent_sync=cfg.aggregator.concurrent_sync,
    )


def build_analyzer(
    cfg: ConfigModel,
    sink: Callable[[AnalysisResult], None],
    *,
    executor: Executor | None = None,
) -> DebouncedAnalyzer:
    """Return a :class:`DebouncedAnalyzer` over :func:`build_provider`.

    Requests carry ``cfg.locale`` and cycles wait ``scheduler.debounce_ms``.
    """

    locale = cfg.locale

    def _request(text: str) -> AnalysisRequest:
        return AnalysisRequest(text=text, language=locale)

    return DebouncedAnalyzer(
        build_provider(cfg, executor=executor),
        sink,
        delay_ms=cfg.scheduler.debounce_ms,
        request_factory=_request,
        executor=executor,
    )
