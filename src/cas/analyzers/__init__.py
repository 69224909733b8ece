# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Analyzer package for the code architecture scanner."""

from cas.analyzers.javascript import JavaScriptAnalyzer, score_complexity

__all__ = ["JavaScriptAnalyzer", "score_complexity"]
