# Copyright 2026 Zsolt Kulcsar and Contributors. Licensed under the EUPL-1.2 or later
"""Architectural layer classification as an ordered rule table.

Rules are evaluated in order and the first match wins:

1. content rules: an exported name carries a role keyword and the path
   carries a folder of the same role;
2. path conventions: feature-sliced design, then domain-driven design, then
   atomic design, then generic role folders;
3. name rules: the display name alone carries a role keyword;
4. size rule: large or complex modules are business logic;
5. the default label.
"""

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from functools import partial
from pathlib import PurePosixPath

from cas.model import ModuleRecord

logger = logging.getLogger(__name__)

API_LAYER = "API Layer"
BUSINESS_LOGIC = "Business Logic"
DATA_LAYER = "Data Layer"
UI_COMPONENTS = "UI Components"
UTILITIES = "Utilities"
CONFIGURATION = "Configuration"
INFRASTRUCTURE = "Infrastructure"
UNKNOWN = "Unknown"

LAYER_ORDER: tuple[str, ...] = (
    API_LAYER,
    BUSINESS_LOGIC,
    DATA_LAYER,
    UI_COMPONENTS,
    UTILITIES,
    CONFIGURATION,
    INFRASTRUCTURE,
    UNKNOWN,
)

LAYER_COLORS: dict[str, str] = {
    API_LAYER: "#FF6B6B",
    BUSINESS_LOGIC: "#4ECDC4",
    DATA_LAYER: "#45B7D1",
    UI_COMPONENTS: "#96CEB4",
    UTILITIES: "#FFEAA7",
    CONFIGURATION: "#DDA0DD",
    INFRASTRUCTURE: "#F0B27A",
    UNKNOWN: "#95A5A6",
}

COMPLEXITY_THRESHOLD = 15
FUNCTION_COUNT_THRESHOLD = 8
CLASS_COUNT_THRESHOLD = 2

_WORD = re.compile(r"[A-Z]+(?![a-z])|[A-Z]?[a-z]+|\d+")


@dataclass(frozen=True)
class RoleProfile:
    """Describe the keywords and folders that identify one architectural role.

    Attributes:
        label: Layer label of the role.
        keywords: Lower-case word prefixes matched against identifier words.
        path_segments: Lower-case folder prefixes corroborating the role.
        name_pattern: Extra raw-name pattern, such as the ``useX`` hook form.
        words: Short lower-case keywords matched as whole words (plural
            ``s`` allowed), so ``repo`` does not claim ``report``.
    """

    label: str
    keywords: tuple[str, ...]
    path_segments: tuple[str, ...]
    name_pattern: re.Pattern[str] | None = None
    words: tuple[str, ...] = ()

    def matches_name(self, name: str) -> bool:
        if self.name_pattern is not None and self.name_pattern.search(name):
            return True
        return any(self._matches_word(word) for word in split_identifier(name))

    def matches_path(self, segments: Iterable[str]) -> bool:
        return any(
            segment.startswith(prefix)
            for segment in segments
            for prefix in self.path_segments
        )

    def _matches_word(self, word: str) -> bool:
        if any(word.startswith(keyword) for keyword in self.keywords):
            return True
        return any(word in (whole, f"{whole}s") for whole in self.words)


@dataclass(frozen=True)
class PathConvention:
    """Map one folder name of a layout convention to a layer.

    Attributes:
        family: Convention family the folder belongs to.
        segment: Lower-case folder name.
        label: Layer label assigned on match.
        exact: Match whole folder names only; otherwise folder prefixes.
    """

    family: str
    segment: str
    label: str
    exact: bool = True

    def matches(self, segments: Iterable[str]) -> bool:
        if self.exact:
            return any(segment == self.segment for segment in segments)
        return any(segment.startswith(self.segment) for segment in segments)


@dataclass(frozen=True)
class LayerRule:
    """Pair a predicate over a module record with the label it assigns."""

    name: str
    label: str
    predicate: Callable[[ModuleRecord], bool]

    def matches(self, record: ModuleRecord) -> bool:
        return self.predicate(record)


ROLE_PROFILES: tuple[RoleProfile, ...] = (
    RoleProfile(
        label=API_LAYER,
        keywords=("service", "client", "fetch", "request", "endpoint", "graphql"),
        path_segments=("api", "service", "client", "endpoint"),
        words=("api", "http"),
    ),
    RoleProfile(
        label=UI_COMPONENTS,
        keywords=("component", "view", "page", "screen", "widget", "render", "layout", "modal"),
        path_segments=("component", "ui", "view", "page", "screen", "hook"),
        name_pattern=re.compile(r"^use[A-Z0-9]"),
        words=("hook",),
    ),
    RoleProfile(
        label=DATA_LAYER,
        keywords=("model", "store", "repositor", "schema", "entity", "entities", "reducer"),
        path_segments=("model", "store", "data", "repository", "dao", "schema"),
        words=("repo", "dao", "dto"),
    ),
    RoleProfile(
        label=UTILITIES,
        keywords=("util", "helper", "format", "parse"),
        path_segments=("util", "helper", "lib"),
        words=("tool",),
    ),
)


def _conventions(family: str, pairs: Iterable[tuple[str, str]], exact: bool) -> tuple[PathConvention, ...]:
    return tuple(
        PathConvention(family=family, segment=segment, label=label, exact=exact)
        for segment, label in pairs
    )


PATH_CONVENTIONS: tuple[PathConvention, ...] = (
    *_conventions(
        "feature-sliced",
        (
            ("pages", UI_COMPONENTS),
            ("widgets", UI_COMPONENTS),
            ("features", BUSINESS_LOGIC),
            ("entities", DATA_LAYER),
            ("shared", UTILITIES),
        ),
        exact=True,
    ),
    *_conventions(
        "domain-driven",
        (
            ("domain", BUSINESS_LOGIC),
            ("application", BUSINESS_LOGIC),
            ("usecases", BUSINESS_LOGIC),
            ("use-cases", BUSINESS_LOGIC),
            ("use_cases", BUSINESS_LOGIC),
            ("infrastructure", INFRASTRUCTURE),
            ("presentation", UI_COMPONENTS),
        ),
        exact=True,
    ),
    *_conventions(
        "atomic-design",
        (
            ("atoms", UI_COMPONENTS),
            ("molecules", UI_COMPONENTS),
            ("organisms", UI_COMPONENTS),
            ("templates", UI_COMPONENTS),
        ),
        exact=True,
    ),
    *_conventions(
        "generic",
        (
            ("api", API_LAYER),
            ("service", API_LAYER),
            ("client", API_LAYER),
            ("endpoint", API_LAYER),
            ("component", UI_COMPONENTS),
            ("ui", UI_COMPONENTS),
            ("view", UI_COMPONENTS),
            ("page", UI_COMPONENTS),
            ("screen", UI_COMPONENTS),
            ("hook", UI_COMPONENTS),
            ("model", DATA_LAYER),
            ("store", DATA_LAYER),
            ("data", DATA_LAYER),
            ("repository", DATA_LAYER),
            ("dao", DATA_LAYER),
            ("schema", DATA_LAYER),
            ("util", UTILITIES),
            ("helper", UTILITIES),
            ("lib", UTILITIES),
            ("config", CONFIGURATION),
            ("setting", CONFIGURATION),
            ("env", CONFIGURATION),
            ("middleware", INFRASTRUCTURE),
            ("server", INFRASTRUCTURE),
            ("plugin", INFRASTRUCTURE),
        ),
        exact=False,
    ),
)


def split_identifier(name: str) -> list[str]:
    """Split camelCase, PascalCase, snake_case and kebab-case into lower-case words."""
    return [word.lower() for word in _WORD.findall(name)]


def directory_segments(path: str) -> tuple[str, ...]:
    """Return the lower-case folder names of a path, without the file name."""
    return tuple(
        part
        for part in PurePosixPath(path.replace("\\", "/").lower()).parent.parts
        if part not in {"", ".", "/"}
    )


def _content_matches(profile: RoleProfile, record: ModuleRecord) -> bool:
    if not any(profile.matches_name(name) for name in record.exports):
        return False
    return profile.matches_path(directory_segments(record.path))


def _path_matches(convention: PathConvention, record: ModuleRecord) -> bool:
    return convention.matches(directory_segments(record.path))


def _name_matches(profile: RoleProfile, record: ModuleRecord) -> bool:
    return profile.matches_name(record.name)


def _is_large(record: ModuleRecord) -> bool:
    return (
        record.complexity > COMPLEXITY_THRESHOLD
        or len(record.functions) > FUNCTION_COUNT_THRESHOLD
        or len(record.classes) > CLASS_COUNT_THRESHOLD
    )


def _always(record: ModuleRecord) -> bool:
    return True


def _build_rules() -> tuple[LayerRule, ...]:
    rules: list[LayerRule] = []
    for profile in ROLE_PROFILES:
        rules.append(
            LayerRule(
                name=f"content:{profile.label}",
                label=profile.label,
                predicate=partial(_content_matches, profile),
            )
        )
    for convention in PATH_CONVENTIONS:
        rules.append(
            LayerRule(
                name=f"path:{convention.family}:{convention.segment}",
                label=convention.label,
                predicate=partial(_path_matches, convention),
            )
        )
    for profile in ROLE_PROFILES:
        rules.append(
            LayerRule(
                name=f"name:{profile.label}",
                label=profile.label,
                predicate=partial(_name_matches, profile),
            )
        )
    rules.append(LayerRule(name="size", label=BUSINESS_LOGIC, predicate=_is_large))
    rules.append(LayerRule(name="default", label=UNKNOWN, predicate=_always))
    return tuple(rules)


LAYER_RULES: tuple[LayerRule, ...] = _build_rules()


def matching_rule(
    record: ModuleRecord, rules: tuple[LayerRule, ...] = LAYER_RULES
) -> LayerRule | None:
    """Return the first rule matching a record."""
    for rule in rules:
        if rule.matches(record):
            return rule
    return None


def classify(record: ModuleRecord, rules: tuple[LayerRule, ...] = LAYER_RULES) -> str:
    """Assign exactly one layer label to a module record.

    Args:
        record: Completed module record.
        rules: Ordered rule table; the first matching rule wins.

    Returns:
        The layer label; ``Unknown`` when no rule matches.
    """
    rule = matching_rule(record, rules)
    if rule is None:
        return UNKNOWN
    logger.debug(f"Layer assigned (file_path={record.path} layer={rule.label} rule={rule.name})")
    return rule.label


def assign_layers(records: Iterable[ModuleRecord]) -> dict[str, str]:
    """Classify every record, keyed by record path."""
    return {record.path: classify(record) for record in records}
