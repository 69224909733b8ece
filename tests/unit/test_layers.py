import pytest

from cas.layers import (
    API_LAYER,
    BUSINESS_LOGIC,
    CONFIGURATION,
    DATA_LAYER,
    INFRASTRUCTURE,
    LAYER_ORDER,
    LAYER_RULES,
    UI_COMPONENTS,
    UNKNOWN,
    UTILITIES,
    assign_layers,
    classify,
    directory_segments,
    matching_rule,
    split_identifier,
)
from cas.model import ModuleRecord, module_name


def _record(path: str, **kwargs) -> ModuleRecord:
    return ModuleRecord(path=path, name=module_name(path), **kwargs)


def test_ph1_lay_001_api_client_path_uses_path_convention_rule() -> None:
    record = _record("project/src/api/client.ts")

    rule = matching_rule(record)

    assert classify(record) == API_LAYER
    assert rule is not None
    assert rule.name.startswith("path:")


def test_ph1_lay_002_content_rule_needs_keyword_export_and_corroborating_path() -> None:
    corroborated = _record("src/services/users.js", exports=("fetchUsers",))
    uncorroborated = _record("src/components/users.js", exports=("fetchUsers",))

    assert classify(corroborated) == API_LAYER
    assert matching_rule(corroborated).name == f"content:{API_LAYER}"
    assert classify(uncorroborated) == UI_COMPONENTS
    assert matching_rule(uncorroborated).name.startswith("path:generic:")


def test_ph1_lay_003_content_rule_wins_over_earlier_path_families() -> None:
    record = _record("src/features/store/cart.js", exports=("cartStore",))

    assert classify(record) == DATA_LAYER
    assert matching_rule(record).name == f"content:{DATA_LAYER}"


@pytest.mark.parametrize(
    ("path", "label"),
    [
        ("src/features/api/cart.js", BUSINESS_LOGIC),
        ("src/entities/user/card.js", DATA_LAYER),
        ("src/shared/lib/date.js", UTILITIES),
        ("src/domain/order.js", BUSINESS_LOGIC),
        ("src/infrastructure/queue.js", INFRASTRUCTURE),
        ("src/presentation/cart.js", UI_COMPONENTS),
        ("src/atoms/button.js", UI_COMPONENTS),
        ("src/models/user.js", DATA_LAYER),
        ("src/utils/date.js", UTILITIES),
        ("src/config/index.js", CONFIGURATION),
        ("src/middleware/auth.js", INFRASTRUCTURE),
        ("src/hooks/auth.js", UI_COMPONENTS),
    ],
)
def test_ph1_lay_004_path_conventions_follow_family_priority(path: str, label: str) -> None:
    assert classify(_record(path)) == label


def test_ph1_lay_005_name_keyword_fallback_without_path_corroboration() -> None:
    assert classify(_record("src/userStore.js")) == DATA_LAYER
    assert classify(_record("src/httpClient.js")) == API_LAYER
    assert classify(_record("src/useAuth.js")) == UI_COMPONENTS
    assert classify(_record("src/dateFormat.js")) == UTILITIES


def test_ph1_lay_006_size_fallback_marks_large_modules_as_business_logic() -> None:
    assert classify(_record("src/engine.js", complexity=16)) == BUSINESS_LOGIC
    assert classify(_record("src/engine.js", complexity=15)) == UNKNOWN
    assert classify(_record("src/engine.js", functions=tuple("abcdefghi"))) == BUSINESS_LOGIC
    assert classify(_record("src/engine.js", classes=("A", "B", "C"))) == BUSINESS_LOGIC
    assert classify(_record("src/engine.js", classes=("A", "B"))) == UNKNOWN


def test_ph1_lay_007_unmatched_record_defaults_to_unknown() -> None:
    record = _record("index.js")

    assert classify(record) == UNKNOWN
    assert matching_rule(record).name == "default"


def test_ph1_lay_008_classification_is_deterministic() -> None:
    record = _record("src/api/users.js", exports=("getUsers",), complexity=12)

    assert classify(record) == classify(record)


def test_ph1_lay_009_rule_table_is_ordered_and_enumerable() -> None:
    names = [rule.name for rule in LAYER_RULES]

    assert len(names) == len(set(names))
    assert names[0] == f"content:{API_LAYER}"
    assert names[-1] == "default"
    assert names.index("path:feature-sliced:pages") < names.index("path:domain-driven:domain")
    assert names.index("path:domain-driven:domain") < names.index("path:atomic-design:atoms")
    assert names.index("path:atomic-design:atoms") < names.index("path:generic:api")
    assert names.index("path:generic:plugin") < names.index(f"name:{API_LAYER}")
    assert names.index(f"name:{UTILITIES}") < names.index("size")
    assert all(rule.label in LAYER_ORDER for rule in LAYER_RULES)


def test_ph1_lay_010_every_record_gets_exactly_one_layer() -> None:
    records = [
        _record("src/api/client.ts"),
        _record("src/components/Button.jsx"),
        _record("src/models/user.js"),
        _record("index.js"),
    ]

    layers = assign_layers(records)

    assert list(layers) == [record.path for record in records]
    assert sum(1 for label in layers.values() if label in LAYER_ORDER) == len(records)


def test_ph1_lay_011_identifier_and_path_helpers() -> None:
    assert split_identifier("HTTPClient") == ["http", "client"]
    assert split_identifier("user-service_v2") == ["user", "service", "v", "2"]
    assert directory_segments("Src/API/client.ts") == ("src", "api")
    assert directory_segments("client.ts") == ()


def test_ph1_lay_012_short_keywords_match_whole_words_only() -> None:
    assert classify(_record("src/report.js")) == UNKNOWN
    assert classify(_record("src/toolbar.js")) == UNKNOWN
    assert classify(_record("src/rapid.js")) == UNKNOWN
    assert classify(_record("src/userRepo.js")) == DATA_LAYER
    assert classify(_record("src/userRepositories.js")) == DATA_LAYER
    assert classify(_record("src/buildTools.js")) == UTILITIES
    assert classify(_record("src/restApi.js")) == API_LAYER
