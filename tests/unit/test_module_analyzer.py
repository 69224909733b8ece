import pytest

from cas.analyzer import SourceFile
from cas.analyzers import JavaScriptAnalyzer, score_complexity
from cas.analyzers import javascript
from cas.model import ModuleRecord
from cas.parsing import parse_source, parse_with_fallback

SCENARIO_A = (
    "function add(a,b){return a+b;} "
    "export function calc(x){ if (x>0) { return add(x,1); } else { return add(x,-1); } }"
)


def _analyze(text: str, path: str = "src/sample.js") -> ModuleRecord:
    source = SourceFile.from_text(path, text)
    outcome = parse_with_fallback(text, file_path=path)
    assert outcome is not None
    record, error = JavaScriptAnalyzer().analyze(source, outcome.tree)
    assert error is None
    return record


def test_ph1_mod_001_exported_and_local_functions_with_weighted_complexity() -> None:
    record = _analyze(SCENARIO_A)

    assert record.exports == ("calc",)
    assert record.functions == ("calc", "add")
    assert record.classes == ()
    assert record.complexity == 3
    assert record.name == "sample"


def test_ph1_mod_002_function_scores_base_plus_its_own_body() -> None:
    tree = parse_source(SCENARIO_A)
    add_node, export_node = tree.named_children

    assert score_complexity(add_node) == 1.0
    assert score_complexity(export_node.child_by_field_name("declaration")) == 2.0


def test_ph1_mod_003_nested_function_sub_score_compounds_into_parent() -> None:
    record = _analyze(
        "function outer(){ function inner(){ if (a) { b(); } } if (c) { d(); } }"
    )

    # outer 1 + inner (1 + if 1) + if 1
    assert record.complexity == 4
    assert record.functions == ("outer", "inner")


def test_ph1_mod_004_ternary_logical_await_and_callback_weights() -> None:
    record = _analyze(
        "async function f(){ const v = a && b ? await g() : c || d; items.forEach(x => x); }"
    )

    # 1 + ternary 1 + && 0.5 + await 0.5 + || 0.5 + callback 0.5 + arrow 1
    assert record.complexity == 5


def test_ph1_mod_005_half_points_round_half_up() -> None:
    assert _analyze("function f(){ return a && b; }").complexity == 2
    assert javascript.round_complexity(2.5) == 3
    assert javascript.round_complexity(2.49) == 2
    assert javascript.round_complexity(-3.0) == 0


def test_ph1_mod_006_class_adds_flat_cost_and_methods_still_score() -> None:
    record = _analyze("class Store { load() { if (x) { y(); } } }")

    assert record.classes == ("Store",)
    assert record.functions == ()
    assert record.complexity == 4


def test_ph1_mod_007_switch_cases_count_only_when_they_have_a_test() -> None:
    record = _analyze(
        "switch (x) { case 1: a(); break; case 2: b(); break; default: c(); }"
    )

    assert record.complexity == 2


def test_ph1_mod_008_loops_and_catch_each_add_one() -> None:
    record = _analyze(
        "\n".join(
            [
                "for (let i = 0; i < n; i++) {}",
                "for (const k in obj) {}",
                "for (const v of list) {}",
                "while (ok) {}",
                "do {} while (ok);",
                "try { run(); } catch (e) { log(e); }",
            ]
        )
    )

    assert record.complexity == 6


def test_ph1_mod_009_variable_bound_functions_and_method_shorthand_are_named() -> None:
    record = _analyze(
        "\n".join(
            [
                "const arrow = () => 1;",
                "const expr = function named() { return 2; };",
                "const api = { load() { return 3; }, value: 4 };",
            ]
        )
    )

    assert record.functions == ("arrow", "expr", "load")


def test_ph1_mod_010_export_shapes_contribute_names_in_discovery_order() -> None:
    record = _analyze(
        "\n".join(
            [
                "const c = 2;",
                "export const a = 1, b = () => 1;",
                "export { c as d };",
                "export default function () { return c; }",
            ]
        )
    )

    assert record.exports == ("a", "b", "d", "default")
    assert record.functions == ("b",)


def test_ph1_mod_011_default_class_export_uses_declared_name() -> None:
    record = _analyze("class Helper {}\nexport default class Widget {}")

    assert record.exports == ("Widget",)
    assert record.classes == ("Widget", "Helper")
    assert record.complexity == 4


def test_ph1_mod_012_jsx_component_is_analyzed() -> None:
    record = _analyze(
        "const App = () => <div>{ready ? 'yes' : 'no'}</div>;\nexport default App;",
        path="src/components/App.jsx",
    )

    assert record.exports == ("default",)
    assert record.functions == ("App",)
    assert record.complexity == 2


def test_ph1_mod_013_missing_tree_yields_empty_record_with_raw_size() -> None:
    source = SourceFile.from_text("src/broken.js", "function é( {")

    record, error = JavaScriptAnalyzer().analyze(source, None, frozenset({"./x"}))

    assert error is None
    assert record.complexity == 0
    assert record.exports == ()
    assert record.functions == ()
    assert record.classes == ()
    assert record.size == len("function é( {".encode("utf-8"))
    assert record.dependencies == frozenset({"./x"})


def test_ph1_mod_014_traversal_error_keeps_partial_record_with_zero_score(
    monkeypatch,
) -> None:
    original = javascript.node_weight

    def _failing_weight(node):
        if getattr(node, "type", None) == "if_statement":
            raise TypeError("malformed node")
        return original(node)

    monkeypatch.setattr(javascript, "node_weight", _failing_weight)
    source = SourceFile.from_text("src/calc.js", SCENARIO_A)
    tree = parse_source(SCENARIO_A)

    record, error = JavaScriptAnalyzer().analyze(source, tree)

    assert error is not None
    assert error.file_path == "src/calc.js"
    assert "traversal failed" in error.message
    assert record.complexity == 0
    assert record.exports == ("calc",)
    assert record.functions == ("calc", "add")


@pytest.mark.parametrize(
    "text",
    [
        "",
        "const a = 1;",
        SCENARIO_A,
        "if (a && b || c) { x(); } else { y(); }",
    ],
)
def test_ph1_mod_015_complexity_is_a_non_negative_integer(text: str) -> None:
    record = _analyze(text)

    assert isinstance(record.complexity, int)
    assert record.complexity >= 0


def test_ph1_mod_016_annotated_typescript_module_is_analyzed() -> None:
    record = _analyze(
        "\n".join(
            [
                "import { x } from './dep';",
                "export interface Props { label: string }",
                "export type Mode = 'a' | 'b';",
                "export function helper(v: number): number {",
                "  if (v > 0) { return v; }",
                "  return -v;",
                "}",
            ]
        ),
        path="src/utils/helper.ts",
    )

    assert record.exports == ("Props", "Mode", "helper")
    assert record.functions == ("helper",)
    assert record.complexity == 2


def test_ph1_mod_017_typescript_class_with_generics_and_modifiers() -> None:
    record = _analyze(
        "export class Store<T> {\n"
        "  private items: T[] = [];\n"
        "  load(): T | undefined { return this.items.length > 0 ? this.items[0] : undefined; }\n"
        "}\n",
        path="src/store.ts",
    )

    assert record.exports == ("Store",)
    assert record.classes == ("Store",)
    # class 2 + method 1 + ternary 1
    assert record.complexity == 4


def test_ph1_mod_018_tsx_component_with_typed_props() -> None:
    record = _analyze(
        "export const Button = ({ label }: { label?: string }) => "
        "<button>{label ?? 'ok'}</button>;\n",
        path="src/components/Button.tsx",
    )

    assert record.exports == ("Button",)
    assert record.functions == ("Button",)
    assert record.complexity == 1


def test_ph1_mod_019_optional_chaining_and_nullish_coalescing_do_not_add_weight() -> None:
    record = _analyze("export const pick = (o) => o?.b ?? 1;\n", path="src/f.js")

    assert record.exports == ("pick",)
    assert record.functions == ("pick",)
    assert record.complexity == 1


def test_ph1_mod_020_deep_expression_chain_is_scored_without_recursion_limits() -> None:
    chain = " + ".join(["'s'"] * 3000)
    record = _analyze(f"export function f(){{ if (a) {{}} return {chain}; }}")

    assert record.exports == ("f",)
    assert record.complexity == 2
