#!/usr/bin/env python3
"""
测试依赖分析器：定义-使用、控制依赖、异常处理依赖
"""

import sys
from pathlib import Path

import pytest

# 添加项目根目录到Python路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from cell_analysis import CodeUnit, DependencyAnalyzer, SourceRange, statement_def_use


@pytest.fixture(scope="module")
def analyzer():
    return DependencyAnalyzer()


def analyze(analyzer, source):
    return analyzer.analyze(CodeUnit("cell", 1, source))


def test_simple_assignments(analyzer):
    facts = analyze(analyzer, "x = 1\ny = x + 1")
    assert [f.defs for f in facts] == [{"x"}, {"y"}]
    assert [f.uses for f in facts] == [set(), {"x"}]
    assert facts[1].location == SourceRange(2, 0, 2, 9)
    assert facts[1].text == "y = x + 1"
    assert facts[1].key == (1, 1)


def test_augmented_assignment_reads_target(analyzer):
    fact, = analyze(analyzer, "total += i")
    assert fact.defs == {"total"}
    assert fact.uses == {"total", "i"}


def test_imports_bind_names(analyzer):
    facts = analyze(analyzer, "import numpy as np\nimport os.path\nfrom a import b as c, d")
    assert [f.defs for f in facts] == [{"np"}, {"os"}, {"c", "d"}]
    assert all(not f.uses for f in facts)


def test_method_call_updates_receiver(analyzer):
    fact, = analyze(analyzer, "lst.append(x)")
    assert fact.defs == {"lst"}
    assert fact.uses == {"lst", "x"}


def test_subscript_assignment_updates_base(analyzer):
    fact, = analyze(analyzer, "d['k'] = v")
    assert fact.defs == {"d"}
    assert fact.uses == {"d", "v"}


def test_function_definition_uses_free_names(analyzer):
    fact, = analyze(analyzer, "def f(a, b=c):\n    return a + g")
    assert fact.node_type == "function_definition"
    assert fact.defs == {"f"}
    assert fact.uses == {"c", "g"}
    assert fact.location == SourceRange(1, 0, 2, 16)


def test_class_definition(analyzer):
    fact, = analyze(analyzer, "class Model(Base):\n    size = default_size\n")
    assert fact.defs == {"Model"}
    assert fact.uses == {"Base", "default_size"}


def test_comprehension_and_lambda_locals(analyzer):
    facts = analyze(analyzer, "squares = [i * i for i in xs]\nf = lambda a: a + k")
    assert facts[0].uses == {"xs"}
    assert facts[1].uses == {"k"}


def test_for_loop_header_and_body(analyzer):
    facts = analyze(analyzer, "for i in range(3):\n    total += i")
    header, body = facts
    assert header.node_type == "for_statement"
    assert header.defs == {"i"}
    assert header.uses == {"range"}
    assert header.location == SourceRange(1, 0, 1, 18)
    assert header.body == (1,)
    assert body.control_parent == 0
    assert header.control_parent is None


def test_if_else_clauses(analyzer):
    facts = analyze(analyzer, "if x > 0:\n    y = 1\nelse:\n    y = 2")
    assert [f.node_type for f in facts] == [
        "if_statement", "expression_statement", "else_clause", "expression_statement"]
    assert facts[0].uses == {"x"}
    assert facts[1].control_parent == 0
    assert facts[2].control_parent == 0
    assert facts[3].control_parent == 2
    assert facts[2].text == "else:"


def test_exception_handler_depends_on_protected_block(analyzer):
    source = "try:\n    x = risky()\nexcept ValueError as e:\n    x = 0\n"
    facts = analyze(analyzer, source)
    try_header, protected, handler, recovery = facts
    assert try_header.handlers == (2,)
    assert try_header.body == (1,)
    assert handler.defs == {"e"}
    assert handler.uses == {"ValueError"}
    assert handler.exception_handler_for == (1,)
    assert recovery.exception_handler_for == (1,)
    assert recovery.control_parent == 2
    assert protected.exception_handler_for == ()


def test_syntax_error_yields_no_facts(analyzer):
    unit = CodeUnit("cell", 1, "x = (")
    assert analyzer.analyze(unit) == []
    flagged, facts = analyzer.analyze_unit(unit)
    assert facts == []
    assert flagged.executed_successfully is False


def test_non_code_unit_is_not_analyzed(analyzer):
    unit = CodeUnit("notes", 1, "# Title", is_code=False)
    assert analyzer.analyze(unit) == []


def test_ipython_magics_are_ignored(analyzer):
    facts = analyze(analyzer, "%matplotlib inline\n!pip install numpy\nx = 1")
    assert len(facts) == 1
    assert facts[0].location.start_line == 3


def test_columns_are_characters_not_bytes(analyzer):
    facts = analyze(analyzer, "s = 'é'; t = s")
    assert facts[0].text == "s = 'é'"
    assert facts[1].location.start_column == 9
    assert facts[1].text == "t = s"
    assert facts[1].uses == {"s"}


def test_statement_def_use_on_parsed_node(analyzer):
    root = analyzer.parse_code("for k, v in items.items():\n    seen[k] = v")
    loop = root.named_children[0]
    assert statement_def_use(loop) == ({"k", "v"}, {"items"})
    defs, uses = statement_def_use(loop, header_only=False)
    assert defs == {"k", "v", "seen"}
    assert uses == {"items", "seen", "k", "v"}


def test_check_syntax(analyzer):
    assert analyzer.check_syntax("x = (") is True
    assert analyzer.check_syntax("%load_ext autoreload\nx = 1") is False


def test_elif_and_else_chain_to_previous_clause(analyzer):
    facts = analyze(analyzer, "if a:\n    r = 1\nelif b:\n    r = 2\nelse:\n    r = 3")
    assert [f.node_type for f in facts] == [
        "if_statement", "expression_statement", "elif_clause",
        "expression_statement", "else_clause", "expression_statement"]
    assert facts[2].control_parent == 0
    assert facts[2].uses == {"b"}
    assert facts[4].control_parent == 2
    assert facts[5].control_parent == 4
