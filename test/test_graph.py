#!/usr/bin/env python3
"""
测试依赖图构建与可视化
"""

import sys
from pathlib import Path

import networkx as nx

# 添加项目根目录到Python路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from cell_analysis import EdgeType, visualize_dependency_graph
from execution_slicer import ExecutionHistory


def build_history():
    history = ExecutionHistory()
    history.on_execution_finished("x = 1", True, "c1")
    history.on_execution_finished("y = x + 1", True, "c2")
    history.on_execution_finished("x = 2", True, "c3")
    history.on_execution_finished("print(y)", True, "c4")
    history.on_execution_finished(
        "try:\n    z = y / x\nexcept ZeroDivisionError:\n    z = 0", True, "c5")
    return history


def test_data_edges_follow_rebinding():
    graph = build_history().dependency_graph()
    assert graph.edges[(1, 0), (2, 0)]["type"] is EdgeType.DATA
    assert graph.edges[(1, 0), (2, 0)]["names"] == ["x"]
    assert graph.edges[(2, 0), (4, 0)]["names"] == ["y"]
    assert not graph.has_edge((3, 0), (4, 0))
    assert graph.nodes[(4, 0)]["fact"].text == "print(y)"


def test_control_and_exception_edges():
    graph = build_history().dependency_graph()
    # 5号单元: 0 try, 1 z = y / x, 2 except, 3 z = 0
    assert graph.edges[(5, 0), (5, 1)]["type"] is EdgeType.CONTROL
    assert graph.edges[(5, 2), (5, 3)]["type"] is EdgeType.CONTROL
    assert graph.edges[(5, 1), (5, 3)]["type"] is EdgeType.EXCEPTION
    assert graph.edges[(3, 0), (5, 1)]["names"] == ["x"]


def test_dependency_graph_is_acyclic():
    graph = build_history().dependency_graph()
    assert graph.number_of_nodes() == 8
    assert nx.is_directed_acyclic_graph(graph)


def test_reset_empties_graph():
    history = build_history()
    history.on_context_restart()
    assert history.dependency_graph().number_of_nodes() == 0


def test_visualize_writes_dot_file(tmp_path):
    graph = build_history().dependency_graph()
    filename = str(tmp_path / "deps")
    dot = visualize_dependency_graph(graph, filename, pdf=False)
    content = (tmp_path / "deps.dot").read_text()
    assert content == dot.source
    assert "cluster_5" in content
    assert "color=red" in content
    assert "color=orange" in content
    assert "print(y)" in content
