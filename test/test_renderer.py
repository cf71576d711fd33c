#!/usr/bin/env python3
"""
测试切片渲染
"""

import sys
from pathlib import Path

import pytest

# 添加项目根目录到Python路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from cell_analysis import CodeUnit, RangeSet, SourceRange
from execution_slicer import (
    CellSlice, ExecutionHistory, RenderMode, SlicedExecution, join_fragments, render, render_cell_slice
)


@pytest.fixture
def sliced():
    history = ExecutionHistory()
    history.on_execution_finished("a = 1; b = 2", True, "c1", execution_count=1)
    history.on_execution_finished("c = 3", True, "c2", execution_count=2)
    history.on_execution_finished("print(b)", True, "c3", execution_count=3)
    return history.request_slice("c3")


def test_exact_mode_keeps_only_marked_text(sliced):
    fragments = render(sliced, RenderMode.EXACT)
    assert [f.text for f in fragments] == ["b = 2", "print(b)"]


def test_whole_lines_mode_keeps_full_lines(sliced):
    fragments = render(sliced, "lines")
    assert [f.text for f in fragments] == ["a = 1; b = 2", "print(b)"]


def test_only_last_fragment_is_final(sliced):
    fragments = render(sliced)
    assert [f.is_final for f in fragments] == [False, True]
    assert [f.unit_id for f in fragments] == ["c1", "c3"]
    assert [f.sequence_number for f in fragments] == [1, 3]
    assert [f.execution_count for f in fragments] == [1, 3]


def test_empty_slice_renders_nothing():
    assert render(SlicedExecution()) == []


def test_render_cell_slice_multiline_range():
    unit = CodeUnit("c1", 1, "a = 1\nb = 2\nc = 3\nd = 4\n")
    cell_slice = CellSlice(unit, RangeSet([SourceRange(1, 0, 1, 5), SourceRange(2, 4, 3, 4)]))
    assert render_cell_slice(cell_slice, RenderMode.EXACT) == "a = 1\n2\nc = "
    assert render_cell_slice(cell_slice, RenderMode.WHOLE_LINES) == "a = 1\nb = 2\nc = 3"


def test_render_mode_parsing():
    assert RenderMode.parse("exact") is RenderMode.EXACT
    assert RenderMode.parse("whole-lines") is RenderMode.WHOLE_LINES
    assert RenderMode.parse(" Lines ") is RenderMode.WHOLE_LINES
    with pytest.raises(ValueError):
        RenderMode.parse("tokens")


def test_join_fragments(sliced):
    assert join_fragments(render(sliced)) == "a = 1; b = 2\n\nprint(b)"
