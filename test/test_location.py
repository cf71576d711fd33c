#!/usr/bin/env python3
"""
测试源码区间与区间集合
"""

import sys
from pathlib import Path

import pytest

# 添加项目根目录到Python路径
sys.path.insert(0, str(Path(__file__).parent.parent))

from cell_analysis import RangeSet, SourceRange, exact_text, slice_text, whole_line_text

SOURCE_LINES = "a = 1\nb = 2\nc = 3\nd = 4\n".split('\n')


def test_range_rejects_start_after_end():
    with pytest.raises(ValueError):
        SourceRange(2, 0, 1, 5)
    with pytest.raises(ValueError):
        SourceRange(1, 6, 1, 5)
    with pytest.raises(ValueError):
        SourceRange(0, 0, 1, 0)


def test_from_points_is_one_based():
    r = SourceRange.from_points((0, 2), (1, 4))
    assert r == SourceRange(1, 2, 2, 4)
    assert str(r) == "1:2-2:4"


def test_covers_line():
    r = SourceRange(2, 4, 3, 4)
    assert not r.covers_line(1)
    assert r.covers_line(2)
    assert r.covers_line(3)
    assert not r.covers_line(4)
    # 止于下一行第0列时不覆盖该行
    assert not SourceRange(1, 0, 2, 0).covers_line(2)


def test_intersects_half_open():
    a = SourceRange(1, 0, 1, 5)
    assert a.intersects(SourceRange(1, 4, 1, 8))
    assert not a.intersects(SourceRange(1, 5, 1, 8))
    assert SourceRange(1, 2, 1, 2).intersects(a)
    assert not SourceRange(1, 5, 1, 5).intersects(a)


def test_range_set_union_and_membership():
    first = RangeSet([SourceRange(1, 0, 1, 5)])
    second = RangeSet([SourceRange(3, 0, 3, 5)])
    both = first | second
    assert len(both) == 2
    assert both.covers_line(1) and both.covers_line(3)
    assert not both.covers_line(2)
    assert both.intersects(SourceRange(3, 2, 3, 3))
    assert not both.intersects(SourceRange(2, 0, 2, 5))
    assert both.covered_lines() == [1, 3]
    # union 不修改原集合
    assert len(first) == 1


def test_range_set_merged():
    ranges = RangeSet([
        SourceRange(2, 0, 2, 4),
        SourceRange(1, 0, 1, 5),
        SourceRange(2, 4, 3, 1),
        SourceRange(2, 1, 2, 2),
    ])
    assert ranges.merged() == [SourceRange(1, 0, 1, 5), SourceRange(2, 0, 3, 1)]


def test_range_set_iterates_sorted_and_compares_equal():
    a = RangeSet([SourceRange(3, 0, 3, 1), SourceRange(1, 0, 1, 1)])
    b = RangeSet([SourceRange(1, 0, 1, 1), SourceRange(3, 0, 3, 1)])
    assert list(a) == [SourceRange(1, 0, 1, 1), SourceRange(3, 0, 3, 1)]
    assert a == b
    assert hash(a) == hash(b)
    assert not RangeSet()


def test_slice_text_multiline():
    assert slice_text(SOURCE_LINES, SourceRange(2, 4, 3, 4)) == "2\nc = "
    assert slice_text(SOURCE_LINES, SourceRange(1, 0, 1, 5)) == "a = 1"


def test_exact_and_whole_line_text():
    ranges = RangeSet([SourceRange(1, 0, 1, 5), SourceRange(2, 4, 3, 4)])
    assert exact_text(SOURCE_LINES, ranges) == "a = 1\n2\nc = "
    assert whole_line_text(SOURCE_LINES, ranges) == "a = 1\nb = 2\nc = 3"


def test_whole_line_text_keeps_line_order():
    ranges = RangeSet([SourceRange(4, 0, 4, 5), SourceRange(2, 0, 2, 1)])
    assert whole_line_text(SOURCE_LINES, ranges) == "b = 2\nd = 4"
