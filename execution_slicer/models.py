#!/usr/bin/env python3
"""
数据模型定义
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, List, Optional, Tuple, Union

from cell_analysis import CodeUnit, RangeSet, StatementFact, exact_text, whole_line_text

__all__ = [
    'CodeUnit',
    'StatementFact',
    'RenderMode',
    'CellSlice',
    'SlicedExecution',
    'Fragment'
]


class RenderMode(Enum):
    """切片输出模式"""
    EXACT = "exact"        # 只输出被标记的文本（列级精度）
    WHOLE_LINES = "lines"  # 输出包含标记的整行，可重新执行

    @classmethod
    def parse(cls, value: Union['RenderMode', str]) -> 'RenderMode':
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        if normalized in ('whole-lines', 'whole_lines'):
            normalized = 'lines'
        for mode in cls:
            if mode.value == normalized:
                return mode
        raise ValueError(f"Unknown render mode: {value}")


@dataclass(frozen=True)
class CellSlice:
    """一个单元及其在切片中被选中的区间"""
    unit: CodeUnit
    ranges: RangeSet

    @property
    def text_slice(self) -> str:
        return exact_text(self.unit.lines, self.ranges)

    @property
    def text_slice_lines(self) -> str:
        return whole_line_text(self.unit.lines, self.ranges)


@dataclass(frozen=True)
class SlicedExecution:
    """切片结果：按执行顺序排列的单元切片"""
    cell_slices: Tuple[CellSlice, ...] = ()

    @property
    def units(self) -> List[CodeUnit]:
        return [cell_slice.unit for cell_slice in self.cell_slices]

    def __iter__(self) -> Iterator[CellSlice]:
        return iter(self.cell_slices)

    def __len__(self) -> int:
        return len(self.cell_slices)

    def __bool__(self) -> bool:
        return bool(self.cell_slices)


@dataclass(frozen=True)
class Fragment:
    """渲染后的代码片段"""
    unit_id: str
    text: str
    is_final: bool
    sequence_number: int
    execution_count: Optional[int] = None
