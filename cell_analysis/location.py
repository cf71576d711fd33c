#!/usr/bin/env python3
"""
源码区间模块

SourceRange 表示单元源码中的半开二维区间 [(行, 列), (行, 列))，
RangeSet 是属于同一单元的区间集合，用于标记切片覆盖的代码
"""

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Set, Tuple


@dataclass(frozen=True, order=True)
class SourceRange:
    """半开源码区间，行号从1开始，列号从0开始"""
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    def __post_init__(self):
        if (self.start_line, self.start_column) > (self.end_line, self.end_column):
            raise ValueError(
                f"Range start ({self.start_line}, {self.start_column}) is after "
                f"its end ({self.end_line}, {self.end_column})"
            )
        if self.start_line < 1:
            raise ValueError(f"Line numbers are 1-based, got {self.start_line}")

    @classmethod
    def from_points(cls, start_point, end_point) -> 'SourceRange':
        """从tree-sitter的0起始(row, column)坐标创建区间"""
        return cls(start_point[0] + 1, start_point[1], end_point[0] + 1, end_point[1])

    @property
    def start(self) -> Tuple[int, int]:
        return (self.start_line, self.start_column)

    @property
    def end(self) -> Tuple[int, int]:
        return (self.end_line, self.end_column)

    @property
    def last_line(self) -> int:
        """区间实际覆盖的最后一行（止于下一行第0列时不计该行）"""
        if self.end_line > self.start_line and self.end_column == 0:
            return self.end_line - 1
        return self.end_line

    def covers_line(self, line: int) -> bool:
        """判断区间是否覆盖某一行"""
        return self.start_line <= line <= self.last_line

    def intersects(self, other: 'SourceRange') -> bool:
        """判断两个半开区间是否相交"""
        if self.start == self.end:
            return other.start <= self.start < other.end
        if other.start == other.end:
            return self.start <= other.start < self.end
        return self.start < other.end and other.start < self.end

    def __str__(self) -> str:
        return f"{self.start_line}:{self.start_column}-{self.end_line}:{self.end_column}"


class RangeSet:
    """同一单元内的区间集合，创建后不可变"""

    def __init__(self, ranges: Iterable[SourceRange] = ()):
        self._ranges = frozenset(ranges)

    def union(self, *others: 'RangeSet') -> 'RangeSet':
        ranges = set(self._ranges)
        for other in others:
            ranges.update(other)
        return RangeSet(ranges)

    __or__ = union

    def covers_line(self, line: int) -> bool:
        """行级成员测试：任一区间覆盖该行"""
        return any(r.covers_line(line) for r in self._ranges)

    def intersects(self, span: SourceRange) -> bool:
        """列级成员测试：任一区间与给定区间相交"""
        return any(r.intersects(span) for r in self._ranges)

    def covered_lines(self) -> List[int]:
        """返回被覆盖的所有行号（升序）"""
        lines: Set[int] = set()
        for r in self._ranges:
            lines.update(range(r.start_line, r.last_line + 1))
        return sorted(lines)

    def merged(self) -> List[SourceRange]:
        """按起点排序并合并重叠或相接的区间"""
        merged: List[SourceRange] = []
        for r in sorted(self._ranges):
            if merged and r.start <= merged[-1].end:
                last = merged[-1]
                if r.end > last.end:
                    merged[-1] = SourceRange(last.start_line, last.start_column,
                                             r.end_line, r.end_column)
            else:
                merged.append(r)
        return merged

    def __iter__(self) -> Iterator[SourceRange]:
        return iter(sorted(self._ranges))

    def __len__(self) -> int:
        return len(self._ranges)

    def __bool__(self) -> bool:
        return bool(self._ranges)

    def __contains__(self, item: SourceRange) -> bool:
        return item in self._ranges

    def __eq__(self, other) -> bool:
        if not isinstance(other, RangeSet):
            return NotImplemented
        return self._ranges == other._ranges

    def __hash__(self) -> int:
        return hash(self._ranges)

    def __repr__(self) -> str:
        return f"RangeSet({', '.join(str(r) for r in self)})"


def slice_text(lines: List[str], source_range: SourceRange) -> str:
    """
    按区间从源码行中截取文本
    Args:
        lines: 单元源码按行切分后的列表
        source_range: 要截取的区间
    Returns:
        多行区间返回：首行剩余部分、中间整行、末行前缀，以换行连接
    """
    start = source_range.start_line - 1
    end = source_range.end_line - 1
    if start >= len(lines):
        return ''
    if start == end:
        return lines[start][source_range.start_column:source_range.end_column]

    parts = [lines[start][source_range.start_column:]]
    parts.extend(lines[start + 1:min(end, len(lines))])
    if end < len(lines):
        parts.append(lines[end][:source_range.end_column])
    return '\n'.join(parts)


def exact_text(lines: List[str], ranges: RangeSet) -> str:
    """列级截取：每个（合并后的）区间的文本按源码顺序以换行连接"""
    return '\n'.join(slice_text(lines, r) for r in ranges.merged())


def whole_line_text(lines: List[str], ranges: RangeSet) -> str:
    """行级截取：与任一区间相交的整行，保持原有顺序"""
    return '\n'.join(lines[line - 1] for line in ranges.covered_lines() if line <= len(lines))
