#!/usr/bin/env python3
"""
切片渲染器

把切片结果转换为按执行顺序排列的代码片段
"""

import logging
from typing import List, Union

from .models import CellSlice, Fragment, RenderMode, SlicedExecution

logger = logging.getLogger(__name__)


def render_cell_slice(cell_slice: CellSlice, mode: Union[RenderMode, str] = RenderMode.WHOLE_LINES) -> str:
    """渲染单个单元切片"""
    if RenderMode.parse(mode) is RenderMode.EXACT:
        return cell_slice.text_slice
    return cell_slice.text_slice_lines


def render(sliced_execution: SlicedExecution,
           mode: Union[RenderMode, str] = RenderMode.WHOLE_LINES) -> List[Fragment]:
    """
    渲染切片结果
    Args:
        sliced_execution: 切片结果
        mode: EXACT 只输出标记的文本；WHOLE_LINES 输出与标记相交的整行
    Returns:
        代码片段列表，只有最后一个片段标记为 is_final
    """
    mode = RenderMode.parse(mode)
    fragments = []
    last = len(sliced_execution) - 1
    for i, cell_slice in enumerate(sliced_execution):
        unit = cell_slice.unit
        fragments.append(Fragment(
            unit_id=unit.id,
            text=render_cell_slice(cell_slice, mode),
            is_final=(i == last),
            sequence_number=unit.sequence_number,
            execution_count=unit.execution_count,
        ))
    logger.debug(f"以 {mode.value} 模式渲染了 {len(fragments)} 个片段")
    return fragments


def join_fragments(fragments: List[Fragment], separator: str = "\n\n") -> str:
    """把片段拼接为一个脚本"""
    return separator.join(fragment.text for fragment in fragments)
