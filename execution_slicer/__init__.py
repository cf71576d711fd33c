#!/usr/bin/env python3
"""
execution_slicer包 - 笔记本执行历史切片核心
"""

import logging
import sys

from .models import CodeUnit, StatementFact, RenderMode, CellSlice, SlicedExecution, Fragment
from .execution_log import ExecutionLog, LogInconsistencyError
from .slicer import ExecutionSlicer
from .renderer import render, render_cell_slice, join_fragments
from .config import GatherConfig
from .history import ExecutionHistory

# 版本信息
__version__ = "1.0.0"

# 公开的API
__all__ = [
    'CodeUnit',
    'StatementFact',
    'RenderMode',
    'CellSlice',
    'SlicedExecution',
    'Fragment',
    'ExecutionLog',
    'LogInconsistencyError',
    'ExecutionSlicer',
    'render',
    'render_cell_slice',
    'join_fragments',
    'GatherConfig',
    'ExecutionHistory',
    'setup_logging'
]

# 包的简介
__doc__ = """
execution_slicer包从笔记本的执行历史中收集重现某个输出所需的最少代码：

主要功能：
- 记录每次执行及其语句级定义-使用信息
- 按“最近的前驱定义”解析变量重绑定
- 沿数据、控制、异常处理依赖进行后向切片
- 以列级精度或整行形式渲染切片

使用示例：

from execution_slicer import ExecutionHistory

history = ExecutionHistory()
history.on_execution_finished("x = 1", True, "cell-1")
history.on_execution_finished("y = x + 1", True, "cell-2")
history.on_execution_finished("x = 2", True, "cell-3")
history.on_execution_finished("print(y)", True, "cell-4")

for fragment in history.render(history.request_slice("cell-4")):
    print(fragment.text)
"""


def setup_logging(level=logging.INFO, format_string=None, stream=None):
    """
    配置日志记录

    Args:
        level: 日志级别 (logging.DEBUG, logging.INFO, logging.WARNING, logging.ERROR)
        format_string: 自定义日志格式字符串
        stream: 日志输出流，默认为标准输出
    """
    if format_string is None:
        format_string = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    logging.basicConfig(
        level=level,
        format=format_string,
        handlers=[
            logging.StreamHandler(stream or sys.stdout)
        ]
    )

    for name in ('execution_slicer', 'cell_analysis'):
        logging.getLogger(name).setLevel(level)
