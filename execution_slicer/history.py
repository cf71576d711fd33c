#!/usr/bin/env python3
"""
执行历史

宿主（笔记本插件）与切片核心之间的窄接口：
宿主每完成一次执行调用 on_execution_finished，执行上下文重启时调用 on_context_restart，
收集代码时调用 request_slice 并用 render 渲染结果
"""

import logging
from typing import List, Optional, Union

from cell_analysis import CodeUnit, DependencyAnalyzer, build_dependency_graph

from .config import GatherConfig
from .execution_log import ExecutionLog
from .models import Fragment, RenderMode, SlicedExecution
from .renderer import render
from .slicer import ExecutionSlicer, StatementSelector

logger = logging.getLogger(__name__)


class ExecutionHistory:
    """记录执行并按需切片"""

    def __init__(self, config: Optional[GatherConfig] = None):
        self.config = config or GatherConfig()
        self.log = ExecutionLog(debug=self.config.debug)
        self.analyzer = DependencyAnalyzer(mask_ipython_magics=self.config.mask_magics)
        self.slicer = ExecutionSlicer(self.log)

    def on_execution_finished(self, source_text: str, was_successful: bool, context_id: str,
                              execution_count: Optional[int] = None,
                              is_code: bool = True) -> Optional[CodeUnit]:
        """
        记录一次已完成的执行
        Args:
            source_text: 执行的源码
            was_successful: 执行是否成功（未抛出异常）
            context_id: 宿主侧单元标识
            execution_count: 宿主的执行计数
            is_code: 是否为代码单元
        Returns:
            记录到日志中的单元
        """
        unit = CodeUnit(
            id=context_id,
            sequence_number=self.log.next_sequence_number(),
            source_text=source_text,
            executed_successfully=was_successful,
            is_code=is_code,
            execution_count=execution_count,
        )
        unit, facts = self.analyzer.analyze_unit(unit)
        stored = self.log.append(unit, facts)
        logger.info(f"执行完成: {context_id} (执行计数 {execution_count}, "
                    f"{'成功' if unit.executed_successfully else '失败'})")
        return stored

    def on_context_restart(self):
        """执行上下文重启，之前的定义全部失效"""
        logger.info("执行上下文重启")
        self.log.reset()

    def request_slice(self, target_context_id: str,
                      target_statement_selector: Optional[StatementSelector] = None,
                      execution_count: Optional[int] = None) -> SlicedExecution:
        """
        对某个上下文最近一次（或指定执行计数的）执行进行切片
        Args:
            target_context_id: 宿主侧单元标识
            target_statement_selector: 行号集合或语句谓词，为空时使用全部语句
            execution_count: 指定要切片的那次执行
        """
        unit = self.log.find_unit(target_context_id, execution_count)
        if unit is None:
            logger.warning(f"未找到上下文 {target_context_id} 的执行记录")
            return SlicedExecution()
        statements = self.slicer.select_statements(unit, target_statement_selector)
        return self.slicer.slice(unit, statements)

    def request_history_slices(self, context_id: str) -> List[SlicedExecution]:
        """某个上下文每一次执行各自的切片，按执行顺序"""
        return [self.slicer.slice(unit) for unit in self.log.executions_of(context_id)]

    def render(self, sliced_execution: SlicedExecution,
               mode: Optional[Union[RenderMode, str]] = None) -> List[Fragment]:
        """按指定模式（默认取配置）渲染切片"""
        return render(sliced_execution, mode if mode is not None else self.config.render_mode)

    def dependency_graph(self):
        """整个执行日志的依赖图"""
        return build_dependency_graph(self.log)
