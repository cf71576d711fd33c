#!/usr/bin/env python3
"""
执行切片器

从目标单元的语句出发，沿执行日志中的数据依赖、控制依赖和异常处理依赖反向遍历，
收集重现目标结果所需的最小语句集合
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from cell_analysis import CodeUnit, RangeSet, StatementFact

from .execution_log import ExecutionLog
from .models import CellSlice, SlicedExecution

logger = logging.getLogger(__name__)

StatementKey = Tuple[int, int]
StatementSelector = Union[Iterable[int], Callable[[StatementFact], bool]]


class ExecutionSlicer:
    """基于执行日志的后向切片器"""

    def __init__(self, log: ExecutionLog):
        self.log = log

    def slice(self, target_unit: Optional[CodeUnit],
              target_statements: Optional[Iterable[StatementFact]] = None) -> SlicedExecution:
        """
        对目标单元进行后向切片
        Args:
            target_unit: 目标单元
            target_statements: 起始语句，为空时使用目标单元的全部语句
        Returns:
            按执行序号升序排列的单元切片；目标未知或没有语句时为空
        """
        result = self._backward_slice(target_unit, target_statements)
        if not result:
            return SlicedExecution()

        grouped: Dict[int, List[StatementFact]] = {}
        for fact in result.values():
            grouped.setdefault(fact.unit.sequence_number, []).append(fact)

        cell_slices = []
        for sequence_number in sorted(grouped):
            facts = grouped[sequence_number]
            ranges = RangeSet(fact.location for fact in facts)
            cell_slices.append(CellSlice(facts[0].unit, ranges))

        logger.info(f"切片得到 {len(result)} 条语句，涉及 {len(cell_slices)} 个单元")
        return SlicedExecution(tuple(cell_slices))

    def slice_statement_keys(self, target_unit: Optional[CodeUnit],
                             target_statements: Optional[Iterable[StatementFact]] = None) -> Set[StatementKey]:
        """返回切片中所有语句的 (执行序号, 语句编号)"""
        return set(self._backward_slice(target_unit, target_statements))

    def select_statements(self, target_unit: CodeUnit,
                          selector: Optional[StatementSelector] = None) -> List[StatementFact]:
        """
        按选择器挑选目标单元中的语句
        Args:
            target_unit: 目标单元
            selector: 行号集合（1起始）或语句谓词，为空时选择全部语句
        """
        facts = self.log.facts_for(target_unit)
        if selector is None:
            return list(facts)
        if callable(selector):
            return [fact for fact in facts if selector(fact)]
        lines = set(selector)
        return [fact for fact in facts
                if any(fact.location.covers_line(line) for line in lines)]

    def _backward_slice(self, target_unit, target_statements) -> Dict[StatementKey, StatementFact]:
        """工作表算法：反复取出语句，加入其依赖，直到不动点"""
        if target_unit is None or not self.log.contains(target_unit):
            logger.warning(f"切片目标 {target_unit} 不在执行日志中")
            return {}

        if target_statements is None:
            seeds = list(self.log.facts_for(target_unit))
        else:
            seeds = [fact for fact in target_statements
                     if fact.unit.sequence_number == target_unit.sequence_number]
        if not seeds:
            return {}

        result: Dict[StatementKey, StatementFact] = {}
        with self.log.reading():
            worklist = list(reversed(seeds))
            while worklist:
                self._walk(worklist, result)
                worklist = self._complete_blocks(result)
        return result

    def _walk(self, worklist: List[StatementFact], result: Dict[StatementKey, StatementFact]):
        while worklist:
            fact = worklist.pop()
            if fact.key in result:
                continue
            result[fact.key] = fact

            # 数据依赖：每个被使用的名字只依赖唯一生效的定义
            for name in sorted(fact.uses):
                definition = self.log.resolve(fact, name)
                if definition is not None and definition.key not in result:
                    worklist.append(definition)

            unit_facts = self.log.facts_for(fact.unit)
            # 控制依赖无条件加入
            if fact.control_parent is not None:
                worklist.append(unit_facts[fact.control_parent])
            # 异常处理语句依赖整个受保护块
            for index in fact.exception_handler_for:
                worklist.append(unit_facts[index])

    def _complete_blocks(self, result: Dict[StatementKey, StatementFact]) -> List[StatementFact]:
        """
        补全语法结构，保证整行输出可以重新执行

        选中的复合语句头部若语句体为空，补入语句体的第一条语句；
        选中的 try 若没有任何 except/finally 子句，补入第一个子句
        """
        pending = []
        for fact in list(result.values()):
            unit_facts = self.log.facts_for(fact.unit)
            sequence_number = fact.unit.sequence_number
            if fact.body and not any((sequence_number, i) in result for i in fact.body):
                pending.append(unit_facts[fact.body[0]])
            if fact.handlers and not any((sequence_number, i) in result for i in fact.handlers):
                pending.append(unit_facts[fact.handlers[0]])
        return pending
