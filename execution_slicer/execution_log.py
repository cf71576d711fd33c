#!/usr/bin/env python3
"""
执行日志

按执行顺序记录代码单元及其语句信息，并维护按变量名索引的定义表，
支持“最近的前驱定义”重绑定查询

单写者约定：宿主通过单线程事件循环依次调用 append / 切片，
切片计算过程中不允许调用 append
"""

import bisect
import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from cell_analysis import CodeUnit, StatementFact

logger = logging.getLogger(__name__)


class LogInconsistencyError(RuntimeError):
    """宿主侧执行顺序错误（违反日志约定）"""


class ExecutionLog:
    """只追加的执行日志"""

    def __init__(self, debug: bool = False):
        """
        初始化执行日志
        Args:
            debug: 为True时日志不一致直接抛出异常，否则记录错误并忽略
        """
        self.debug = debug
        self._entries: List[Tuple[CodeUnit, List[StatementFact]]] = []
        self._positions: Dict[int, int] = {}  # 执行序号 -> 条目位置
        # 变量名 -> [(执行序号, 语句编号, 语句)]，按 (执行序号, 语句编号) 升序
        self._definitions: Dict[str, List[Tuple[int, int, StatementFact]]] = {}
        self._max_sequence = 0
        self._readers = 0

    def next_sequence_number(self) -> int:
        """下一个可用的执行序号（reset 后继续递增）"""
        return self._max_sequence + 1

    def append(self, unit: CodeUnit, facts: Iterable[StatementFact] = ()) -> Optional[CodeUnit]:
        """
        追加一次执行
        Args:
            unit: 代码单元，sequence_number 为空时由日志分配
            facts: 该单元的语句信息
        Returns:
            实际存储的单元；序号不一致且非调试模式时返回None
        """
        if self._readers:
            raise LogInconsistencyError("append() called while a slice is being computed")

        if unit.sequence_number is None:
            unit = replace(unit, sequence_number=self.next_sequence_number())
        elif unit.sequence_number <= self._max_sequence:
            message = (f"Execution {unit.id} has sequence number {unit.sequence_number}, "
                       f"not greater than the log maximum {self._max_sequence}")
            if self.debug:
                raise LogInconsistencyError(message)
            logger.error(f"执行日志不一致，已忽略: {message}")
            return None

        facts = [fact if fact.unit == unit else replace(fact, unit=unit) for fact in facts]
        self._positions[unit.sequence_number] = len(self._entries)
        self._entries.append((unit, facts))
        self._max_sequence = unit.sequence_number

        # 执行失败的单元不贡献定义
        if unit.executed_successfully:
            for fact in facts:
                for name in fact.defs:
                    self._definitions.setdefault(name, []).append(
                        (unit.sequence_number, fact.index, fact))

        logger.debug(f"记录执行 {unit}: {len(facts)} 条语句")
        return unit

    def reset(self):
        """清空全部历史（执行上下文重启时调用）"""
        if self._readers:
            raise LogInconsistencyError("reset() called while a slice is being computed")
        logger.info(f"重置执行日志，丢弃 {len(self._entries)} 次执行")
        self._entries = []
        self._positions = {}
        self._definitions = {}

    @contextmanager
    def reading(self):
        """切片期间持有，用于检测违反单写者约定的 append"""
        self._readers += 1
        try:
            yield self
        finally:
            self._readers -= 1

    def definitions_visible_to(self, name: str, before_sequence_number: int) -> List[StatementFact]:
        """
        查询变量在某次执行之前的所有定义
        Args:
            name: 变量名
            before_sequence_number: 只返回执行序号小于该值的定义
        Returns:
            定义语句列表，最近的在前
        """
        entries = self._definitions.get(name, [])
        position = bisect.bisect_left(entries, (before_sequence_number,))
        return [fact for _, _, fact in reversed(entries[:position])]

    def resolve(self, fact: StatementFact, name: str) -> Optional[StatementFact]:
        """
        为语句中的一次变量使用找到唯一生效的定义

        先在同一单元中按源码位置找最近的前驱定义，找不到再取更早单元中最近的定义
        """
        for candidate in reversed(self.facts_for(fact.unit)[:fact.index]):
            if name in candidate.defs:
                return candidate
        visible = self.definitions_visible_to(name, fact.unit.sequence_number)
        return visible[0] if visible else None

    def contains(self, unit: CodeUnit) -> bool:
        position = self._positions.get(unit.sequence_number)
        return position is not None and self._entries[position][0].id == unit.id

    def facts_for(self, unit: CodeUnit) -> List[StatementFact]:
        position = self._positions.get(unit.sequence_number)
        if position is None:
            return []
        return self._entries[position][1]

    def fact(self, key: Tuple[int, int]) -> Optional[StatementFact]:
        position = self._positions.get(key[0])
        if position is None:
            return None
        facts = self._entries[position][1]
        return facts[key[1]] if 0 <= key[1] < len(facts) else None

    def find_unit(self, context_id: str, execution_count: Optional[int] = None) -> Optional[CodeUnit]:
        """查找某个上下文最近一次（或指定执行计数的）执行"""
        for unit in reversed(self.units):
            if unit.id != context_id:
                continue
            if execution_count is None or unit.execution_count == execution_count:
                return unit
        return None

    def executions_of(self, context_id: str) -> List[CodeUnit]:
        """某个上下文的全部执行，按执行顺序"""
        return [unit for unit in self.units if unit.id == context_id]

    @property
    def units(self) -> List[CodeUnit]:
        return [unit for unit, _ in self._entries]

    def __iter__(self) -> Iterator[Tuple[CodeUnit, List[StatementFact]]]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
