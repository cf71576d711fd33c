#!/usr/bin/env python3
"""
依赖分析器

遍历单元的语句树，为每条语句生成定义、使用、控制依赖和异常处理依赖信息
"""

import logging
from dataclasses import dataclass, replace
from typing import FrozenSet, List, Optional, Tuple

from .base import BaseAnalyzer
from .location import SourceRange, slice_text
from .node import StatementNode
from .unit import CodeUnit
from .utils import (
    ATOMIC_STATEMENT_TYPES, find_colon, point_to_position, statement_children
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StatementFact:
    """单条语句的依赖信息，分析后不可变"""
    unit: CodeUnit
    index: int                                 # 单元内按源码顺序的编号
    node_type: str
    location: SourceRange
    defs: FrozenSet[str]
    uses: FrozenSet[str]
    control_parent: Optional[int] = None       # 最近的复合语句头部
    exception_handler_for: Tuple[int, ...] = ()  # 对应 try 块中的所有语句
    body: Tuple[int, ...] = ()                 # 语句体中的直接子语句
    handlers: Tuple[int, ...] = ()             # try 语句的 except/finally 子句

    @property
    def key(self) -> Tuple[int, int]:
        return (self.unit.sequence_number, self.index)

    @property
    def text(self) -> str:
        return slice_text(self.unit.lines, self.location)

    def __str__(self) -> str:
        return f"{self.unit}[{self.index}] {self.node_type} @ {self.location}"


class _FactBuilder:
    """按源码顺序收集语句信息，最后统一冻结"""

    def __init__(self, unit: CodeUnit, source: str):
        self.unit = unit
        self.source_lines = source.encode('utf-8').split(b'\n')
        self.pending: List[dict] = []

    def build(self) -> List[StatementFact]:
        return [StatementFact(unit=self.unit, **fields) for fields in self.pending]

    def visit_block(self, statements, parent: Optional[int], handler_for: Tuple[int, ...]) -> List[int]:
        """访问语句块，返回直接子语句的编号"""
        return [self.visit_statement(s, parent, handler_for) for s in statements]

    def visit_statement(self, node, parent: Optional[int], handler_for: Tuple[int, ...]) -> int:
        if node.type in ATOMIC_STATEMENT_TYPES:
            return self._emit(node, self._range(node.start_point, node.end_point),
                              parent, handler_for)
        if node.type in ('if_statement', 'for_statement', 'while_statement', 'with_statement'):
            return self._visit_compound(node, parent, handler_for)
        if node.type == 'try_statement':
            return self._visit_try(node, parent, handler_for)
        return self._emit(node, self._range(node.start_point, node.end_point),
                          parent, handler_for)

    def _visit_compound(self, node, parent, handler_for) -> int:
        """if/for/while/with：头部一条，语句体和子句各自展开

        elif/else 子句依赖链上的前一个子句：if -> elif -> ... -> else
        """
        index = self._emit(node, self._header_range(node), parent, handler_for)
        self.pending[index]['body'] = tuple(
            self.visit_block(statement_children(self._block_of(node)), index, handler_for))
        previous = index
        for clause in node.named_children:
            if clause.type in ('elif_clause', 'else_clause'):
                previous = self._visit_clause(clause, previous, handler_for)
        return index

    def _visit_try(self, node, parent, handler_for) -> int:
        """try：except 子句及其语句体依赖 try 块中的全部语句"""
        index = self._emit(node, self._header_range(node), parent, handler_for)
        start = len(self.pending)
        self.pending[index]['body'] = tuple(
            self.visit_block(statement_children(self._block_of(node)), index, handler_for))
        protected = tuple(range(start, len(self.pending)))

        handlers = []
        for clause in node.named_children:
            if clause.type in ('except_clause', 'except_group_clause'):
                handlers.append(self._visit_clause(clause, index, handler_for + protected))
            elif clause.type == 'finally_clause':
                handlers.append(self._visit_clause(clause, index, handler_for))
            elif clause.type == 'else_clause':
                self._visit_clause(clause, index, handler_for)
        self.pending[index]['handlers'] = tuple(handlers)
        return index

    def _visit_clause(self, clause, parent: int, handler_for) -> int:
        index = self._emit(clause, self._header_range(clause), parent, handler_for)
        self.pending[index]['body'] = tuple(
            self.visit_block(statement_children(self._block_of(clause)), index, handler_for))
        return index

    def _emit(self, node, location: SourceRange, parent, handler_for) -> int:
        info = StatementNode(node)
        self.pending.append({
            'index': len(self.pending),
            'node_type': node.type,
            'location': location,
            'defs': frozenset(info.defs),
            'uses': frozenset(info.uses),
            'control_parent': parent,
            'exception_handler_for': tuple(handler_for),
        })
        return len(self.pending) - 1

    def _block_of(self, node):
        for child in node.children:
            if child.type == 'block':
                return child
        return None

    def _header_range(self, node) -> SourceRange:
        """复合语句头部：从关键字到冒号"""
        colon = find_colon(node)
        if colon is not None:
            end = colon.end_point
        else:
            block = self._block_of(node)
            end = block.start_point if block is not None else node.end_point
        return self._range(node.start_point, end)

    def _range(self, start_point, end_point) -> SourceRange:
        start = point_to_position(self.source_lines, start_point)
        end = point_to_position(self.source_lines, end_point)
        return SourceRange(start[0], start[1], end[0], end[1])


class DependencyAnalyzer(BaseAnalyzer):
    """单元依赖分析器"""

    def analyze(self, unit: CodeUnit, tree=None) -> List[StatementFact]:
        """
        分析单元，生成语句信息
        Args:
            unit: 代码单元
            tree: 已解析的语法树（Tree 或根节点），为空时自行解析
        Returns:
            语句信息列表；非代码单元或解析失败时为空
        """
        if not unit.is_code:
            return []

        root = getattr(tree, 'root_node', tree) if tree is not None else self.parse_code(unit.source_text)
        if root.has_error:
            logger.warning(f"单元 {unit.id} 存在语法错误，作为无依赖节点记录")
            return []

        builder = _FactBuilder(unit, self.prepare_source(unit.source_text))
        builder.visit_block(statement_children(root), None, ())
        facts = builder.build()
        logger.debug(f"单元 {unit.id} 分析得到 {len(facts)} 条语句")
        return facts

    def analyze_unit(self, unit: CodeUnit, tree=None) -> Tuple[CodeUnit, List[StatementFact]]:
        """分析单元；解析失败时将单元标记为执行失败"""
        if not unit.is_code:
            return unit, []
        root = getattr(tree, 'root_node', tree) if tree is not None else self.parse_code(unit.source_text)
        if root.has_error and unit.executed_successfully:
            unit = replace(unit, executed_successfully=False)
        return unit, self.analyze(unit, root)
