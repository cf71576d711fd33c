#!/usr/bin/env python3
"""
单元级程序分析模块

提供Python单元的解析、源码区间、语句定义-使用分析、依赖图构建和可视化功能
"""

from .location import SourceRange, RangeSet, slice_text, exact_text, whole_line_text
from .unit import CodeUnit
from .base import BaseAnalyzer
from .node import StatementNode, statement_def_use
from .analyzer import DependencyAnalyzer, StatementFact
from .graph import EdgeType, build_dependency_graph
from .visualization import visualize_dependency_graph

__all__ = [
    'SourceRange',
    'RangeSet',
    'slice_text',
    'exact_text',
    'whole_line_text',
    'CodeUnit',
    'BaseAnalyzer',
    'StatementNode',
    'statement_def_use',
    'DependencyAnalyzer',
    'StatementFact',
    'EdgeType',
    'build_dependency_graph',
    'visualize_dependency_graph'
]
