#!/usr/bin/env python3
"""
依赖图模块

把执行日志中的语句及其数据、控制、异常处理依赖导出为 networkx 有向图，
用于检查和可视化
"""

import logging
from enum import Enum

import networkx as nx

logger = logging.getLogger(__name__)


class EdgeType(Enum):
    """边类型枚举"""
    DATA = "DATA"            # 数据依赖边：定义 -> 使用
    CONTROL = "CONTROL"      # 控制依赖边：复合语句头部 -> 语句体
    EXCEPTION = "EXCEPTION"  # 异常处理依赖边：受保护语句 -> 处理子句


def build_dependency_graph(log) -> nx.DiGraph:
    """
    构建执行日志的依赖图
    Args:
        log: 执行日志，需提供迭代 (单元, 语句列表) 和 resolve(语句, 变量名)
    Returns:
        有向图，节点为语句的 (执行序号, 语句编号)，节点属性 fact 为语句信息；
        边从被依赖语句指向依赖它的语句，属性 type 为 EdgeType，names 为涉及的变量名
    """
    graph = nx.DiGraph()

    entries = list(log)
    for unit, facts in entries:
        for fact in facts:
            graph.add_node(fact.key, fact=fact, unit=unit.id, line=fact.location.start_line)

    for unit, facts in entries:
        for fact in facts:
            for name in sorted(fact.uses):
                definition = log.resolve(fact, name)
                if definition is not None:
                    _add_edge(graph, definition.key, fact.key, EdgeType.DATA, name)
            if fact.control_parent is not None:
                _add_edge(graph, facts[fact.control_parent].key, fact.key, EdgeType.CONTROL)
            for index in fact.exception_handler_for:
                _add_edge(graph, facts[index].key, fact.key, EdgeType.EXCEPTION)

    logger.debug(f"依赖图包含 {graph.number_of_nodes()} 个节点, {graph.number_of_edges()} 条边")
    return graph


def _add_edge(graph: nx.DiGraph, source, target, edge_type: EdgeType, name: str = None):
    """同一对语句之间只保留一条边，数据依赖优先并合并变量名"""
    if graph.has_edge(source, target):
        data = graph.edges[source, target]
        if edge_type is EdgeType.DATA:
            data['type'] = EdgeType.DATA
    else:
        graph.add_edge(source, target, type=edge_type, names=[])
        data = graph.edges[source, target]
    if name is not None and name not in data['names']:
        data['names'].append(name)
