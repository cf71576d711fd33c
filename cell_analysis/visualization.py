#!/usr/bin/env python3
"""
可视化模块

把依赖图输出为Graphviz图
"""

import html

import networkx as nx
from graphviz import Digraph

from .graph import EdgeType
from .utils import first_line


def visualize_dependency_graph(graph: nx.DiGraph, filename: str = 'DependencyGraph', pdf: bool = True,
                               dot_format: bool = True, view: bool = False):
    """可视化执行日志依赖图，每个执行单元一个子图"""
    dot = Digraph(comment=filename, strict=True)
    dot.attr(rankdir='TB')
    dot.attr('node', fontname='Arial')
    dot.attr('edge', fontname='Arial')

    # 按执行单元分组
    units = {}
    for key in sorted(graph.nodes):
        units.setdefault(key[0], []).append(key)

    for sequence_number, keys in units.items():
        with dot.subgraph(name=f'cluster_{sequence_number}') as subgraph:
            unit_id = graph.nodes[keys[0]]['unit']
            subgraph.attr(label=f'{unit_id} #{sequence_number}', style='rounded', color='grey')
            for key in keys:
                fact = graph.nodes[key]['fact']
                # 只显示源代码首行
                code_label = html.escape(first_line(fact.text) or '')
                label = f"<{code_label}<SUB>{fact.location.start_line}</SUB>>"
                if fact.body:
                    subgraph.node(_node_id(key), shape='diamond', label=label, style='filled', fillcolor='yellow')
                else:
                    subgraph.node(_node_id(key), shape='rectangle', label=label)

    for source, target, data in graph.edges(data=True):
        if data['type'] is EdgeType.DATA:
            # 数据依赖边：红色虚线
            dot.edge(_node_id(source), _node_id(target),
                     label=', '.join(data['names']), style='dotted', color='red')
        elif data['type'] is EdgeType.CONTROL:
            # 控制依赖边：蓝色实线
            dot.edge(_node_id(source), _node_id(target), color='blue', style='solid')
        else:
            # 异常处理依赖边：橙色虚线
            dot.edge(_node_id(source), _node_id(target), color='orange', style='dashed')

    # 保存.dot文件
    if dot_format:
        with open(f"{filename}.dot", 'w') as f:
            f.write(dot.source)

    # 生成PDF文件
    if pdf:
        dot.render(filename, view=view, cleanup=True)

    return dot


def _node_id(key) -> str:
    return f"{key[0]}_{key[1]}"
