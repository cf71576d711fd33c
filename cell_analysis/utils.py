#!/usr/bin/env python3
"""
工具函数模块

提供单元分析所需的基础工具函数
"""

import re
from typing import List, Optional, Tuple


# 复合语句：头部与语句体分开建模
HEADER_STATEMENT_TYPES = {
    'if_statement', 'for_statement', 'while_statement',
    'with_statement', 'try_statement'
}

# 附属子句：依附于复合语句头部
CLAUSE_TYPES = {
    'elif_clause', 'else_clause', 'except_clause',
    'except_group_clause', 'finally_clause'
}

# 整体建模的复合语句（函数体在调用时才执行）
ATOMIC_STATEMENT_TYPES = {
    'function_definition', 'class_definition',
    'decorated_definition', 'match_statement'
}

# 列表/集合/字典推导式与生成器表达式
COMPREHENSION_TYPES = {
    'list_comprehension', 'set_comprehension',
    'dictionary_comprehension', 'generator_expression'
}

# IPython 行魔法与 shell 转义
_MAGIC_LINE = re.compile(r'^\s*(%|!)')


def text(node) -> str:
    """获取tree-sitter节点的文本内容"""
    return node.text.decode('utf-8')


def statement_children(block) -> list:
    """获取语句块中的语句节点（跳过注释）"""
    if block is None:
        return []
    return [child for child in block.named_children if child.type != 'comment']


def find_colon(node):
    """查找复合语句头部结尾的冒号"""
    for child in node.children:
        if child.type == ':':
            return child
    return None


def mask_magics(source: str) -> str:
    """
    将IPython魔法命令所在行替换为等长空白

    行号与列号保持不变，便于源码区间与原始文本对齐
    """
    lines = source.split('\n')
    masked = [' ' * len(line) if _MAGIC_LINE.match(line) else line for line in lines]
    return '\n'.join(masked)


def byte_column_to_char(line: bytes, byte_column: int) -> int:
    """tree-sitter列号为字节偏移，转换为字符偏移"""
    return len(line[:byte_column].decode('utf-8', errors='ignore'))


def point_to_position(source_lines: List[bytes], point) -> Tuple[int, int]:
    """将tree-sitter的(row, column)转换为(1起始行号, 字符列号)"""
    row, column = point[0], point[1]
    if row < len(source_lines):
        column = byte_column_to_char(source_lines[row], column)
    return row + 1, column


def first_line(code: str, limit: int = 50) -> Optional[str]:
    """取代码的第一行，过长时截断"""
    stripped = code.strip()
    if not stripped:
        return None
    line = stripped.split('\n')[0]
    if len(line) > limit:
        line = line[:limit - 3] + "..."
    return line
