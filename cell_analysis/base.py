#!/usr/bin/env python3
"""
基础分析器模块

提供基于tree-sitter的Python单元解析
"""

import tree_sitter_python as tspython
from tree_sitter import Language, Parser

from .utils import mask_magics


class BaseAnalyzer:
    """基础分析器"""

    def __init__(self, mask_ipython_magics: bool = True):
        """
        初始化分析器
        Args:
            mask_ipython_magics: 解析前是否屏蔽IPython魔法命令行
        """
        self.language = Language(tspython.language())
        self.parser = Parser(self.language)
        self.mask_ipython_magics = mask_ipython_magics

    def prepare_source(self, code: str) -> str:
        """解析前的源码预处理"""
        if self.mask_ipython_magics:
            return mask_magics(code)
        return code

    def parse_code(self, code: str):
        """解析代码，返回语法树根节点"""
        tree = self.parser.parse(bytes(self.prepare_source(code), 'utf-8'))
        return tree.root_node

    def check_syntax(self, code: str) -> bool:
        """检查语法错误，存在错误时返回True"""
        return self.parse_code(code).has_error
