#!/usr/bin/env python3
"""
语句节点处理模块

从tree-sitter语句节点中提取定义(defs)与使用(uses)的变量名
"""

from typing import Optional, Set, Tuple

from .utils import (
    ATOMIC_STATEMENT_TYPES, CLAUSE_TYPES, COMPREHENSION_TYPES,
    HEADER_STATEMENT_TYPES, statement_children, text
)

# 这些节点中的标识符不是变量名
_NON_NAME_TYPES = {
    'dotted_name', 'aliased_import', 'relative_import', 'import_prefix',
    'comment', 'string_start', 'string_content', 'string_end', 'escape_sequence',
    'global_statement', 'nonlocal_statement'
}

# 赋值目标中的解包结构
_TARGET_CONTAINERS = {
    'pattern_list', 'tuple_pattern', 'list_pattern', 'tuple', 'list',
    'expression_list', 'parenthesized_expression', 'list_splat_pattern',
    'list_splat', 'as_pattern_target'
}


class StatementNode:
    """单条语句的定义-使用信息"""

    def __init__(self, tree_sitter_node, header_only: bool = True):
        """
        从tree-sitter语句节点创建分析节点
        Args:
            tree_sitter_node: tree-sitter解析的语句节点
            header_only: 复合语句是否只分析头部（条件、循环目标等）
        """
        self.type = tree_sitter_node.type
        self.line = tree_sitter_node.start_point[0] + 1
        self.reads: Set[str] = set()    # 读取的变量
        self.writes: Set[str] = set()   # 绑定的变量
        self.updates: Set[str] = set()  # 原地修改的变量（既读又写）

        if self.type in ATOMIC_STATEMENT_TYPES:
            self._get_atomic_def_use_info(tree_sitter_node)
        elif self.type in HEADER_STATEMENT_TYPES or self.type in CLAUSE_TYPES:
            self._get_branch_condition_def_use_info(tree_sitter_node)
            if not header_only:
                self._get_nested_block_info(tree_sitter_node)
        else:
            self._get_def_use_info(tree_sitter_node)

    @property
    def defs(self) -> Set[str]:
        return self.writes | self.updates

    @property
    def uses(self) -> Set[str]:
        return self.reads | self.updates

    def _get_def_use_info(self, node):
        """简单语句的定义和使用信息"""
        if node.type == 'expression_statement':
            for child in node.named_children:
                self._collect_expression_statement(child)
        elif node.type == 'import_statement':
            for name in node.children_by_field_name('name'):
                self.writes.add(self._import_binding(name, from_import=False))
        elif node.type == 'import_from_statement':
            # 通配符导入无法得知绑定了哪些名字
            for name in node.children_by_field_name('name'):
                self.writes.add(self._import_binding(name, from_import=True))
        elif node.type in ('future_import_statement', 'pass_statement',
                           'break_statement', 'continue_statement'):
            pass
        else:
            self._collect_reads(node, self.reads)

    def _collect_expression_statement(self, node):
        """表达式语句：赋值、增量赋值、方法调用或普通表达式"""
        if node.type == 'assignment':
            self._collect_assignment(node)
        elif node.type == 'augmented_assignment':
            # total += i 先读取旧值再重新绑定
            targets: Set[str] = set()
            self._collect_targets(node.child_by_field_name('left'), targets)
            self.reads.update(targets)
            self.writes.update(targets)
            self._collect_reads(node.child_by_field_name('right'), self.reads)
        elif node.type == 'call':
            function = node.child_by_field_name('function')
            if function is not None and function.type == 'attribute':
                # lst.append(x) 的返回值被丢弃，视为修改接收者
                base = self._base_name(function)
                if base:
                    self.updates.add(base)
            self._collect_reads(node, self.reads)
        else:
            self._collect_reads(node, self.reads)

    def _collect_assignment(self, node):
        """赋值语句，右侧先于目标求值"""
        right = node.child_by_field_name('right')
        type_node = node.child_by_field_name('type')
        if type_node is not None:
            self._collect_reads(type_node, self.reads)
        if right is None:
            # x: int 只有注解，不绑定变量
            return
        if right.type == 'assignment':
            self._collect_assignment(right)
        else:
            self._collect_reads(right, self.reads)
        self._collect_targets(node.child_by_field_name('left'), self.writes)

    def _collect_targets(self, node, writes: Set[str]):
        """收集赋值目标中绑定的变量"""
        if node is None:
            return
        if node.type == 'identifier':
            writes.add(text(node))
        elif node.type in _TARGET_CONTAINERS:
            for child in node.named_children:
                self._collect_targets(child, writes)
        elif node.type in ('attribute', 'subscript'):
            # d[k] = v / obj.x = v 修改的是基础对象
            base = self._base_name(node)
            if base:
                self.updates.add(base)
            self._collect_reads(node, self.reads)
        else:
            self._collect_reads(node, self.reads)

    def _base_name(self, node) -> Optional[str]:
        """获取属性、下标或调用链最底层的变量名"""
        while node is not None and node.type in ('attribute', 'subscript', 'call'):
            if node.type == 'attribute':
                node = node.child_by_field_name('object')
            elif node.type == 'subscript':
                node = node.child_by_field_name('value')
            else:
                node = node.child_by_field_name('function')
        if node is not None and node.type == 'identifier':
            return text(node)
        return None

    def _import_binding(self, name_node, from_import: bool) -> str:
        """import语句绑定的名字"""
        if name_node.type == 'aliased_import':
            return text(name_node.child_by_field_name('alias'))
        name = text(name_node)
        if from_import:
            return name
        # import a.b.c 绑定的是 a
        return name.split('.')[0]

    def _collect_reads(self, node, reads: Set[str], writes: Optional[Set[str]] = None):
        """收集表达式中读取的变量名"""
        if node is None or node.type in _NON_NAME_TYPES:
            return
        if writes is None:
            writes = self.writes

        if node.type == 'identifier':
            reads.add(text(node))
        elif node.type == 'attribute':
            self._collect_reads(node.child_by_field_name('object'), reads, writes)
        elif node.type == 'keyword_argument':
            self._collect_reads(node.child_by_field_name('value'), reads, writes)
        elif node.type == 'named_expression':
            # 海象运算符绑定到外层作用域
            self._collect_reads(node.child_by_field_name('value'), reads, writes)
            self._collect_targets(node.child_by_field_name('name'), writes)
        elif node.type == 'lambda':
            self._collect_lambda_reads(node, reads)
        elif node.type in COMPREHENSION_TYPES:
            self._collect_comprehension_reads(node, reads, writes)
        elif node.type in ATOMIC_STATEMENT_TYPES:
            nested = StatementNode(node)
            reads.update(nested.uses)
            writes.update(nested.writes)
        else:
            for child in node.children:
                self._collect_reads(child, reads, writes)

    def _collect_lambda_reads(self, node, reads: Set[str]):
        """lambda参数是局部变量，只保留自由变量"""
        params = self._collect_parameter_names(node.child_by_field_name('parameters'), reads)
        body_reads: Set[str] = set()
        self._collect_reads(node.child_by_field_name('body'), body_reads, set())
        reads.update(body_reads - params)

    def _collect_comprehension_reads(self, node, reads: Set[str], writes: Set[str]):
        """推导式的循环变量是局部变量"""
        inner_reads: Set[str] = set()
        local: Set[str] = set()
        for child in node.named_children:
            if child.type == 'for_in_clause':
                self._collect_local_targets(child.child_by_field_name('left'), local)
                self._collect_reads(child.child_by_field_name('right'), inner_reads, writes)
            else:
                self._collect_reads(child, inner_reads, writes)
        reads.update(inner_reads - local)

    def _collect_local_targets(self, node, local: Set[str]):
        """收集局部绑定的标识符"""
        if node is None:
            return
        if node.type == 'identifier':
            local.add(text(node))
        for child in node.named_children:
            self._collect_local_targets(child, local)

    def _collect_parameter_names(self, params, reads: Set[str]) -> Set[str]:
        """
        收集参数名，默认值和注解在外层作用域求值，计入reads
        Args:
            params: parameters 或 lambda_parameters 节点
            reads: 外层读取集合
        Returns:
            参数名集合
        """
        names: Set[str] = set()
        if params is None:
            return names
        for param in params.named_children:
            if param.type == 'identifier':
                names.add(text(param))
            elif param.type in ('list_splat_pattern', 'dictionary_splat_pattern'):
                self._collect_local_targets(param, names)
            elif param.type == 'typed_parameter':
                for child in param.named_children:
                    if child == param.child_by_field_name('type'):
                        self._collect_reads(child, reads, set())
                    else:
                        self._collect_local_targets(child, names)
            elif param.type in ('default_parameter', 'typed_default_parameter'):
                self._collect_local_targets(param.child_by_field_name('name'), names)
                self._collect_reads(param.child_by_field_name('type'), reads, set())
                self._collect_reads(param.child_by_field_name('value'), reads, set())
        return names

    def _get_branch_condition_def_use_info(self, node):
        """复合语句头部（条件、循环目标、with/except 绑定）的定义和使用信息"""
        if node.type in ('if_statement', 'elif_clause', 'while_statement'):
            self._collect_reads(node.child_by_field_name('condition'), self.reads)
        elif node.type == 'for_statement':
            self._get_for_statement_def_use_info(node)
        elif node.type == 'with_statement':
            for item in self._with_items(node):
                self._collect_binding_item(item.child_by_field_name('value'))
        elif node.type in ('except_clause', 'except_group_clause'):
            self._get_except_clause_def_use_info(node)

    def _get_for_statement_def_use_info(self, node):
        """for 循环：迭代对象是使用，循环目标是定义"""
        self._collect_reads(node.child_by_field_name('right'), self.reads)
        self._collect_targets(node.child_by_field_name('left'), self.writes)

    def _with_items(self, node) -> list:
        """with 语句头部中的所有 with_item"""
        items = []
        for child in node.children:
            if child.type == 'block':
                break
            if child.type == 'with_clause':
                items.extend(c for c in child.named_children if c.type == 'with_item')
            elif child.type == 'with_item':
                items.append(child)
        return items

    def _collect_binding_item(self, node):
        """处理 `expr as target` 结构"""
        if node is None:
            return
        if node.type == 'as_pattern':
            alias = node.child_by_field_name('alias')
            for child in node.named_children:
                if child == alias:
                    self._collect_targets(child, self.writes)
                else:
                    self._collect_reads(child, self.reads)
        else:
            self._collect_reads(node, self.reads)

    def _get_except_clause_def_use_info(self, node):
        """except 子句：异常类型是使用，as 后的名字是定义"""
        after_as = False
        for child in node.children:
            if child.type == 'block':
                break
            if child.type == 'as':
                after_as = True
            elif not child.is_named:
                continue
            elif after_as:
                self._collect_targets(child, self.writes)
                after_as = False
            else:
                self._collect_binding_item(child)

    def _get_nested_block_info(self, node):
        """把复合语句体内所有语句的信息并入当前节点"""
        for child in node.named_children:
            if child.type == 'block':
                for statement in statement_children(child):
                    self._merge(StatementNode(statement, header_only=False))
            elif child.type in CLAUSE_TYPES:
                self._merge(StatementNode(child, header_only=False))

    def _merge(self, other: 'StatementNode'):
        self.reads.update(other.reads)
        self.writes.update(other.writes)
        self.updates.update(other.updates)

    def _get_atomic_def_use_info(self, node):
        """函数、类、match 语句整体建模"""
        if node.type == 'decorated_definition':
            for child in node.named_children:
                if child.type == 'decorator':
                    self._collect_reads(child, self.reads)
            definition = node.child_by_field_name('definition')
            if definition is not None:
                self._get_atomic_def_use_info(definition)
        elif node.type == 'function_definition':
            self._get_function_def_use_info(node)
        elif node.type == 'class_definition':
            self._get_class_def_use_info(node)
        elif node.type == 'match_statement':
            self._get_match_def_use_info(node)

    def _get_function_def_use_info(self, node):
        """函数定义：定义函数名，使用函数体中的自由变量"""
        name = text(node.child_by_field_name('name'))
        params = self._collect_parameter_names(node.child_by_field_name('parameters'), self.reads)
        self._collect_reads(node.child_by_field_name('return_type'), self.reads)
        free = self._scope_free_names(node.child_by_field_name('body'))
        self.reads.update(free - params - {name})
        self.writes.add(name)

    def _get_class_def_use_info(self, node):
        """类定义：定义类名，使用基类和类体中的自由变量"""
        name = text(node.child_by_field_name('name'))
        self._collect_reads(node.child_by_field_name('superclasses'), self.reads)
        free = self._scope_free_names(node.child_by_field_name('body'))
        self.reads.update(free - {name})
        self.writes.add(name)

    def _get_match_def_use_info(self, node):
        """match 语句立即执行，case 体中的绑定是模块级定义"""
        self._collect_reads(node.child_by_field_name('subject'), self.reads)
        body = node.child_by_field_name('body')
        if body is None:
            return
        for case in body.named_children:
            if case.type != 'case_clause':
                continue
            for child in case.named_children:
                if child.type == 'block':
                    for statement in statement_children(child):
                        self._merge(StatementNode(statement, header_only=False))
                elif child.type in ('if_clause', 'guard'):
                    self._collect_reads(child, self.reads)

    def _scope_free_names(self, block) -> Set[str]:
        """计算新作用域（函数体、类体）中读取的外部变量"""
        scope = _Scope()
        if block is not None:
            for statement in statement_children(block):
                scope.add(statement)
        return scope.free_names()


class _Scope:
    """函数体/类体的名字汇总"""

    def __init__(self):
        self.reads: Set[str] = set()
        self.local: Set[str] = set()
        self.declared: Set[str] = set()  # global / nonlocal 声明

    def add(self, statement):
        if statement.type in ('global_statement', 'nonlocal_statement'):
            self.declared.update(text(c) for c in statement.named_children
                                 if c.type == 'identifier')
            return
        info = StatementNode(statement, header_only=False)
        self.reads.update(info.uses)
        self.local.update(info.writes)

    def free_names(self) -> Set[str]:
        return self.reads - (self.local - self.declared)


def statement_def_use(tree_sitter_node, header_only: bool = True) -> Tuple[Set[str], Set[str]]:
    """返回语句的 (defs, uses)"""
    info = StatementNode(tree_sitter_node, header_only=header_only)
    return info.defs, info.uses
