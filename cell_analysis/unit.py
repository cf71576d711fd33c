#!/usr/bin/env python3
"""
代码单元模块

CodeUnit 是一次执行的不可变快照
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class CodeUnit:
    """一次执行的代码单元"""
    id: str                               # 宿主侧标识（同一单元格重复执行时相同）
    sequence_number: Optional[int]        # 执行顺序号，追加到日志时分配
    source_text: str
    executed_successfully: bool = True
    is_code: bool = True
    execution_count: Optional[int] = None  # 宿主的执行计数（提示符编号）

    @property
    def lines(self) -> List[str]:
        return self.source_text.split('\n')

    def __str__(self) -> str:
        return f"{self.id}#{self.sequence_number}"
