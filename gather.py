#!/usr/bin/env python3
"""
代码收集工具
重放笔记本（.ipynb）或按 "# %%" 分隔的脚本，输出重现某个单元所需的最少代码

使用方法: python gather.py <笔记本或脚本> [选项]
"""

import argparse
import json
import logging
import re
import sys
from typing import List, Optional, Tuple

from execution_slicer import ExecutionHistory, GatherConfig, join_fragments, setup_logging
from cell_analysis import visualize_dependency_graph

# 配置日志
logger = logging.getLogger(__name__)

_CELL_MARKER = re.compile(r'^#\s*%%.*$', re.MULTILINE)

# (单元标识, 源码, 是否成功, 执行计数)
Execution = Tuple[str, str, bool, Optional[int]]


def cell_id(position: int) -> str:
    return f"cell-{position}"


def read_notebook(path: str) -> List[Execution]:
    """按执行计数顺序读取笔记本中已执行的代码单元，输出中含 error 的视为执行失败"""
    with open(path, 'r', encoding='utf-8') as f:
        notebook = json.load(f)

    executions = []
    for position, cell in enumerate(notebook.get('cells', [])):
        if cell.get('cell_type') != 'code' or cell.get('execution_count') is None:
            continue
        source = cell.get('source', '')
        if isinstance(source, list):
            source = ''.join(source)
        failed = any(output.get('output_type') == 'error' for output in cell.get('outputs', []))
        executions.append((cell_id(position), source, not failed, cell['execution_count']))

    executions.sort(key=lambda execution: execution[3])
    return executions


def read_script(path: str) -> List[Execution]:
    """按 "# %%" 标记切分脚本，按文件顺序作为成功的执行"""
    with open(path, 'r', encoding='utf-8') as f:
        code = f.read()

    cells = [cell.strip("\n") for cell in _CELL_MARKER.split(code) if cell.strip()]
    return [(cell_id(position), cell, True, position + 1) for position, cell in enumerate(cells)]


def replay(executions: List[Execution], config: GatherConfig) -> ExecutionHistory:
    """把读取到的执行依次交给执行历史"""
    history = ExecutionHistory(config)
    for context_id, source, successful, execution_count in executions:
        history.on_execution_finished(source, successful, context_id, execution_count)
    return history


def main(argv=None) -> int:
    """主函数"""
    parser = argparse.ArgumentParser(
        description='笔记本代码收集工具',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
使用示例:
  python gather.py analysis.ipynb                # 收集最后执行的单元
  python gather.py analysis.ipynb --cell 3       # 收集第3个单元（从0开始）
  python gather.py script.py --mode exact        # 只输出切片中的精确文本
  python gather.py script.py --graph deps        # 同时输出依赖图 deps.dot
        """
    )

    parser.add_argument('path', help='笔记本(.ipynb)或带 "# %%" 标记的脚本')
    parser.add_argument('--cell', type=int,
                        help='目标单元在文件中的位置（从0开始），默认为最后执行的单元')
    parser.add_argument('--mode', choices=['exact', 'lines'],
                        help='渲染模式，默认取配置')
    parser.add_argument('--graph', type=str,
                        help='把依赖图保存为指定文件名的 .dot')
    parser.add_argument('--config', type=str,
                        help='JSON配置文件，默认从环境变量和 .env 读取')
    parser.add_argument('--log-level', type=str,
                        help='日志级别 (DEBUG, INFO, WARNING, ERROR)')

    args = parser.parse_args(argv)

    try:
        config = GatherConfig.from_file(args.config) if args.config else GatherConfig.from_env()
        if args.log_level:
            config.log_level = args.log_level
            config.validate()
    except (ValueError, FileNotFoundError) as e:
        print(f"错误：{e}", file=sys.stderr)
        return 2

    setup_logging(getattr(logging, config.log_level), stream=sys.stderr)

    try:
        if args.path.endswith('.ipynb'):
            executions = read_notebook(args.path)
        else:
            executions = read_script(args.path)
    except FileNotFoundError:
        print(f"错误：文件 '{args.path}' 不存在", file=sys.stderr)
        return 1
    except (OSError, json.JSONDecodeError) as e:
        print(f"错误：无法读取文件 '{args.path}': {e}", file=sys.stderr)
        return 1

    if not executions:
        print(f"错误：'{args.path}' 中没有已执行的代码单元", file=sys.stderr)
        return 1

    logger.info(f"重放 {len(executions)} 次执行: {args.path}")
    history = replay(executions, config)

    target = cell_id(args.cell) if args.cell is not None else executions[-1][0]
    sliced = history.request_slice(target)
    if not sliced:
        print(f"错误：单元 {target} 没有可收集的代码", file=sys.stderr)
        return 1

    print(join_fragments(history.render(sliced, args.mode)))

    if args.graph:
        visualize_dependency_graph(history.dependency_graph(), args.graph, pdf=False)
        logger.info(f"依赖图已保存到: {args.graph}.dot")

    return 0


if __name__ == "__main__":
    sys.exit(main())
