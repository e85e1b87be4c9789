"""文本处理工具模块。

提供终端输出截断等文本处理功能（用于日志记录）。
"""


def truncate_term_out(term_out: str, max_len: int = 3500) -> str:
    """截断终端输出，保留头部和尾部关键信息。

    头部通常是导入/初始化输出，尾部包含最终结果和报错信息，
    中间部分优先截断。

    Args:
        term_out: 终端输出原文
        max_len: 最大字符数（头部占 3/7，尾部占 4/7）

    Returns:
        截断后的字符串（未超限时原样返回）
    """
    if not term_out or len(term_out) <= max_len:
        return term_out or ""

    head_len = max_len * 3 // 7
    tail_len = max_len - head_len
    omitted = len(term_out) - head_len - tail_len
    return (
        term_out[:head_len]
        + f"\n\n... ({omitted} chars truncated) ...\n\n"
        + term_out[-tail_len:]
    )


def describe_line_count(line_count: int | None) -> str:
    """把行数参数转换为日志用的描述（None 表示全部）。"""
    return "ALL" if line_count is None else str(line_count)
