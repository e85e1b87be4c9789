"""
工具调用参数修复模块。

LLM 生成的 code 参数偶尔不是纯代码，而是一段泄漏的 JSON 调用片段，例如：
    {"code": "import os\\nprint(os.listdir('data'))"}
这里只做针对该形态的文本修复，不是 JSON 解析器。
"""

from utils.logger_system import log_msg


CODE_MARKER = '"code": "'


def needs_repair(code: str) -> bool:
    """参数中是否包含泄漏的 JSON 片段。"""
    return CODE_MARKER in code


def repair_code_argument(code: str) -> str:
    """修复被 JSON 包裹的 code 参数。

    步骤:
        1. 在第一个 `"code": "` 处切分，取其后内容
        2. 去除首尾空白
        3. 去掉一个结尾的 `}`，再去掉一个结尾的 `"`
        4. 把字面量 `\\n` 替换为真实换行

    未匹配时原样返回。

    Args:
        code: 原始参数

    Returns:
        修复后的代码

    Examples:
        >>> repair_code_argument('{"code": "print(1+1)"}')
        'print(1+1)'
    """
    if not needs_repair(code):
        return code

    log_msg("WARNING", "检测到被 JSON 包裹的 code 参数，尝试修复")

    code = code.split(CODE_MARKER, 1)[1].strip()
    if code.endswith("}"):
        code = code[:-1].strip()
    if code.endswith('"'):
        code = code[:-1].strip()

    return code.replace("\\n", "\n")
