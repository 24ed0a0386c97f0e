"""提示词模板加载工具。

模板以 Markdown 文件存放在 prompts/templates 目录，使用 str.format 的
具名占位符（{code}、{diff}）填充。
"""

from pathlib import Path


TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def load_template(name: str) -> str:
    """按名称读取模板文本，例如 "code_request"。"""

    fname = TEMPLATES_DIR / f"{name}.md"
    return fname.read_text(encoding="utf-8")


def build_code_prompt(code: str) -> str:
    """生成“基于现有代码实现新需求”的提示词，code 通常来自 git ls-files 等管道输入。"""

    if code and not code.endswith("\n"):
        code += "\n"
    return load_template("code_request").format(code=code)


def build_pr_prompt(diff: str) -> str:
    """生成 PR 描述提示词，diff 为 git diff 的输出。"""

    if diff and not diff.endswith("\n"):
        diff += "\n"
    return load_template("pr_description").format(diff=diff)
