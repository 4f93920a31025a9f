import asyncio
import logging
import os
import re
import subprocess
from datetime import date
from typing import List, Optional, Sequence, Tuple

from models import Commit

logger = logging.getLogger(__name__)

# 字段分隔符: ASCII Unit Separator，提交标题中几乎不会出现
FIELD_SEPARATOR = "\x1f"
# %h 短哈希, %an 作者, %ad 日期 (--date=short), %s 标题
GIT_PRETTY_FORMAT = "%h%x1f%an%x1f%ad%x1f%s"

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
# POSIX 扩展正则中的元字符
_ERE_SPECIAL_RE = re.compile(r"([.\[\]()*+?{}|^$\\])")


def build_author_pattern(author_names: Sequence[str]) -> str:
    """把多个作者名拼成正则选择分支，例如 (Jane Doe|jdoe)"""
    escaped = (_ERE_SPECIAL_RE.sub(r"\\\1", name) for name in author_names)
    return "(" + "|".join(escaped) + ")"


def build_git_log_args(
    git_executable: str,
    repo_path: str,
    since: date,
    until: date,
    author_names: Sequence[str],
) -> List[str]:
    """构建 git log 命令参数 (argv 形式，不经过 shell)"""
    return [
        git_executable,
        "-C",
        repo_path,
        "log",
        f"--since={since:%Y-%m-%d} 00:00:00",
        f"--until={until:%Y-%m-%d} 23:59:59",
        "--date=short",
        f"--pretty=format:{GIT_PRETTY_FORMAT}",
        f"--author={build_author_pattern(author_names)}",
        "--no-merges",
        "--extended-regexp",
    ]


def render_command_line(args: Sequence[str], windows: Optional[bool] = None) -> str:
    """
    把 argv 渲染成可读的命令行 (仅用于日志)。
    Windows 下格式串使用双引号，POSIX 下使用单引号。
    """
    if windows is None:
        windows = os.name == "nt"

    rendered = []
    for arg in args:
        if arg.startswith("--pretty=format:"):
            fmt = arg[len("--pretty=format:") :]
            quote = '"' if windows else "'"
            rendered.append(f"--pretty=format:{quote}{fmt}{quote}")
        elif " " in arg or "|" in arg:
            key, sep, value = arg.partition("=")
            rendered.append(f'{key}{sep}"{value}"' if sep else f'"{arg}"')
        else:
            rendered.append(arg)
    return " ".join(rendered)


def split_lines(output: str) -> List[str]:
    """按 \\r\\n / \\r / \\n 切分输出，并去掉空行"""
    if not output:
        return []
    return [line for line in _LINE_BREAK_RE.split(output.strip()) if line.strip()]


def parse_commit_line(
    line: str, separator: str = FIELD_SEPARATOR, author_email: str = ""
) -> Commit:
    """
    解析单行提交记录: <短哈希><sep><作者><sep><日期><sep><标题>
    只切分前三个分隔符，第三个分隔符之后的内容 (包括其中的分隔符) 都属于标题。
    """
    parts = line.split(separator, 3)
    if len(parts) < 4:
        raise ValueError(f"提交格式异常: {line!r}")

    short_id, author_name, raw_date, message = (part.strip() for part in parts)
    try:
        author_date = date.fromisoformat(raw_date[:10])
    except ValueError as e:
        raise ValueError(f"无法解析提交日期 {raw_date!r}: {line!r}") from e

    return Commit(
        id=short_id,
        author_name=author_name,
        author_email=author_email,
        author_date=author_date,
        message=message,
    )


def parse_git_log(
    log_output: str, author_email: str = "", separator: str = FIELD_SEPARATOR
) -> List[Commit]:
    """解析Git日志输出，格式异常的行会被跳过"""
    commits = []
    for line in split_lines(log_output):
        try:
            commits.append(parse_commit_line(line, separator, author_email))
        except ValueError as e:
            logger.warning(f"⚠️ {e}")
    return commits


async def run_git_command(args: Sequence[str], timeout: float) -> Tuple[int, str, str]:
    """
    异步执行 git 命令，返回 (returncode, stdout, stderr)。
    被取消或超时时会杀掉子进程。
    """
    logger.info(f"执行命令: {render_command_line(args)}")
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except BaseException:
        if process.returncode is None:
            process.kill()
            await process.wait()
        raise

    return (
        process.returncode,
        stdout.decode("utf-8", errors="replace"),
        stderr.decode("utf-8", errors="replace"),
    )


def check_prerequisites(git_executable: str = "git") -> List[str]:
    """检查 git 与 Git Credential Manager 是否可用，返回问题列表"""
    problems = []
    checks = [
        ([git_executable, "--version"], "请确认已正确安装并配置 Git。"),
        (
            [git_executable, "credential-manager", "--version"],
            "请确认已正确安装并配置 Git Credential Manager。",
        ),
    ]
    for cmd, hint in checks:
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
            if result.returncode != 0:
                problems.append(hint)
        except (OSError, subprocess.TimeoutExpired):
            problems.append(hint)
    return problems
