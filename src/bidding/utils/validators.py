"""Input validation helpers for the CLI.

Functions:
- resolve_project_id(prefix, candidates) -> str: Resolve prefix to unique project_id
- parse_path(text) -> tuple[int, ...]: Parse "0.1.2" into an outline path
"""


class AmbiguousProjectIdError(Exception):
    """Raised when a project_id prefix matches multiple projects."""

    def __init__(self, prefix: str, candidates: list[str]):
        self.prefix = prefix
        self.candidates = candidates
        super().__init__(
            f"前缀 '{prefix}' 不唯一，候选项目：\n"
            + "\n".join(f"  - {c}" for c in candidates)
        )


class ProjectIdNotFoundError(Exception):
    """Raised when no project matches the given prefix."""

    def __init__(self, prefix: str):
        self.prefix = prefix
        super().__init__(f"未找到前缀为 '{prefix}' 的项目")


class InvalidPathError(ValueError):
    """Raised when an outline path string cannot be parsed."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"无效的章节路径 '{text}'，应为以点分隔的非负整数，如 0.1.2")


def resolve_project_id(prefix: str, candidates: list[str]) -> str:
    """Resolve a project_id prefix to a unique full project_id.

    Raises:
        ProjectIdNotFoundError: If no candidates match the prefix
        AmbiguousProjectIdError: If multiple candidates match the prefix
    """
    if prefix in candidates:
        return prefix

    matches = sorted(c for c in candidates if c.startswith(prefix))

    if len(matches) == 0:
        raise ProjectIdNotFoundError(prefix)
    elif len(matches) == 1:
        return matches[0]
    else:
        raise AmbiguousProjectIdError(prefix, matches)


def parse_path(text: str) -> tuple[int, ...]:
    """Parse a dotted outline path.

    Examples:
        "0" -> (0,)
        "0.1.2" -> (0, 1, 2)

    Raises:
        InvalidPathError: If any component is not a non-negative integer
    """
    parts = text.strip().split(".")
    if not all(part.isascii() and part.isdigit() for part in parts):
        raise InvalidPathError(text)
    return tuple(int(part) for part in parts)


def format_path(path: tuple[int, ...]) -> str:
    return ".".join(str(i) for i in path)
