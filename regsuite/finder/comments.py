"""Comment extraction strategies, selected by file extension."""

import re
from typing import Dict, Iterable, Iterator, List, NamedTuple, Optional, Protocol


class Comment(NamedTuple):
    """Body of one comment with decoration removed, and its first line number."""

    text: str
    line: int


class CommentStrategy(Protocol):
    """Yields the comments of a source file in order."""

    def comments(self, source: str) -> Iterator[Comment]:
        ...


class BlockCommentStrategy:
    """``/* ... */`` comments of Java-like sources.

    Line comments and string or character literals are skipped so that a
    ``/*`` inside them does not start a comment. The leading ``*`` of each
    continuation line is stripped.
    """

    def comments(self, source: str) -> Iterator[Comment]:
        i, line, n = 0, 1, len(source)
        while i < n:
            ch = source[i]
            if ch == "\n":
                line += 1
                i += 1
            elif source.startswith("//", i):
                end = source.find("\n", i)
                i = n if end == -1 else end
            elif source.startswith("/*", i):
                end = source.find("*/", i + 2)
                body = source[i + 2:] if end == -1 else source[i + 2:end]
                yield Comment(_strip_stars(body), line)
                line += body.count("\n")
                i = n if end == -1 else end + 2
            elif ch in "\"'":
                i, line = _skip_literal(source, i, line)
            else:
                i += 1


def _skip_literal(source: str, i: int, line: int):
    quote = source[i]
    if source.startswith('"""', i):
        end = source.find('"""', i + 3)
        end = len(source) if end == -1 else end + 3
        return end, line + source.count("\n", i, end)
    i += 1
    while i < len(source):
        ch = source[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote or ch == "\n":
            # an unterminated literal ends at the line break
            return (i + 1 if ch == quote else i), line
        i += 1
    return i, line


def _strip_stars(body: str) -> str:
    lines = []
    for raw in body.split("\n"):
        stripped = raw.lstrip()
        if stripped.startswith("*"):
            stripped = stripped[1:]
        lines.append(stripped)
    return "\n".join(lines)


class ShellCommentStrategy:
    """Runs of consecutive ``#`` lines form one comment."""

    def comments(self, source: str) -> Iterator[Comment]:
        current: List[str] = []
        start = 0
        for number, raw in enumerate(source.splitlines(), start=1):
            stripped = raw.lstrip()
            if stripped.startswith("#") and not stripped.startswith("#!"):
                if not current:
                    start = number
                current.append(stripped[1:])
                continue
            if current:
                yield Comment("\n".join(current), start)
                current = []
        if current:
            yield Comment("\n".join(current), start)


class HtmlCommentStrategy:
    """``<!-- ... -->`` comments."""

    _COMMENT = re.compile(r"<!--(.*?)-->", re.DOTALL)

    def comments(self, source: str) -> Iterator[Comment]:
        for match in self._COMMENT.finditer(source):
            yield Comment(match.group(1), source.count("\n", 0, match.start()) + 1)


class CommentStrategyRegistry:
    """Explicit extension to comment-strategy table."""

    def __init__(self, strategies: Optional[Dict[str, CommentStrategy]] = None) -> None:
        self._strategies: Dict[str, CommentStrategy] = dict(strategies or {})

    @classmethod
    def default(cls) -> "CommentStrategyRegistry":
        block = BlockCommentStrategy()
        return cls({
            ".java": block,
            ".jasm": block,
            ".jcod": block,
            ".sh": ShellCommentStrategy(),
            ".html": HtmlCommentStrategy(),
        })

    def register(self, extension: str, strategy: CommentStrategy) -> "CommentStrategyRegistry":
        self._strategies[extension] = strategy
        return self

    def restrict(self, extensions: Iterable[str]) -> "CommentStrategyRegistry":
        """Registry limited to ``extensions``; unknown ones are ignored."""
        return CommentStrategyRegistry(
            {ext: s for ext, s in self._strategies.items() if ext in set(extensions)}
        )

    def for_extension(self, extension: str) -> Optional[CommentStrategy]:
        return self._strategies.get(extension)

    @property
    def extensions(self) -> List[str]:
        return sorted(self._strategies)

    def __contains__(self, extension: str) -> bool:
        return extension in self._strategies
