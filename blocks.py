"""
Parser-free block boundary scanning and complexity estimation.

Method and function bodies are located by counting block openers and
closers line by line instead of building a syntax tree. Keywords and braces
inside string literals or comments are counted like any other text, so a
comment such as ``# do this if needed`` can shift the depth of the
enclosing block. Results are approximate.
"""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum

from models import Block


# ---------------------------------------------------------------------------
# Block kinds
# ---------------------------------------------------------------------------
class Opener(Enum):
    """Every construct the scanner treats as opening a nested block."""

    DEF = "def"
    CLASS = "class"
    MODULE = "module"
    BEGIN = "begin"
    CASE = "case"
    DO = "do"
    IF = "if"
    UNLESS = "unless"
    WHILE = "while"
    UNTIL = "until"
    FOR = "for"
    BRACE = "{"

    @property
    def closer(self) -> str:
        """Token that closes this kind of block."""
        return "}" if self is Opener.BRACE else "end"


def split_lines(content: str) -> list[str]:
    """Split file content into lines without their terminators.

    A trailing newline does not produce an extra empty line.
    """
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line.rstrip("\r") for line in lines]


# ---------------------------------------------------------------------------
# Per-language syntax
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class BlockSyntax:
    """How one language marks units, openers and closers."""

    language: str
    unit_patterns: tuple[re.Pattern[str], ...]
    opener_patterns: tuple[tuple[Opener, re.Pattern[str]], ...]
    closer_pattern: re.Pattern[str]
    excluded_names: frozenset[str] = frozenset()
    one_liner: Callable[[str], bool] | None = None

    def unit_name(self, line: str) -> str | None:
        """Name of the unit opened on *line*, or None."""
        for pattern in self.unit_patterns:
            match = pattern.match(line)
            if match and match.group(1) not in self.excluded_names:
                return match.group(1)
        return None

    def openers(self, line: str) -> list[Opener]:
        found: list[Opener] = []
        for kind, pattern in self.opener_patterns:
            found.extend(kind for _ in pattern.finditer(line))
        if self.language == "ruby":
            if Opener.DO in found and _RUBY_LOOP_START.match(line):
                # `while cond do` -- the do belongs to the loop keyword
                found.remove(Opener.DO)
            if Opener.DEF in found and _RUBY_ENDLESS_DEF.match(line):
                found.remove(Opener.DEF)
        return found

    def closers(self, line: str) -> int:
        return len(self.closer_pattern.findall(line))

    def counts(self, line: str) -> tuple[int, int]:
        return len(self.openers(line)), self.closers(line)

    def is_one_liner(self, line: str) -> bool:
        return self.one_liner is not None and self.one_liner(line)


_RUBY_LOOP_START = re.compile(r"^\s*(?:while|until|for)\b")
_RUBY_ENDLESS_DEF = re.compile(
    r"^\s*(?:(?:private|protected|public)\s+)?def\s+[\w.?!]+(?:\([^)]*\)\s*|\s+)=(?![=~>(])"
)

# Conditionals only open a block at the start of a statement; the modifier
# form (`return if x`) has no matching `end`.
_RUBY_STATEMENT_START = r"(?:^\s*|[=(\[,;]\s*|\|\|\s*|&&\s*)"

RUBY_SYNTAX = BlockSyntax(
    language="ruby",
    one_liner=lambda line: bool(_RUBY_ENDLESS_DEF.match(line)),
    unit_patterns=(
        re.compile(
            r"^\s*(?:(?:private|protected|public|module_function)\s+)?"
            r"def\s+(?:self\.)?([^\s(;]+)"
        ),
    ),
    opener_patterns=tuple(
        (kind, re.compile(rf"(?<![\w.:]){kind.value}\b(?![?!:])"))
        for kind in (
            Opener.DEF,
            Opener.CLASS,
            Opener.MODULE,
            Opener.BEGIN,
            Opener.CASE,
            Opener.DO,
        )
    )
    + tuple(
        (kind, re.compile(rf"{_RUBY_STATEMENT_START}{kind.value}\b(?![?!:])"))
        for kind in (
            Opener.IF,
            Opener.UNLESS,
            Opener.WHILE,
            Opener.UNTIL,
            Opener.FOR,
        )
    ),
    closer_pattern=re.compile(r"(?<![\w.:])end\b(?![?!:])"),
)

_JS_IDENT = r"[A-Za-z_$][\w$]*"
_JS_EXPRESSION_ARROW = re.compile(r"=>\s*[^\s{]")


def _js_one_liner(line: str) -> bool:
    if "{" in line:
        return False
    return bool(_JS_EXPRESSION_ARROW.search(line)) or line.rstrip().endswith(";")


JS_SYNTAX = BlockSyntax(
    language="javascript",
    unit_patterns=(
        re.compile(
            rf"^\s*(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s*({_JS_IDENT})\s*\("
        ),
        re.compile(
            rf"^\s*(?:export\s+)?(?:const|let|var)\s+({_JS_IDENT})\s*=\s*(?:async\s+)?"
            rf"(?:function\b|\([^()]*\)\s*=>|{_JS_IDENT}\s*=>)"
        ),
        re.compile(rf"^\s*({_JS_IDENT})\s*:\s*(?:async\s+)?function\b"),
        re.compile(
            rf"^\s*(?:async\s+)?(?:static\s+)?(?:get\s+|set\s+)?({_JS_IDENT})\s*\([^()]*\)\s*\{{"
        ),
    ),
    opener_patterns=((Opener.BRACE, re.compile(r"\{")),),
    closer_pattern=re.compile(r"\}"),
    excluded_names=frozenset(
        {"if", "for", "while", "switch", "catch", "function", "return", "with", "else"}
    ),
    one_liner=_js_one_liner,
)

SYNTAXES: dict[str, BlockSyntax] = {
    "ruby": RUBY_SYNTAX,
    "javascript": JS_SYNTAX,
    "vue": JS_SYNTAX,
}


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------
def _sweep(
    lines: Sequence[str],
    start: int,
    counts: Callable[[int], tuple[int, int]],
    is_unit_start: Callable[[int], bool],
) -> int:
    """Index of the line where the block opened at *start* closes."""
    depth = 0
    opened = False
    last = start
    for index in range(start, len(lines)):
        # No body opened yet: the unit is a single statement
        if not opened and index > start and is_unit_start(index):
            return last
        opens, closes = counts(index)
        depth += opens - closes
        opened = opened or opens > 0
        if opened and depth <= 0:
            return index
        if not opened and lines[index].rstrip().endswith(";"):
            return index
        if lines[index].strip():
            last = index
    # Unterminated: pin to the last line
    return len(lines) - 1


def find_block_end(lines: Sequence[str], start: int, syntax: BlockSyntax) -> int:
    """
    Find the closing line of a block that opens on ``lines[start]``.

    Args:
        lines: File lines (0-based)
        start: Index of the opening line
        syntax: Language rules used to count openers/closers

    Returns:
        0-based index of the closing line; the last line when unterminated
    """
    if syntax.is_one_liner(lines[start]):
        return start
    return _sweep(
        lines,
        start,
        lambda i: syntax.counts(lines[i]),
        lambda i: syntax.unit_name(lines[i]) is not None,
    )


def scan_blocks(content: str, tag: str) -> list[Block]:
    """
    Approximate the method/function blocks of a file.

    One forward pass counts each line's openers/closers and records where
    units open; each unit is then closed by sweeping forward from its own
    opening line. Units are returned in source order, nested units included
    as separate blocks.
    """
    syntax = SYNTAXES.get(tag)
    if syntax is None:
        return []

    lines = split_lines(content)
    line_counts: list[tuple[int, int]] = []
    starts: list[tuple[int, str]] = []

    for index, line in enumerate(lines):
        line_counts.append(syntax.counts(line))
        name = syntax.unit_name(line)
        if name:
            starts.append((index, name))

    unit_starts = {index for index, _ in starts}
    blocks: list[Block] = []
    for start, name in starts:
        if syntax.is_one_liner(lines[start]):
            end = start
        else:
            end = _sweep(
                lines, start, line_counts.__getitem__, unit_starts.__contains__
            )
        blocks.append(
            Block(
                name=name,
                start_line=start + 1,
                end_line=end + 1,
                body="\n".join(lines[start : end + 1]),
            )
        )
    return blocks


# ---------------------------------------------------------------------------
# Complexity
# ---------------------------------------------------------------------------
_BRANCH_PATTERNS: dict[str, re.Pattern[str]] = {
    "ruby": re.compile(r"\b(?:if|elsif|unless|while|until|for|when|rescue)\b(?![?!:])"),
    "javascript": re.compile(r"\b(?:if|while|for|case|catch)\b"),
}
_BRANCH_PATTERNS["vue"] = _BRANCH_PATTERNS["javascript"]

_LOGICAL_OPERATORS = re.compile(r"&&|\|\|")


def estimate_complexity(body: str, tag: str = "ruby") -> int:
    """Approximate cyclomatic complexity: 1 + branch keywords + && / ||."""
    branch = _BRANCH_PATTERNS.get(tag, _BRANCH_PATTERNS["ruby"])
    return 1 + len(branch.findall(body)) + len(_LOGICAL_OPERATORS.findall(body))


def is_high_complexity(score: int, threshold: int = 10) -> bool:
    """Scores strictly above the threshold are flagged."""
    return score > threshold
