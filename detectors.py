"""
Rule-based detectors, grouped by language tag.

Every detector is a plain function ``FileContext -> list[Finding]``. They
share no state and never look at each other's findings, so any one of them
can be run in isolation. ``register`` files a detector under the language
tags it applies to; ``run_detectors`` runs all detectors for a file's tag in
registration order.

Positive-pattern detectors (encouraging observations) live in a separate
list because they run once per batch, and only when the batch produced no
security or performance findings.
"""

import functools
import logging
import re
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import PurePath

from blocks import JS_SYNTAX, RUBY_SYNTAX, find_block_end, is_high_complexity, split_lines
from classifier import LANGUAGE_TAGS, is_test_path
from config import Config
from models import Block, Finding

logger = logging.getLogger(__name__)

CODE_TAGS = ("ruby", "javascript", "vue")
SCRIPT_TAGS = ("javascript", "vue")
MARKUP_TAGS = ("javascript", "vue", "template")


# ---------------------------------------------------------------------------
# File context
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class FileContext:
    """Everything a detector may look at for one file."""

    path: str
    content: str
    tag: str
    blocks: tuple[Block, ...] = ()
    complexities: tuple[int, ...] = ()
    config: Config = field(default_factory=Config)

    @functools.cached_property
    def lines(self) -> list[str]:
        return split_lines(self.content)

    @property
    def name(self) -> str:
        return PurePath(self.path).name

    @property
    def is_test(self) -> bool:
        return is_test_path(self.path)

    def in_dir(self, fragment: str) -> bool:
        """True when *fragment* (e.g. ``"controllers"``) is a directory of the path."""
        return f"/{fragment}/" in f"/{PurePath(self.path).as_posix()}"

    def line_of(self, offset: int) -> int:
        """1-based line number of a character offset into the content."""
        line = self.content.count("\n", 0, offset) + 1
        return min(line, max(len(self.lines), 1))

    def first_line(self, pattern: re.Pattern[str]) -> int | None:
        match = pattern.search(self.content)
        return self.line_of(match.start()) if match else None

    def finding(
        self,
        category: str,
        severity: str,
        message: str,
        suggestion: str = "",
        line: int | None = None,
    ) -> Finding:
        if line is not None and not self.lines:
            line = None
        return Finding(
            file=self.path,
            line=line,
            category=category,
            severity=severity,
            message=message,
            suggestion=suggestion,
        )


Detector = Callable[[FileContext], list[Finding]]
PositiveDetector = Callable[[FileContext], list[str]]

DETECTORS: dict[str, list[Detector]] = {tag: [] for tag in LANGUAGE_TAGS}
POSITIVE_DETECTORS: list[PositiveDetector] = []


def register(*tags: str):
    """Decorator: add a detector to the registry for each tag."""

    def decorator(func: Detector) -> Detector:
        for tag in tags:
            DETECTORS[tag].append(func)
        return func

    return decorator


def positive(func: PositiveDetector) -> PositiveDetector:
    POSITIVE_DETECTORS.append(func)
    return func


def detectors_for(tag: str) -> list[Detector]:
    return list(DETECTORS.get(tag, ()))


def run_detectors(ctx: FileContext) -> list[Finding]:
    """Run every detector registered for the file's tag.

    A detector that raises is logged and skipped; the others still run.
    """
    findings: list[Finding] = []
    for detector in detectors_for(ctx.tag):
        try:
            findings.extend(detector(ctx))
        except Exception as e:
            logger.warning(
                "Detector %s failed for %s: %s", detector.__name__, ctx.path, e
            )
    return findings


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------
def _iter_matches(
    ctx: FileContext, pattern: re.Pattern[str]
) -> Iterator[tuple[int, re.Match[str]]]:
    for match in pattern.finditer(ctx.content):
        yield ctx.line_of(match.start()), match


def _iter_lines(ctx: FileContext, pattern: re.Pattern[str]) -> Iterator[int]:
    for index, line in enumerate(ctx.lines):
        if pattern.search(line):
            yield index + 1


# Tag attributes may hold quoted strings or {...} nested one level deep (JSX).
_TAG = re.compile(
    r"<([A-Za-z][\w.:-]*)((?:\"[^\"]*\"|'[^']*'|\{(?:[^{}]|\{[^{}]*\})*\}|[^<>\"'{}])*)>",
    re.DOTALL,
)


@dataclass(frozen=True)
class _Tag:
    name: str
    attrs: str
    line: int
    attrs_offset: int


def _iter_tags(ctx: FileContext) -> Iterator[_Tag]:
    for match in _TAG.finditer(ctx.content):
        yield _Tag(
            name=match.group(1),
            attrs=match.group(2),
            line=ctx.line_of(match.start()),
            attrs_offset=match.start(2),
        )


# ===========================================================================
# STRUCTURAL
# ===========================================================================
@register(*LANGUAGE_TAGS)
def detect_file_size(ctx: FileContext) -> list[Finding]:
    count = len(ctx.lines)
    limit = ctx.config.max_file_size
    if count <= limit:
        return []
    return [
        ctx.finding(
            "structural",
            "warning",
            f"File has {count} lines (max recommended: {limit})",
            "Consider splitting this file into smaller, more focused modules",
        )
    ]


@register(*LANGUAGE_TAGS)
def detect_long_lines(ctx: FileContext) -> list[Finding]:
    limit = ctx.config.max_line_length
    return [
        ctx.finding(
            "style",
            "suggestion",
            f"Line exceeds {limit} characters ({len(line)})",
            "Break this line into multiple lines for better readability",
            line=index + 1,
        )
        for index, line in enumerate(ctx.lines)
        if len(line) > limit
    ]


@register(*CODE_TAGS)
def detect_long_blocks(ctx: FileContext) -> list[Finding]:
    limit = ctx.config.max_method_length
    if ctx.in_dir("controllers"):
        advice = "Extract logic to service objects or model methods to keep controllers skinny"
    else:
        advice = "Consider breaking this method into smaller, focused methods"
    return [
        ctx.finding(
            "structural",
            "warning",
            f"Method '{block.name}' has {block.line_count} lines (max recommended: {limit})",
            advice,
            line=block.start_line,
        )
        for block in ctx.blocks
        if block.line_count > limit
    ]


@register(*CODE_TAGS)
def detect_complex_blocks(ctx: FileContext) -> list[Finding]:
    threshold = ctx.config.complexity_threshold
    return [
        ctx.finding(
            "maintainability",
            "warning",
            f"Method '{block.name}' has high complexity "
            f"(score {score}, threshold {threshold})",
            "Refactor complex methods into smaller, focused methods",
            line=block.start_line,
        )
        for block, score in zip(ctx.blocks, ctx.complexities)
        if is_high_complexity(score, threshold)
    ]


_LOGICAL_OPERATOR = re.compile(r"&&|\|\|")


@register(*CODE_TAGS)
def detect_complex_conditionals(ctx: FileContext) -> list[Finding]:
    return [
        ctx.finding(
            "clean_code",
            "suggestion",
            "Complex conditional logic can be hard to understand",
            "Consider extracting conditions into well-named methods",
            line=index + 1,
        )
        for index, line in enumerate(ctx.lines)
        if len(_LOGICAL_OPERATOR.findall(line)) > 2
    ]


# ===========================================================================
# NAMING
# ===========================================================================
_CAMEL_CASE = re.compile(r"^[A-Z][A-Za-z0-9]*$")
_SNAKE_CASE = re.compile(r"^[a-z_][a-z0-9_]*$")
_SCREAMING_SNAKE_CASE = re.compile(r"^[A-Z][A-Z0-9_]*$")

_RUBY_CLASS = re.compile(r"^[ \t]*(class|module)[ \t]+([A-Za-z_][\w:]*)", re.MULTILINE)
_RUBY_CONSTANT = re.compile(r"^[ \t]*([A-Z]\w*)[ \t]*=(?![=~>])[ \t]*(.*)$", re.MULTILINE)
_RUBY_CLASS_FACTORY = re.compile(r"^(?:Struct|Class|Module|Data)\.(?:new|define)\b")
_RUBY_LOCAL = re.compile(r"^[ \t]*([a-z_]\w*)[ \t]*=(?![=~>])", re.MULTILINE)
_JS_CLASS = re.compile(
    r"^[ \t]*(?:export[ \t]+)?(?:default[ \t]+)?class[ \t]+([A-Za-z_$][\w$]*)", re.MULTILINE
)


@register("ruby")
def detect_ruby_naming(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []

    for line, match in _iter_matches(ctx, _RUBY_CLASS):
        kind, full_name = match.groups()
        for part in full_name.split("::"):
            if part and not _CAMEL_CASE.match(part):
                findings.append(
                    ctx.finding(
                        "naming",
                        "warning",
                        f"{kind.capitalize()} name '{full_name}' doesn't follow CamelCase convention",
                        "Use CamelCase for class and module names",
                        line=line,
                    )
                )
                break

    for block in ctx.blocks:
        name = block.name.rstrip("?!=")
        if not re.search(r"\w", name):
            continue  # operator methods such as ==, [], <=>
        if not _SNAKE_CASE.match(name):
            findings.append(
                ctx.finding(
                    "naming",
                    "warning",
                    f"Method name '{block.name}' doesn't follow snake_case convention",
                    "Use snake_case for method and variable names",
                    line=block.start_line,
                )
            )

    for line, match in _iter_matches(ctx, _RUBY_CONSTANT):
        name, value = match.groups()
        if _RUBY_CLASS_FACTORY.match(value.strip()):
            continue
        if not _SCREAMING_SNAKE_CASE.match(name):
            findings.append(
                ctx.finding(
                    "naming",
                    "warning",
                    f"Constant name '{name}' doesn't follow SCREAMING_SNAKE_CASE convention",
                    "Use SCREAMING_SNAKE_CASE for constants",
                    line=line,
                )
            )

    for line, match in _iter_matches(ctx, _RUBY_LOCAL):
        name = match.group(1)
        if not _SNAKE_CASE.match(name):
            findings.append(
                ctx.finding(
                    "naming",
                    "warning",
                    f"Variable name '{name}' doesn't follow snake_case convention",
                    "Use snake_case for method and variable names",
                    line=line,
                )
            )

    return findings


@register(*SCRIPT_TAGS)
def detect_js_class_naming(ctx: FileContext) -> list[Finding]:
    return [
        ctx.finding(
            "naming",
            "warning",
            f"Class name '{match.group(1)}' doesn't follow CamelCase convention",
            "Use CamelCase for class names",
            line=line,
        )
        for line, match in _iter_matches(ctx, _JS_CLASS)
        if not _CAMEL_CASE.match(match.group(1))
    ]


# ===========================================================================
# SECURITY (server-side)
# ===========================================================================
_CSRF_DISABLED = re.compile(
    r"skip_before_action\s+:verify_authenticity_token|skip_forgery_protection"
)
_SQL_INTERPOLATION = re.compile(
    r"\.(?:where|find_by_sql|execute|exec_query|select_all|joins|order|group|having"
    r"|pluck|delete_all|update_all|count_by_sql)\(\s*(?:\"|%Q?[{(\[])[^\n]*?#\{"
)
_RAW_PARAMS = re.compile(r"\bparams\[:(?!id\])\w+\]")
_PERMITTED_PARAMS = re.compile(r"\bparams\.require\(|\.permit\(")


@register("ruby")
def detect_csrf_disabled(ctx: FileContext) -> list[Finding]:
    return [
        ctx.finding(
            "security",
            "critical",
            "Request-forgery (CSRF) protection is disabled",
            "Remove skip_before_action or use protect_from_forgery with: :exception",
            line=line,
        )
        for line in _iter_lines(ctx, _CSRF_DISABLED)
    ]


@register("ruby")
def detect_sql_interpolation(ctx: FileContext) -> list[Finding]:
    return [
        ctx.finding(
            "security",
            "critical",
            "String interpolation in SQL query can lead to SQL injection",
            "Use parameterized queries or ActiveRecord methods with placeholders",
            line=line,
        )
        for line in _iter_lines(ctx, _SQL_INTERPOLATION)
    ]


@register("ruby")
def detect_unpermitted_params(ctx: FileContext) -> list[Finding]:
    if _PERMITTED_PARAMS.search(ctx.content):
        return []
    line = ctx.first_line(_RAW_PARAMS)
    if line is None:
        return []
    return [
        ctx.finding(
            "security",
            "warning",
            "Direct parameter access without strong parameters can lead to mass assignment",
            "Use strong parameters with params.require().permit()",
            line=line,
        )
    ]


# ===========================================================================
# PERFORMANCE
# ===========================================================================
_RUBY_ITERATION = re.compile(
    r"\.(each|each_with_index|each_with_object|map|flat_map|collect|select|reject"
    r"|find_each|find_in_batches|in_batches)\b(?:\([^)]*\))?\s*(do\b|\{)"
)
_PER_ITEM_LOOKUP = re.compile(
    r"\.(?:find|find_by|find_by_\w+|where|pluck|exists\?)(?=[\s(!.]|$)"
)
_PER_ROW_WRITE = re.compile(
    r"\.(?:save|create|update|update_attribute|update_columns|destroy|delete)(?:!|\b)"
)
_BATCHED_ITERATIONS = {"find_each", "find_in_batches", "in_batches"}
_ALL_RECORDS = re.compile(r"\.all\b(?!\?)")
_EAGER_LOADING = re.compile(r"\.(?:includes|eager_load|preload)\(")
_CREATE_TABLE = re.compile(r"\bcreate_table\b")
_INDEX_STATEMENT = re.compile(r"\badd_index\b|\bt\.index\b|\bindex:\s*true")


def _iteration_bodies(ctx: FileContext) -> Iterator[tuple[int, str, str]]:
    """Yield ``(line, method, body)`` for each Ruby iteration block."""
    lines = ctx.lines
    for index, line in enumerate(lines):
        match = _RUBY_ITERATION.search(line)
        if not match:
            continue
        syntax = RUBY_SYNTAX if match.group(2).startswith("do") else JS_SYNTAX
        if syntax is JS_SYNTAX and "}" in line[match.end() :]:
            end = index
        else:
            end = find_block_end(lines, index, syntax)
        body = "\n".join([line[match.end() :], *lines[index + 1 : end + 1]])
        yield index + 1, match.group(1), body


@register("ruby")
def detect_n_plus_one(ctx: FileContext) -> list[Finding]:
    findings = [
        ctx.finding(
            "performance",
            "warning",
            f"Potential N+1 query: per-item lookup inside .{method} iteration",
            "Use includes(), eager_load(), or preload() to avoid N+1 queries",
            line=line,
        )
        for line, method, body in _iteration_bodies(ctx)
        if _PER_ITEM_LOOKUP.search(body)
    ]

    if ctx.in_dir("controllers") and not _EAGER_LOADING.search(ctx.content):
        line = ctx.first_line(_ALL_RECORDS)
        if line is not None:
            findings.append(
                ctx.finding(
                    "performance",
                    "warning",
                    "Using .all without eager loading can cause N+1 query problems",
                    "Consider using .includes() to eager load associations",
                    line=line,
                )
            )
    return findings


@register("ruby")
def detect_missing_indexes(ctx: FileContext) -> list[Finding]:
    if _INDEX_STATEMENT.search(ctx.content):
        return []
    return [
        ctx.finding(
            "performance",
            "warning",
            "Table is created without adding indexes",
            "Add indexes for foreign keys and frequently queried columns",
            line=line,
        )
        for line in _iter_lines(ctx, _CREATE_TABLE)
    ]


@register("ruby")
def detect_unbatched_writes(ctx: FileContext) -> list[Finding]:
    return [
        ctx.finding(
            "performance",
            "warning",
            f"Per-row database writes inside .{method} can be slow for large datasets",
            "Use .find_each for batched iteration or bulk operations like insert_all/update_all",
            line=line,
        )
        for line, method, body in _iteration_bodies(ctx)
        if method not in _BATCHED_ITERATIONS
        and method.startswith("each")
        and _PER_ROW_WRITE.search(body)
    ]


# ===========================================================================
# RAILS CONVENTIONS
# ===========================================================================
_RESTFUL_ACTIONS = {"index", "show", "new", "create", "edit", "update", "destroy"}
_VISIBILITY_SECTION = re.compile(r"^\s*(?:private|protected)\s*$")
_MODEL_CLASS = re.compile(r"class\s+\w+\s*<\s*(?:ApplicationRecord|ActiveRecord::Base)\b")
_VALIDATIONS = re.compile(r"\bvalidates?\b|\bvalidates_\w+")
_DB_WRITE = re.compile(r"\.(?:save|update|destroy|create)\b")
_ERROR_HANDLING = re.compile(r"\brescue\b|\brescue_from\b|\bbegin\b|\berrors\b")
_MIGRATION_APP_CODE = re.compile(
    r"ActiveRecord::Base\.transaction|\bfind_each\b|\.create!|\.save!|\.update!"
)
_HARDCODED_STRING = re.compile(r"\"([A-Z][^\"\n]{10,})\"")
_RUBY_COMMENT = re.compile(r"^\s*#")


@register("ruby")
def detect_model_without_validations(ctx: FileContext) -> list[Finding]:
    if not ctx.in_dir("models") or ctx.in_dir("concerns") or ctx.is_test:
        return []
    line = ctx.first_line(_MODEL_CLASS)
    if line is None or _VALIDATIONS.search(ctx.content):
        return []
    return [
        ctx.finding(
            "best_practice",
            "warning",
            "Rails model may be missing validations",
            "Consider adding appropriate validations to ensure data integrity",
            line=line,
        )
    ]


def _public_blocks(ctx: FileContext) -> list[Block]:
    cutoff = next(
        (i + 1 for i, line in enumerate(ctx.lines) if _VISIBILITY_SECTION.match(line)),
        None,
    )
    return [b for b in ctx.blocks if cutoff is None or b.start_line < cutoff]


@register("ruby")
def detect_controller_conventions(ctx: FileContext) -> list[Finding]:
    if not ctx.in_dir("controllers") or ctx.is_test:
        return []
    findings: list[Finding] = []

    custom = [
        b.name
        for b in _public_blocks(ctx)
        if b.name not in _RESTFUL_ACTIONS and not b.name.startswith("_")
    ]
    if custom:
        findings.append(
            ctx.finding(
                "best_practice",
                "suggestion",
                f"Controller has non-RESTful actions: {', '.join(custom)}",
                "Consider using RESTful actions or moving custom logic to service objects",
            )
        )

    write_line = ctx.first_line(_DB_WRITE)
    if write_line is not None and "transaction" not in ctx.content:
        findings.append(
            ctx.finding(
                "best_practice",
                "warning",
                "Controller performs database operations without a transaction",
                "Consider wrapping related database operations in "
                "ActiveRecord::Base.transaction blocks",
                line=write_line,
            )
        )

    if not _ERROR_HANDLING.search(ctx.content):
        findings.append(
            ctx.finding(
                "best_practice",
                "warning",
                "Controller lacks visible error handling",
                "Add proper error handling with rescue blocks or rescue_from callbacks",
            )
        )
    return findings


@register("ruby")
def detect_migration_app_code(ctx: FileContext) -> list[Finding]:
    if not ctx.in_dir("migrate"):
        return []
    line = ctx.first_line(_MIGRATION_APP_CODE)
    if line is None:
        return []
    return [
        ctx.finding(
            "best_practice",
            "warning",
            "Migration may contain application code",
            "Keep application code out of migrations; use SQL for simple changes",
            line=line,
        )
    ]


@register("ruby")
def detect_hardcoded_strings(ctx: FileContext) -> list[Finding]:
    if ctx.is_test:
        return []
    count = len(_HARDCODED_STRING.findall(ctx.content))
    if count <= 3:
        return []
    return [
        ctx.finding(
            "best_practice",
            "suggestion",
            f"Found {count} potentially hardcoded user-facing strings",
            "Consider using I18n.t() for user-facing strings",
        )
    ]


@register("ruby")
def detect_sparse_documentation(ctx: FileContext) -> list[Finding]:
    comments = sum(1 for line in ctx.lines if _RUBY_COMMENT.match(line))
    code = sum(1 for line in ctx.lines if line.strip() and not _RUBY_COMMENT.match(line))
    if code <= 50 or comments >= 3:
        return []
    return [
        ctx.finding(
            "maintainability",
            "suggestion",
            "Large file with minimal comments or documentation",
            "Add comments explaining complex business logic and method purposes",
        )
    ]


# ===========================================================================
# ACCESSIBILITY
# ===========================================================================
_NATIVE_INTERACTIVE = {
    "a", "button", "input", "select", "textarea", "label", "summary", "option",
    "details",
}
_CLICK_OR_KEY = re.compile(r"(?:@|v-on:|\bon)(?:click|keypress|keydown|keyup)\b", re.I)
_MOUSE_HANDLER = re.compile(r"(?:@|v-on:|\bon)(?:click|dblclick|mousedown|mouseup)\b", re.I)
_KEY_HANDLER = re.compile(r"(?:@|v-on:|\bon)key(?:down|up|press)\b", re.I)
_ARIA = re.compile(r"\baria-|\brole\s*=")
_ALT = re.compile(r"\balt\s*=")
_INPUT_TYPE_UNLABELLED_OK = re.compile(
    r"\btype\s*=\s*[\"'](?:hidden|submit|button|reset|image)[\"']", re.I
)
_ARIA_LABEL = re.compile(r"\baria-label(?:ledby)?\s*=")
_ELEMENT_ID = re.compile(r"(?<![\w:-])id\s*=\s*[\"']([^\"']+)[\"']")
_MOUSE_LISTENER = re.compile(r"addEventListener\(\s*['\"](?:click|dblclick|mousedown)['\"]")
_KEY_LISTENER = re.compile(r"addEventListener\(\s*['\"]key(?:down|up|press)['\"]")
_FOCUS_CALL = re.compile(r"\.(?:focus|blur)\(\s*\)")
_TABINDEX = re.compile(r"tabindex", re.I)


def _has_label_for(ctx: FileContext, element_id: str) -> bool:
    pattern = rf"(?:\bfor|htmlFor)\s*=\s*[\"']{re.escape(element_id)}[\"']"
    return re.search(pattern, ctx.content) is not None


@register(*MARKUP_TAGS)
def detect_markup_accessibility(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []

    for tag in _iter_tags(ctx):
        name = tag.name.lower()
        attrs = tag.attrs
        native = name in _NATIVE_INTERACTIVE

        if not native and _CLICK_OR_KEY.search(attrs) and not _ARIA.search(attrs):
            findings.append(
                ctx.finding(
                    "accessibility",
                    "warning",
                    f"Interactive <{tag.name}> element has event handlers but no ARIA attributes",
                    "Add a role and aria-label (or use a native <button>) so screen "
                    "readers can announce it",
                    line=tag.line,
                )
            )

        if not native and _MOUSE_HANDLER.search(attrs) and not _KEY_HANDLER.search(attrs):
            findings.append(
                ctx.finding(
                    "accessibility",
                    "warning",
                    f"Mouse-only handler on <{tag.name}> without a keyboard equivalent",
                    "Add keydown/keypress handlers to ensure keyboard accessibility",
                    line=tag.line,
                )
            )

        if name == "img" and not _ALT.search(attrs):
            findings.append(
                ctx.finding(
                    "accessibility",
                    "warning",
                    "Image is missing alternative text",
                    "Add a meaningful alt attribute (alt=\"\" for decorative images)",
                    line=tag.line,
                )
            )

        if name in ("input", "select", "textarea"):
            if name == "input" and _INPUT_TYPE_UNLABELLED_OK.search(attrs):
                continue
            if _ARIA_LABEL.search(attrs):
                continue
            id_match = _ELEMENT_ID.search(attrs)
            if id_match and _has_label_for(ctx, id_match.group(1)):
                continue
            findings.append(
                ctx.finding(
                    "accessibility",
                    "warning",
                    f"<{tag.name}> element has no associated label",
                    "Add a <label for=...> or an aria-label attribute",
                    line=tag.line,
                )
            )

    return findings


@register(*SCRIPT_TAGS)
def detect_script_accessibility(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []

    if not _KEY_LISTENER.search(ctx.content):
        line = ctx.first_line(_MOUSE_LISTENER)
        if line is not None:
            findings.append(
                ctx.finding(
                    "accessibility",
                    "warning",
                    "Mouse event listener without a keyboard equivalent",
                    "Register keydown/keypress listeners alongside mouse listeners",
                    line=line,
                )
            )

    if not _TABINDEX.search(ctx.content):
        line = ctx.first_line(_FOCUS_CALL)
        if line is not None:
            findings.append(
                ctx.finding(
                    "accessibility",
                    "warning",
                    "Custom focus management without proper tabindex",
                    "Ensure elements that receive focus have appropriate tabindex values",
                    line=line,
                )
            )

    return findings


# ===========================================================================
# COMPONENTS (single-file templates)
# ===========================================================================
_KEY_BINDING = re.compile(r"(?:^|\s)(?::key|v-bind:key|key)\s*=")
_V_FOR = re.compile(r"(?<![\w:-])v-for\s*=")
_PROPS_ARRAY = re.compile(r"\bprops\s*:\s*\[|\bdefineProps\(\s*\[")
_PROPS_OBJECT = re.compile(r"\bprops\s*:\s*\{|\bdefineProps\(\s*\{")
_PROP_METADATA = re.compile(
    r"\btype\s*:|\brequired\s*:|:\s*\[?\s*(?:String|Number|Boolean|Array|Object|Function|Date|Symbol)\b"
)
_STYLE_TAG = re.compile(r"<style\b([^>]*)>")
_EMIT = re.compile(r"(?:\$emit|\bemit)\(\s*['\"]([^'\"]+)['\"]")
_CONVENTIONAL_EVENT = re.compile(r"^(?:[a-z][a-z0-9]*(?:-[a-z0-9]+)*|update:[A-Za-z][\w-]*)$")
_DATA_FUNCTION = re.compile(r"\bdata\s*\(\s*\)\s*\{")
_MANUAL_EVENT_HANDLING = re.compile(r"\.(?:preventDefault|stopPropagation)\(\s*\)")
_EVENT_MODIFIER = re.compile(r"[@:][\w-]+\.(?:prevent|stop)\b")

MAX_TEMPLATE_LINES = 100


@register("vue")
def detect_unkeyed_lists(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    for tag in _iter_tags(ctx):
        v_for = _V_FOR.search(tag.attrs)
        if v_for is None or _KEY_BINDING.search(tag.attrs):
            continue
        findings.append(
            ctx.finding(
                "best_practice",
                "critical",
                "v-for directive used without a :key attribute",
                "Always bind a stable unique :key with v-for to keep component state "
                "and rendering correct",
                line=ctx.line_of(tag.attrs_offset + v_for.start()),
            )
        )
    return findings


@register("vue")
def detect_untyped_props(ctx: FileContext) -> list[Finding]:
    line = ctx.first_line(_PROPS_ARRAY)
    if line is None:
        match = _PROPS_OBJECT.search(ctx.content)
        if match is None:
            return []
        start = ctx.line_of(match.start()) - 1
        end = find_block_end(ctx.lines, start, JS_SYNTAX)
        if _PROP_METADATA.search("\n".join(ctx.lines[start : end + 1])):
            return []
        line = start + 1
    return [
        ctx.finding(
            "best_practice",
            "warning",
            "Props are declared without type or required metadata",
            "Define prop types and required status for better component "
            "documentation and error prevention",
            line=line,
        )
    ]


@register("vue")
def detect_unscoped_styles(ctx: FileContext) -> list[Finding]:
    return [
        ctx.finding(
            "style",
            "suggestion",
            "Component uses global styles instead of scoped styles",
            "Use <style scoped> to prevent CSS leaking to other components",
            line=line,
        )
        for line, match in _iter_matches(ctx, _STYLE_TAG)
        if not re.search(r"\b(?:scoped|module)\b", match.group(1))
    ]


@register("vue")
def detect_component_structure(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    lines = ctx.lines

    if "<template" not in ctx.content or "<script" not in ctx.content:
        findings.append(
            ctx.finding(
                "structural",
                "warning",
                "Component is missing a <template> or <script> section",
                "Ensure the component has both <template> and <script> sections",
            )
        )

    start = next((i for i, line in enumerate(lines) if line.startswith("<template")), None)
    end = next(
        (i for i in range(len(lines) - 1, -1, -1) if lines[i].startswith("</template>")),
        None,
    )
    if start is not None and end is not None and end > start:
        size = end - start - 1
        if size > MAX_TEMPLATE_LINES:
            findings.append(
                ctx.finding(
                    "structural",
                    "warning",
                    f"Component template is very large ({size} lines)",
                    "Break large components into smaller, focused components",
                    line=start + 1,
                )
            )

    if (
        _DATA_FUNCTION.search(ctx.content)
        and "return {" in ctx.content
        and "computed" not in ctx.content
    ):
        findings.append(
            ctx.finding(
                "best_practice",
                "suggestion",
                "Component uses data() but no computed properties for derived data",
                "Use computed properties for data that depends on other data",
                line=ctx.first_line(_DATA_FUNCTION),
            )
        )

    return findings


@register("vue")
def detect_event_conventions(ctx: FileContext) -> list[Finding]:
    findings = [
        ctx.finding(
            "naming",
            "suggestion",
            f"Custom event '{match.group(1)}' does not follow kebab-case naming",
            "Use kebab-case event names, or the update:<prop> form for v-model support",
            line=line,
        )
        for line, match in _iter_matches(ctx, _EMIT)
        if not _CONVENTIONAL_EVENT.match(match.group(1))
    ]

    if not _EVENT_MODIFIER.search(ctx.content):
        line = ctx.first_line(_MANUAL_EVENT_HANDLING)
        if line is not None:
            findings.append(
                ctx.finding(
                    "best_practice",
                    "suggestion",
                    "Manual event handling instead of event modifiers",
                    "Use event modifiers like .prevent, .stop, .once for cleaner code",
                    line=line,
                )
            )
    return findings


# ===========================================================================
# SCHEMA (GraphQL)
# ===========================================================================
_GQL_DEFINITION = re.compile(
    r"^[ \t]*(?:extend[ \t]+)?(type|input|interface|enum)[ \t]+(\w+)[^{\n]*\{",
    re.MULTILINE,
)
_GQL_FIELD = re.compile(r"^\s*(\w+)\s*[(:]")
_GQL_ENUM_VALUE = re.compile(r"^\s*[A-Z_][A-Z0-9_]*\s*(?:@.*)?$")
_GQL_NULLABLE_ID = re.compile(r"^\s*(\w+)\s*(?:\([^)]*\))?\s*:\s*ID\b(?!\s*!)")
_GQL_LIST_FIELD = re.compile(r"^\s*(\w+)\s*(\([^)]*\))?\s*:\s*\[\s*(\w+)")
_GQL_PAGINATION_ARG = re.compile(
    r"\b(?:first|last|limit|offset|after|before|page|perPage|per_page|pageSize)\s*:"
)
_GQL_VALIDATION_CONVENTION = re.compile(r"ValidationError|UserError|\berrors\s*:")


@dataclass(frozen=True)
class _GqlDefinition:
    kind: str
    name: str
    line: int
    body: list[str]
    body_start: int


def _gql_definitions(ctx: FileContext) -> Iterator[_GqlDefinition]:
    for line, match in _iter_matches(ctx, _GQL_DEFINITION):
        start = line - 1
        end = find_block_end(ctx.lines, start, JS_SYNTAX)
        yield _GqlDefinition(
            kind=match.group(1),
            name=match.group(2),
            line=line,
            body=ctx.lines[start + 1 : end],
            body_start=start + 1,
        )


def _is_description(line: str) -> bool:
    stripped = line.strip()
    return stripped.startswith('"') or stripped.endswith('"')


def _top_level_members(definition: _GqlDefinition) -> Iterator[tuple[int, str]]:
    """Yield ``(index into body, line)`` for member lines outside argument lists."""
    parens = 0
    in_description = False
    for index, line in enumerate(definition.body):
        stripped = line.strip()
        if stripped.startswith('"""') and stripped.count('"""') == 1:
            in_description = not in_description
            continue
        if in_description or not stripped or stripped.startswith("#"):
            continue
        if parens == 0:
            pattern = _GQL_ENUM_VALUE if definition.kind == "enum" else _GQL_FIELD
            if pattern.match(line):
                yield index, line
        parens += line.count("(") - line.count(")")


@register("graphql")
def detect_undocumented_fields(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    for definition in _gql_definitions(ctx):
        missing = 0
        for index, _ in _top_level_members(definition):
            previous = next(
                (l for l in reversed(definition.body[:index]) if l.strip()),
                "",
            )
            if not _is_description(previous):
                missing += 1
        if missing:
            noun = "value(s)" if definition.kind == "enum" else "field(s)"
            findings.append(
                ctx.finding(
                    "maintainability",
                    "suggestion",
                    f"{definition.kind.capitalize()} '{definition.name}' has "
                    f"{missing} {noun} without descriptions",
                    'Add descriptions using """ block strings """ for types and fields',
                    line=definition.line,
                )
            )
    return findings


@register("graphql")
def detect_nullable_ids(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    for index, line in enumerate(ctx.lines):
        match = _GQL_NULLABLE_ID.match(line)
        if match:
            findings.append(
                ctx.finding(
                    "best_practice",
                    "warning",
                    f"Field '{match.group(1)}' is a nullable ID",
                    "Make identifier fields non-nullable with the ID! type",
                    line=index + 1,
                )
            )
    return findings


@register("graphql")
def detect_unpaginated_lists(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    for definition in _gql_definitions(ctx):
        if definition.kind != "type" or definition.name != "Query":
            continue
        for index, line in _top_level_members(definition):
            match = _GQL_LIST_FIELD.match(line)
            if not match:
                continue
            field_name, args, item_type = match.groups()
            if item_type.endswith("Connection") or _GQL_PAGINATION_ARG.search(args or ""):
                continue
            findings.append(
                ctx.finding(
                    "performance",
                    "suggestion",
                    f"Query '{field_name}' returns a list without pagination",
                    "Implement Relay-style connections or limit/offset pagination for lists",
                    line=definition.body_start + index + 1,
                )
            )
    return findings


@register("graphql")
def detect_input_validation(ctx: FileContext) -> list[Finding]:
    if _GQL_VALIDATION_CONVENTION.search(ctx.content):
        return []
    return [
        ctx.finding(
            "best_practice",
            "warning",
            f"Input type '{definition.name}' has no validation-error convention",
            "Return a ValidationError/UserError payload for invalid input",
            line=definition.line,
        )
        for definition in _gql_definitions(ctx)
        if definition.kind == "input"
    ]


# ===========================================================================
# MODERNIZATION (client scripts)
# ===========================================================================
_VAR_DECLARATION = re.compile(r"(?:^|[;{(]|\s)var\s+[A-Za-z_$]")
_PROMISE_THEN = re.compile(r"\.then\(")
_ASYNC_AWAIT = re.compile(r"\basync\b|\bawait\b")
_CONSOLE_CALL = re.compile(r"\bconsole\.(log|debug|info|warn|error|trace)\(")
_DEBUGGER = re.compile(r"^\s*debugger\b", re.MULTILINE)
_FUNCTION_EXPRESSION = re.compile(r"\bfunction\s*\(")
_DOM_ACCESS = re.compile(r"\b(?:document|window)\.\w+")
_USE_STATE = re.compile(r"\buseState\s*\(")
_USE_EFFECT = re.compile(r"\buseEffect\s*\(")


@register(*SCRIPT_TAGS)
def detect_var_declarations(ctx: FileContext) -> list[Finding]:
    return [
        ctx.finding(
            "style",
            "suggestion",
            "Using var instead of let/const",
            "Prefer let and const over var for block scoping",
            line=line,
        )
        for line in _iter_lines(ctx, _VAR_DECLARATION)
    ]


@register(*SCRIPT_TAGS)
def detect_promise_chains(ctx: FileContext) -> list[Finding]:
    if _ASYNC_AWAIT.search(ctx.content):
        return []
    line = ctx.first_line(_PROMISE_THEN)
    if line is None:
        return []
    return [
        ctx.finding(
            "best_practice",
            "suggestion",
            "Using promise chains without async/await",
            "Consider using async/await for more readable asynchronous code",
            line=line,
        )
    ]


@register(*SCRIPT_TAGS)
def detect_debug_statements(ctx: FileContext) -> list[Finding]:
    if ctx.is_test:
        return []
    findings = [
        ctx.finding(
            "best_practice",
            "warning",
            f"Found console.{match.group(1)}() statement",
            "Remove debug statements before committing or use a logger library",
            line=line,
        )
        for line, match in _iter_matches(ctx, _CONSOLE_CALL)
    ]
    findings.extend(
        ctx.finding(
            "best_practice",
            "warning",
            "Found debugger statement",
            "Remove debugger statements before committing",
            line=line,
        )
        for line, _ in _iter_matches(ctx, _DEBUGGER)
    )
    return findings


@register(*SCRIPT_TAGS)
def detect_legacy_functions(ctx: FileContext) -> list[Finding]:
    if "=>" in ctx.content:
        return []
    line = ctx.first_line(_FUNCTION_EXPRESSION)
    if line is None:
        return []
    return [
        ctx.finding(
            "style",
            "suggestion",
            "Using function expressions without arrow functions",
            "Consider arrow functions for more concise syntax and lexical this binding",
            line=line,
        )
    ]


@register(*SCRIPT_TAGS)
def detect_dom_access(ctx: FileContext) -> list[Finding]:
    line = ctx.first_line(_DOM_ACCESS)
    if line is None:
        return []
    return [
        ctx.finding(
            "best_practice",
            "warning",
            "Direct DOM manipulation detected",
            "Use framework-specific methods (refs, bindings) instead of document/window access",
            line=line,
        )
    ]


@register(*SCRIPT_TAGS)
def detect_hook_overuse(ctx: FileContext) -> list[Finding]:
    findings: list[Finding] = []
    states = len(_USE_STATE.findall(ctx.content))
    effects = len(_USE_EFFECT.findall(ctx.content))
    if states > 5:
        findings.append(
            ctx.finding(
                "maintainability",
                "suggestion",
                f"Component has {states} state variables",
                "Consider breaking this component into smaller ones or using useReducer",
            )
        )
    if effects > 3:
        findings.append(
            ctx.finding(
                "maintainability",
                "suggestion",
                f"Component has {effects} useEffect hooks",
                "Multiple effects may indicate the component has too many responsibilities",
            )
        )
    return findings


# ===========================================================================
# POSITIVE PATTERNS
# ===========================================================================
DEFAULT_POSITIVE = "No security or performance concerns were detected."

_SERVICE_CLASS = re.compile(r"class\s+\w*Service\b")
_STRONG_PARAMS = re.compile(r"params\.require\(.*\)\.permit\(")


@positive
def positive_service_objects(ctx: FileContext) -> list[str]:
    if "service" in ctx.path.lower() and _SERVICE_CLASS.search(ctx.content):
        return [f"Great use of service objects to encapsulate business logic in {ctx.name}!"]
    return []


@positive
def positive_strong_parameters(ctx: FileContext) -> list[str]:
    if ctx.tag == "ruby" and _STRONG_PARAMS.search(ctx.content):
        return [f"Nice job using strong parameters for security in {ctx.name}!"]
    return []


@positive
def positive_eager_loading(ctx: FileContext) -> list[str]:
    if ctx.tag == "ruby" and _EAGER_LOADING.search(ctx.content):
        return [f"Good performance optimization with eager loading in {ctx.name}!"]
    return []


@positive
def positive_component_hygiene(ctx: FileContext) -> list[str]:
    if ctx.tag != "vue":
        return []
    notes: list[str] = []
    styles = [m.group(1) for m in _STYLE_TAG.finditer(ctx.content)]
    if styles and all(re.search(r"\bscoped\b", attrs) for attrs in styles):
        notes.append(f"Component styles are nicely scoped in {ctx.name}!")
    lists = [t for t in _iter_tags(ctx) if _V_FOR.search(t.attrs)]
    if lists and all(_KEY_BINDING.search(t.attrs) for t in lists):
        notes.append(f"List rendering uses stable keys in {ctx.name}!")
    return notes


@positive
def positive_tests(ctx: FileContext) -> list[str]:
    if ctx.is_test:
        return ["Excellent test coverage - keep it up!"]
    return []


def find_positive_patterns(contexts: Iterable[FileContext]) -> list[str]:
    """Collect encouraging observations across a batch (deduplicated)."""
    notes: list[str] = []
    for ctx in contexts:
        for detector in POSITIVE_DETECTORS:
            try:
                found = detector(ctx)
            except Exception as e:
                logger.warning(
                    "Positive detector %s failed for %s: %s",
                    detector.__name__,
                    ctx.path,
                    e,
                )
                continue
            notes.extend(note for note in found if note not in notes)
    return notes or [DEFAULT_POSITIVE]
