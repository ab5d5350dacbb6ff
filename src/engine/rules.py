"""Reference rule table used by the quality scorer.

Each :class:`Rule` is named, bound to one dimension and carries a fixed
severity and point deduction.  A rule inspects the full artifact set of an
execution pass and returns one :class:`Issue` per detection.  Rules are
plain data plus a check function, so each can be tested in isolation::

    issues = RULES_BY_NAME["dynamic-code-evaluation"].evaluate(files)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Callable

from src.engine.models import Dimension, Issue, Severity
from src.engines.models import GeneratedFile
from src.utils.file_utils import is_test_path

# A detection: (file path or None, line number or None).
Finding = tuple[str | None, int | None]

MARKUP_SUFFIXES = (".html", ".htm", ".jsx", ".tsx", ".vue", ".svelte")
CODE_SUFFIXES = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py")

MAX_FILE_BYTES = 100 * 1024
MAX_FILE_LINES = 200
MAX_MAGIC_NUMBERS = 5


@dataclass(frozen=True)
class Rule:
    name: str
    dimension: Dimension
    severity: Severity
    deduction: int
    message: str
    suggestion: str
    check: Callable[[list[GeneratedFile]], list[Finding]]

    def evaluate(self, files: list[GeneratedFile]) -> list[Issue]:
        return [
            Issue(
                dimension=self.dimension,
                severity=self.severity,
                message=self.message,
                file=path,
                line=line,
                suggestion=self.suggestion,
                rule=self.name,
            )
            for path, line in self.check(files)
        ]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _suffix(file: GeneratedFile) -> str:
    return PurePosixPath(file.path).suffix.lower()


def _is_markup(file: GeneratedFile) -> bool:
    return _suffix(file) in MARKUP_SUFFIXES or file.language == "html"


def _is_code(file: GeneratedFile) -> bool:
    return _suffix(file) in CODE_SUFFIXES


def _is_scannable(file: GeneratedFile) -> bool:
    return file.language != "markdown" and _suffix(file) not in (".md", ".markdown")


def _line_of(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1


def _per_match(
    pattern: re.Pattern[str],
    applies: Callable[[GeneratedFile], bool],
    keep: Callable[[re.Match[str]], bool] = lambda m: True,
) -> Callable[[list[GeneratedFile]], list[Finding]]:
    """Build a check emitting one finding per regex match."""

    def check(files: list[GeneratedFile]) -> list[Finding]:
        found: list[Finding] = []
        for file in files:
            if not applies(file):
                continue
            for match in pattern.finditer(file.content):
                if keep(match):
                    found.append((file.path, _line_of(file.content, match.start())))
        return found

    return check


def _per_file(
    predicate: Callable[[GeneratedFile], bool],
) -> Callable[[list[GeneratedFile]], list[Finding]]:
    """Build a check emitting one finding per file satisfying *predicate*."""

    def check(files: list[GeneratedFile]) -> list[Finding]:
        return [(f.path, None) for f in files if predicate(f)]

    return check


# ---------------------------------------------------------------------------
# Accessibility
# ---------------------------------------------------------------------------

_IMG_RE = re.compile(r"<img\b[^>]*>", re.IGNORECASE | re.DOTALL)
_CONTROL_RE = re.compile(r"<(input|select|textarea)\b[^>]*>", re.IGNORECASE | re.DOTALL)
_LABEL_FOR_RE = re.compile(r"""(?:htmlFor|for)\s*=\s*["']([^"']+)["']""")
_ID_RE = re.compile(r"""\bid\s*=\s*["']([^"']+)["']""")
_SEMANTIC_RE = re.compile(r"<(main|header|nav|section|article|aside|footer)\b", re.IGNORECASE)
_DIV_RE = re.compile(r"<div\b", re.IGNORECASE)
_ON_CLICK_RE = re.compile(r"\bon[Cc]lick\s*=")
_ON_KEY_RE = re.compile(r"\bon[Kk]ey(?:[Dd]own|[Uu]p|[Pp]ress)\s*=")


def _unlabelled_controls(files: list[GeneratedFile]) -> list[Finding]:
    found: list[Finding] = []
    for file in files:
        if not _is_markup(file):
            continue
        labelled = set(_LABEL_FOR_RE.findall(file.content))
        for match in _CONTROL_RE.finditer(file.content):
            tag = match.group(0)
            if re.search(r"""type\s*=\s*["'](hidden|submit|button)["']""", tag):
                continue
            if "aria-label" in tag or "aria-labelledby" in tag:
                continue
            control_id = _ID_RE.search(tag)
            if control_id and control_id.group(1) in labelled:
                continue
            found.append((file.path, _line_of(file.content, match.start())))
    return found


def _lacks_semantics(file: GeneratedFile) -> bool:
    return (
        _is_markup(file)
        and len(_DIV_RE.findall(file.content)) >= 3
        and not _SEMANTIC_RE.search(file.content)
    )


def _click_without_key(file: GeneratedFile) -> bool:
    return (
        _is_markup(file)
        and bool(_ON_CLICK_RE.search(file.content))
        and not _ON_KEY_RE.search(file.content)
    )


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------

_LIST_RENDER_RE = re.compile(r"\.map\(\s*\(?[\w\s,{}]*\)?\s*=>\s*\(?\s*<")
_MEMO_RE = re.compile(r"\b(useMemo|useCallback|React\.memo|memo)\s*\(")


def _oversized(file: GeneratedFile) -> bool:
    return file.size > MAX_FILE_BYTES


def _unmemoized_list(file: GeneratedFile) -> bool:
    return (
        _is_markup(file)
        and bool(_LIST_RENDER_RE.search(file.content))
        and not _MEMO_RE.search(file.content)
    )


# ---------------------------------------------------------------------------
# Security
# ---------------------------------------------------------------------------

def _secret_re(key: str, min_len: int = 8) -> re.Pattern[str]:
    # key = "literal" / key: 'literal' where the key name ends the identifier
    return re.compile(
        rf"""\b\w*{key}\w*["']?\s*[:=]\s*["'`]([^"'`\s]{{{min_len},}})["'`]""",
        re.IGNORECASE,
    )


_PLACEHOLDER_RE = re.compile(r"^(<.*>|\$\{.*\}|x+|\*+|changeme|your[-_].*|example.*)$", re.IGNORECASE)


def _not_placeholder(match: re.Match[str]) -> bool:
    return not _PLACEHOLDER_RE.match(match.group(1))


_API_KEY_RE = _secret_re(r"api[_-]?key")
_SECRET_RE = _secret_re(r"secret")
_PASSWORD_RE = _secret_re(r"passw(?:or)?d", min_len=4)
_TOKEN_RE = _secret_re(r"token")
_RAW_MARKUP_RE = re.compile(r"dangerouslySetInnerHTML|\.(?:inner|outer)HTML\s*=(?!=)|\bv-html\b|document\.write\s*\(")
_EVAL_RE = re.compile(
    r"(?<![\w.])eval\s*\(|\bnew\s+Function\s*\(|\bset(?:Timeout|Interval)\s*\(\s*[\"'`]|(?<![\w.])exec\s*\("
)
_SQL_KEYWORDS = r"(?:SELECT\b[^;]*?\bFROM|INSERT\s+INTO|UPDATE\b[^;]*?\bSET|DELETE\s+FROM)"
_SQL_INTERPOLATION_RE = re.compile(
    rf"`[^`]*{_SQL_KEYWORDS}[^`]*\$\{{"
    rf"|\bf[\"'][^\"'\n]*{_SQL_KEYWORDS}[^\"'\n]*\{{"
    rf"|[\"'][^\"'\n]*{_SQL_KEYWORDS}[^\"'\n]*[\"']\s*(?:\+|%\s*[\w(])"
    rf"|[\"'][^\"'\n]*{_SQL_KEYWORDS}[^\"'\n]*[\"']\s*\.format\(",
    re.DOTALL,
)


# ---------------------------------------------------------------------------
# Code quality
# ---------------------------------------------------------------------------

_TS_FUNCTION_RE = re.compile(r"\bfunction\s+\w+\s*\(([^)]*)\)")
_PY_FUNCTION_RE = re.compile(r"^\s*(?:async\s+)?def\s+\w+\s*\(([^)]*)\)\s*(->)?", re.MULTILINE)
_DEBUG_RE = re.compile(r"\bconsole\.(?:log|debug)\s*\(|^\s*print\s*\(|\bdebugger\s*;|\bbreakpoint\s*\(\)", re.MULTILINE)
_STRING_RE = re.compile(r"""(["'`])(?:\\.|(?!\1).)*\1""", re.DOTALL)
_COMMENT_RE = re.compile(r"//[^\n]*|#[^\n]*|/\*.*?\*/", re.DOTALL)
_NUMBER_RE = re.compile(r"(?<![\w.$#-])\d+(?:\.\d+)?(?![\w.%])")


def _untyped_functions(files: list[GeneratedFile]) -> list[Finding]:
    found: list[Finding] = []
    for file in files:
        if is_test_path(file.path):
            continue
        suffix = _suffix(file)
        if suffix in (".ts", ".tsx"):
            for match in _TS_FUNCTION_RE.finditer(file.content):
                params = match.group(1).strip()
                if params and ":" not in params:
                    found.append((file.path, _line_of(file.content, match.start())))
        elif suffix == ".py":
            for match in _PY_FUNCTION_RE.finditer(file.content):
                params = [
                    p.strip() for p in match.group(1).split(",")
                    if p.strip() and p.strip() not in ("self", "cls", "*", "/")
                ]
                untyped = [p for p in params if ":" not in p]
                if untyped or match.group(2) is None:
                    found.append((file.path, _line_of(file.content, match.start())))
    return found


def count_magic_numbers(content: str) -> int:
    """Count numeric literals other than 0 and 1 outside strings and comments."""
    stripped = _COMMENT_RE.sub("", _STRING_RE.sub('""', content))
    return sum(1 for n in _NUMBER_RE.findall(stripped) if n not in ("0", "1", "0.0", "1.0"))


def _too_long(file: GeneratedFile) -> bool:
    return _is_code(file) and file.content.count("\n") + 1 > MAX_FILE_LINES


def _magic_numbers(file: GeneratedFile) -> bool:
    return _is_code(file) and count_magic_numbers(file.content) > MAX_MAGIC_NUMBERS


def _is_source_code(file: GeneratedFile) -> bool:
    return _is_code(file) and not is_test_path(file.path)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------

_ASSERTION_RE = re.compile(r"\bexpect\s*\(|\bassert\w*\b|\.should\b|\bself\.assert")


def _test_files(files: list[GeneratedFile]) -> list[GeneratedFile]:
    return [f for f in files if is_test_path(f.path)]


def _no_tests(files: list[GeneratedFile]) -> list[Finding]:
    return [] if _test_files(files) else [(None, None)]


def _no_assertions(files: list[GeneratedFile]) -> list[Finding]:
    tests = _test_files(files)
    if tests and not any(_ASSERTION_RE.search(f.content) for f in tests):
        return [(None, None)]
    return []


# ---------------------------------------------------------------------------
# The table
# ---------------------------------------------------------------------------

A11Y, PERF, SEC, QUAL, TESTS = (
    Dimension.ACCESSIBILITY,
    Dimension.PERFORMANCE,
    Dimension.SECURITY,
    Dimension.CODE_QUALITY,
    Dimension.TESTS,
)

RULES: tuple[Rule, ...] = (
    # accessibility
    Rule("image-missing-alt", A11Y, Severity.HIGH, 10,
         "Image without alt text",
         "Add descriptive alt text to every image",
         _per_match(_IMG_RE, _is_markup, lambda m: not re.search(r"\balt\s*=", m.group(0)))),
    Rule("form-control-missing-label", A11Y, Severity.MEDIUM, 10,
         "Form control without an associated label",
         "Associate a <label> with the control or add aria-label",
         _unlabelled_controls),
    Rule("missing-semantic-markup", A11Y, Severity.LOW, 10,
         "Markup uses generic containers without semantic elements",
         "Use main, header, nav, section or article landmarks",
         _per_file(_lacks_semantics)),
    Rule("click-without-keyboard", A11Y, Severity.MEDIUM, 10,
         "Click handler without a keyboard handler",
         "Add onKeyDown handling or use a native button",
         _per_file(_click_without_key)),
    # performance
    Rule("oversized-file", PERF, Severity.MEDIUM, 8,
         "File larger than 100 KB",
         "Split the file or load the content lazily",
         _per_file(_oversized)),
    Rule("image-not-lazy", PERF, Severity.LOW, 8,
         "Image loaded eagerly",
         'Add loading="lazy" to images below the fold',
         _per_match(_IMG_RE, _is_markup, lambda m: "loading" not in m.group(0))),
    Rule("unmemoized-list-rendering", PERF, Severity.LOW, 8,
         "List rendering without memoization",
         "Wrap derived lists in useMemo or memoize item components",
         _per_file(_unmemoized_list)),
    # security
    Rule("hardcoded-api-key", SEC, Severity.CRITICAL, 20,
         "Hardcoded API key",
         "Load the key from configuration or environment variables",
         _per_match(_API_KEY_RE, _is_scannable, _not_placeholder)),
    Rule("hardcoded-secret", SEC, Severity.CRITICAL, 20,
         "Hardcoded secret",
         "Load the secret from configuration or environment variables",
         _per_match(_SECRET_RE, _is_scannable, _not_placeholder)),
    Rule("hardcoded-password", SEC, Severity.CRITICAL, 20,
         "Hardcoded password",
         "Never commit passwords; read them from a secret store",
         _per_match(_PASSWORD_RE, _is_scannable, _not_placeholder)),
    Rule("hardcoded-token", SEC, Severity.CRITICAL, 20,
         "Hardcoded access token",
         "Load the token from configuration or environment variables",
         _per_match(_TOKEN_RE, _is_scannable, _not_placeholder)),
    Rule("raw-markup-injection", SEC, Severity.HIGH, 15,
         "Unsanitized raw markup injection",
         "Sanitize the markup (e.g. DOMPurify) or render text nodes",
         _per_match(_RAW_MARKUP_RE, _is_scannable)),
    Rule("dynamic-code-evaluation", SEC, Severity.CRITICAL, 20,
         "Dynamic code evaluation",
         "Remove eval/new Function and parse data explicitly",
         _per_match(_EVAL_RE, _is_scannable)),
    Rule("sql-string-interpolation", SEC, Severity.HIGH, 15,
         "SQL query built by string interpolation",
         "Use parameterized queries or a query builder",
         _per_match(_SQL_INTERPOLATION_RE, _is_scannable)),
    # code quality
    Rule("long-file", QUAL, Severity.MEDIUM, 5,
         "File longer than 200 lines",
         "Split the module into smaller units",
         _per_file(_too_long)),
    Rule("missing-type-annotations", QUAL, Severity.LOW, 5,
         "Function without type annotations",
         "Annotate parameters and return types",
         _untyped_functions),
    Rule("debug-output", QUAL, Severity.LOW, 5,
         "Leftover debug output",
         "Remove debug statements or use the application logger",
         _per_match(_DEBUG_RE, _is_source_code)),
    Rule("magic-numbers", QUAL, Severity.LOW, 5,
         "More than five magic-number literals",
         "Extract numeric literals into named constants",
         _per_file(_magic_numbers)),
    # tests
    Rule("missing-tests", TESTS, Severity.HIGH, 50,
         "No test files were generated",
         "Generate tests covering the implemented features",
         _no_tests),
    Rule("tests-without-assertions", TESTS, Severity.MEDIUM, 30,
         "Test files contain no assertions",
         "Add expect/assert statements to the generated tests",
         _no_assertions),
)

RULES_BY_NAME: dict[str, Rule] = {rule.name: rule for rule in RULES}
