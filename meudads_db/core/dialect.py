"""SQLite → PostgreSQL dialect rewriting.

The rewriter is purely textual: no parse tree is built, so text inside a
string literal that happens to match a rule is rewritten too. Only SQL
authored inside this codebase is expected to pass through here; it is not a
general-purpose translator for arbitrary input.

Rules run in a fixed order (datetime functions, autoincrement, conflict
clauses, type coercions) and each rule consumes the token it matches, so
rewriting already-rewritten SQL is a no-op.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

POSTGRES_NOW = "NOW()"


@dataclass(frozen=True)
class RewriteRule:
    """A single pattern → replacement step."""

    name: str
    pattern: re.Pattern[str]
    replacement: str

    def apply(self, sql: str) -> str:
        return self.pattern.sub(self.replacement, sql)


@dataclass(frozen=True)
class ConflictClauseRule(RewriteRule):
    """``INSERT OR IGNORE`` → ``INSERT ... ON CONFLICT DO NOTHING``.

    The clause is appended at the end of the statement, and only when the
    statement does not already carry an ``ON CONFLICT`` clause.
    """

    def apply(self, sql: str) -> str:
        if not self.pattern.search(sql):
            return sql
        sql = self.pattern.sub(self.replacement, sql)
        if _ON_CONFLICT.search(sql):
            return sql
        return _STATEMENT_END.sub(" ON CONFLICT DO NOTHING;", sql, count=1)


_ON_CONFLICT = re.compile(r"\bON\s+CONFLICT\b", re.IGNORECASE)
_STATEMENT_END = re.compile(r";?\s*\Z")

REWRITE_RULES: tuple[RewriteRule, ...] = (
    # datetime functions
    RewriteRule(
        "datetime_now",
        re.compile(r"datetime\(\s*'now'\s*\)", re.IGNORECASE),
        POSTGRES_NOW,
    ),
    RewriteRule(
        "datetime_now_offset",
        re.compile(r"datetime\(\s*'now'\s*,\s*'([^']+)'\s*\)", re.IGNORECASE),
        rf"{POSTGRES_NOW} + INTERVAL '\1'",
    ),
    # autoincrement
    RewriteRule(
        "autoincrement",
        re.compile(r"INTEGER\s+PRIMARY\s+KEY\s+AUTOINCREMENT", re.IGNORECASE),
        "SERIAL PRIMARY KEY",
    ),
    RewriteRule(
        "create_table_if_not_exists",
        re.compile(r"CREATE\s+TABLE\s+IF\s+NOT\s+EXISTS", re.IGNORECASE),
        "CREATE TABLE IF NOT EXISTS",
    ),
    # conflict clauses
    RewriteRule(
        "insert_or_replace",
        re.compile(r"\bINSERT\s+OR\s+REPLACE\b", re.IGNORECASE),
        "INSERT",
    ),
    ConflictClauseRule(
        "insert_or_ignore",
        re.compile(r"\bINSERT\s+OR\s+IGNORE\b", re.IGNORECASE),
        "INSERT",
    ),
    # type coercions
    RewriteRule(
        "boolean_to_integer",
        re.compile(r"\bBOOLEAN\b", re.IGNORECASE),
        "INTEGER",
    ),
)


def rewrite(sql: str, rules: tuple[RewriteRule, ...] = REWRITE_RULES) -> str:
    """Rewrite a SQLite-flavoured statement into PostgreSQL syntax.

    Never raises. A bad rewrite surfaces as a database error when the
    statement is executed.
    """
    for rule in rules:
        sql = rule.apply(sql)
    return sql


# ---------------------------------------------------------------------------
# Script splitting
# ---------------------------------------------------------------------------


def _tokenize(sql: str) -> list[tuple[str, str]]:
    """Split *sql* into ``quoted``, ``comment`` and ``code`` tokens.

    Single-quoted literals, double-quoted and backtick-quoted identifiers are
    ``quoted`` (doubled quote characters are escapes). An unterminated quote
    runs to the end of the input.
    """
    tokens: list[tuple[str, str]] = []
    i = 0
    n = len(sql)
    last = 0

    while i < n:
        ch = sql[i]
        if ch in ("'", '"', "`"):
            if i > last:
                tokens.append(("code", sql[last:i]))
            j = i + 1
            while j < n:
                if sql[j] == ch:
                    j += 1
                    if j >= n or sql[j] != ch:
                        break
                j += 1
            tokens.append(("quoted", sql[i:j]))
            last = i = j
        elif sql.startswith("--", i) or sql.startswith("/*", i):
            if i > last:
                tokens.append(("code", sql[last:i]))
            if ch == "-":
                j = sql.find("\n", i)
                j = n if j == -1 else j + 1
            else:
                j = sql.find("*/", i + 2)
                j = n if j == -1 else j + 2
            tokens.append(("comment", sql[i:j]))
            last = i = j
        else:
            i += 1

    if last < n:
        tokens.append(("code", sql[last:]))
    return tokens


def split_statements(sql: str) -> list[str]:
    """Split a script into individual statements on top-level semicolons.

    Semicolons inside quotes or comments do not split. Chunks holding only
    whitespace or comments are dropped; the returned statements carry no
    trailing semicolon.
    """
    statements: list[str] = []
    current: list[str] = []
    has_code = False

    def flush() -> None:
        nonlocal has_code
        text = "".join(current).strip()
        if text and has_code:
            statements.append(text)
        current.clear()
        has_code = False

    for kind, content in _tokenize(sql):
        if kind != "code":
            current.append(content)
            has_code = has_code or kind == "quoted"
            continue
        parts = content.split(";")
        for index, part in enumerate(parts):
            if index > 0:
                flush()
            current.append(part)
            has_code = has_code or bool(part.strip())

    flush()
    return statements
