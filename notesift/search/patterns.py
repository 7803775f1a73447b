"""Pattern literals: explicit ``/regex/flags``, globs and plain substrings.

A literal is interpreted in priority order: explicit regex, then glob (it
contains ``*`` or ``?``), then substring. A literal that looks like a regex
but does not compile is treated as ordinary text, so a typo in a query
weakens the match instead of failing the search.
"""

import re
from functools import lru_cache

_EXPLICIT_REGEX_RE = re.compile(r"/(.+)/([a-z]*)")
_REGEX_META_RE = re.compile(r"[.*+?^${}()|\[\]\\]")

_FLAG_MAP: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "u": re.UNICODE,
    "x": re.VERBOSE,
    # Global / sticky / indices only affect scanning state; scans here are stateless
    "g": re.NOFLAG,
    "y": re.NOFLAG,
    "d": re.NOFLAG,
}


def escape_regex(text: str) -> str:
    """Escape regex metacharacters, leaving other punctuation readable."""
    return _REGEX_META_RE.sub(r"\\\g<0>", text)


@lru_cache(maxsize=1024)
def try_parse_explicit_regex(pattern: str) -> re.Pattern[str] | None:
    """Compile ``/body/flags`` into a pattern, or None if it is not one."""
    match = _EXPLICIT_REGEX_RE.fullmatch(pattern)
    if not match:
        return None

    body, flag_letters = match.groups()
    flags = re.NOFLAG
    for letter in flag_letters:
        if letter not in _FLAG_MAP:
            return None
        flags |= _FLAG_MAP[letter]

    try:
        return re.compile(body, flags)
    except re.error:
        return None


def is_glob(pattern: str) -> bool:
    return "*" in pattern or "?" in pattern


@lru_cache(maxsize=1024)
def glob_to_regex(glob: str, case_sensitive: bool) -> re.Pattern[str]:
    """Convert a glob to an unanchored regex (``*`` -> ``.*``, ``?`` -> ``.``)."""
    parts = []
    for ch in glob:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(escape_regex(ch))
    return re.compile("".join(parts), re.NOFLAG if case_sensitive else re.IGNORECASE)


def includes(haystack: str, needle: str, case_sensitive: bool) -> bool:
    """Substring containment with the given case rule."""
    if case_sensitive:
        return needle in haystack
    return needle.casefold() in haystack.casefold()


def match_pattern(value: str, pattern: str, case_sensitive: bool) -> bool:
    """Test ``value`` against a pattern literal.

    The case flag is ignored for explicit regexes; their own flags decide.
    """
    rx = try_parse_explicit_regex(pattern)
    if rx is not None:
        return rx.search(value) is not None

    if is_glob(pattern):
        return glob_to_regex(pattern, case_sensitive).search(value) is not None

    return includes(value, pattern, case_sensitive)


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str, case_sensitive: bool) -> re.Pattern[str]:
    """Return a regex equivalent to ``match_pattern`` for span scanning."""
    rx = try_parse_explicit_regex(pattern)
    if rx is not None:
        return rx
    if is_glob(pattern):
        return glob_to_regex(pattern, case_sensitive)
    return re.compile(re.escape(pattern), re.NOFLAG if case_sensitive else re.IGNORECASE)


def build_line_and_pattern(terms: list[str] | tuple[str, ...], case_sensitive: bool) -> str:
    """Build one lookahead literal matching lines that contain every term.

    ``["tool", "har"]`` becomes ``/^(?=.*tool)(?=.*har).*$/i``.
    """
    core = "".join(f"(?=.*{escape_regex(term)})" for term in terms) + ".*"
    flags = "" if case_sensitive else "i"
    return f"/^{core}$/{flags}"


def line_regex(literal: str, case_sensitive: bool) -> re.Pattern[str]:
    """Compile a line-filter literal; bare text is used as a raw regex body."""
    rx = try_parse_explicit_regex(literal)
    if rx is not None:
        return rx
    try:
        return re.compile(literal, re.NOFLAG if case_sensitive else re.IGNORECASE)
    except re.error:
        return compile_pattern(literal, case_sensitive)


def count_regex_matches(text: str, rx: re.Pattern[str]) -> int:
    """Count non-overlapping matches of ``rx`` in ``text``."""
    return sum(1 for _ in rx.finditer(text))
