import json
import logging
import re
from dataclasses import replace
from pathlib import Path, PurePosixPath
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .default_rules import DEFAULT_RULES
from .errors import RuleFileError
from .models import Category, ClassificationRule, TestFile
from .utils import snake_case

log = logging.getLogger(__name__)

BUILTIN_VARS = ("path", "filename")
FILTERS = {
    "snake": snake_case,
    "lower": str.lower,
}
_PLACEHOLDER = re.compile(r"\{([^{}|]*)(?:\|([^{}]*))?\}")
_IDENT = re.compile(r"[A-Za-z_]\w*\Z")
_GLOB_SPECIAL = re.compile(r"([*?\[\]{}])")
TESTS_VAR = "{tests}"


def compile_pattern(pattern: str) -> Tuple["re.Pattern[str]", List[str]]:
    """Translate a rule pattern into an anchored regex.

    ``*`` and ``?`` stay inside one path segment, ``[...]`` is a character
    class, ``**`` spans whole segments and ``{name}`` captures a non-empty
    part of one segment. A trailing ``/**`` captures the rest of the path as
    ``subpath``. Returns the regex and the names it captures.
    """
    tail = ""
    names: List[str] = []
    if pattern == "**":
        pattern, tail = "", "(?P<subpath>.+)"
    elif pattern.endswith("/**"):
        pattern, tail = pattern[:-3], "/(?P<subpath>.+)"
    if tail:
        names.append("subpath")

    out = []
    i, n = 0, len(pattern)
    while i < n:
        c = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            raise RuleFileError(f"'**' must be a whole path segment: {pattern!r}")
        elif c == "*":
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        elif c == "[":
            j = pattern.find("]", i + 2)
            if j == -1:
                raise RuleFileError(f"Unclosed '[' in pattern {pattern!r}")
            body = pattern[i + 1:j]
            if body.startswith("!"):
                body = "^" + body[1:]
            out.append("[" + body.replace("\\", "\\\\").replace("[", "\\[") + "]")
            i = j + 1
        elif c == "{":
            j = pattern.find("}", i)
            name = pattern[i + 1:j] if j != -1 else ""
            if not _IDENT.match(name):
                raise RuleFileError(f"Bad placeholder in pattern {pattern!r}")
            if name in names or name in BUILTIN_VARS:
                raise RuleFileError(f"Placeholder {{{name}}} used twice or reserved in {pattern!r}")
            names.append(name)
            out.append(f"(?P<{name}>[^/]+?)")
            i = j + 1
        else:
            out.append(re.escape(c))
            i += 1
    return re.compile("".join(out) + tail + r"\Z"), names


def check_template(template: str, available: Iterable[str]) -> None:
    available = set(available) | set(BUILTIN_VARS)
    if not template.strip():
        raise RuleFileError("Destination template is empty")
    for name, filt in _PLACEHOLDER.findall(template):
        if name not in available:
            raise RuleFileError(f"Unknown placeholder {{{name}}} in destination {template!r}")
        if filt and filt not in FILTERS:
            raise RuleFileError(f"Unknown filter '{filt}' in destination {template!r}")
    literal = _PLACEHOLDER.sub("x", template)
    if "{" in literal or "}" in literal:
        raise RuleFileError(f"Unbalanced braces in destination {template!r}")
    parts = PurePosixPath(literal).parts
    if literal.startswith("/") or ".." in parts:
        raise RuleFileError(f"Destination must stay inside the project: {template!r}")


def render_template(template: str, values: Dict[str, str]) -> str:
    def sub(m: "re.Match[str]") -> str:
        value = values[m.group(1)]
        filt = m.group(2)
        return FILTERS[filt](value) if filt else value
    return _PLACEHOLDER.sub(sub, template)


class CompiledRule:
    def __init__(self, rule: ClassificationRule):
        self.rule = rule
        self.regex, names = compile_pattern(rule.pattern)
        check_template(rule.destination, names)

    def match(self, rel: PurePosixPath) -> Optional[Path]:
        m = self.regex.match(rel.as_posix())
        if m is None:
            return None
        values = {k: v for k, v in m.groupdict().items() if v is not None}
        values["path"] = rel.as_posix()
        values["filename"] = rel.name
        return Path(render_template(self.rule.destination, values))


def expand_tests_dir(pattern: str, destination: str, tests_dir: str = "tests") -> Tuple[str, str]:
    """Substitute ``{tests}`` with the tests folder; glob characters in its name match literally."""
    tests = PurePosixPath(tests_dir).as_posix()
    literal = _GLOB_SPECIAL.sub(r"[\1]", tests)
    return pattern.replace(TESTS_VAR, literal), destination.replace(TESTS_VAR, tests)


def make_rule(pattern: str, category: str, destination: str, tests_dir: str = "tests") -> ClassificationRule:
    pattern, destination = expand_tests_dir(pattern, destination, tests_dir)
    try:
        cat = Category(category)
    except ValueError:
        allowed = ", ".join(c.value for c in Category if c is not Category.UNCLASSIFIED)
        raise RuleFileError(f"Unknown category {category!r} (expected one of: {allowed})")
    if cat is Category.UNCLASSIFIED:
        raise RuleFileError("Rules cannot target the 'unclassified' category")
    return ClassificationRule(pattern=pattern, category=cat, destination=destination)


class RuleSet:
    """Ordered rule table: user rules from an optional JSON file, then the defaults."""

    def __init__(self, user_rules_path: Path | None = None, tests_dir: str = "tests"):
        self.tests_dir = tests_dir
        user: List[ClassificationRule] = []
        include_defaults = True
        if user_rules_path:
            user, include_defaults = self._load_user_rules(user_rules_path)
        defaults = [make_rule(*r, tests_dir=tests_dir) for r in DEFAULT_RULES] if include_defaults else []
        self.rules: List[ClassificationRule] = user + defaults
        self._compiled = [CompiledRule(r) for r in self.rules]
        log.debug("Loaded %d rules (%d from %s)", len(self.rules), len(user), user_rules_path)

    def _load_user_rules(self, path: Path) -> Tuple[List[ClassificationRule], bool]:
        if not path.exists():
            raise RuleFileError(f"Rules file not found: {path}")
        try:
            with path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise RuleFileError(f"Cannot read rules file {path}: {e}") from e

        include_defaults = True
        if isinstance(data, dict):
            include_defaults = bool(data.get("include_defaults", True))
            data = data.get("rules", [])
        if not isinstance(data, list):
            raise RuleFileError(f"'rules' must be a list in {path}")

        rules = []
        for i, item in enumerate(data):
            if not isinstance(item, dict):
                raise RuleFileError(f"Rule #{i + 1} in {path} is not an object")
            try:
                args = (item["pattern"], item["category"], item["destination"])
            except KeyError as e:
                raise RuleFileError(f"Rule #{i + 1} in {path} is missing {e}") from e
            if not all(isinstance(a, str) for a in args):
                raise RuleFileError(f"Rule #{i + 1} in {path} must use string values")
            rules.append(make_rule(*args, tests_dir=self.tests_dir))
        return rules, include_defaults

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[ClassificationRule]:
        return iter(self.rules)

    def classify(self, rec: TestFile) -> Tuple[Category, Optional[Path], Optional[ClassificationRule]]:
        rel = PurePosixPath(rec.rel_path.as_posix())
        for compiled in self._compiled:
            dest = compiled.match(rel)
            if dest is not None:
                return compiled.rule.category, dest, compiled.rule
        return Category.UNCLASSIFIED, None, None


class Classifier:
    """Given TestFile records, return copies carrying category and destination."""
    def __init__(self, rule_set: RuleSet):
        self.rules = rule_set

    def classify(self, rec: TestFile) -> TestFile:
        category, dest, rule = self.rules.classify(rec)
        if rule is None:
            log.debug("Unclassified: %s", rec.rel_path)
        return replace(rec, category=category, destination=dest, rule=rule)

    def assign(self, files: Iterable[TestFile]) -> List[TestFile]:
        return [self.classify(f) for f in files]
