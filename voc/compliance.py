"""
Dialect compliance scanner.

Best-effort, line-based detection of constructs the Vocalls runtime rejects
(ES5.1 plus the platform's own restrictions). Comment content is stripped
before matching; string literals are not, so text inside strings that looks
like code can still produce a violation (and vice versa).
"""
import re
from dataclasses import dataclass, replace
from typing import List, Optional, Pattern, Tuple


@dataclass(frozen=True)
class Violation:
    rule_id: str
    line: int
    message: str
    snippet: str
    fragment: Optional[str] = None

    def with_fragment(self, fragment: str) -> "Violation":
        return replace(self, fragment=fragment)

    def to_dict(self) -> dict:
        return {
            "ruleId": self.rule_id,
            "line": self.line,
            "message": self.message,
            "snippet": self.snippet,
            "fragment": self.fragment,
        }


# Ordered: a line matching several rules yields violations in this order.
_RULE_SPECS: List[Tuple[str, str, str]] = [
    ("async-await", r"\basync\b|\bawait\b",
     "async/await not allowed in Vocalls ES5.1"),
    ("class-syntax", r"\bclass\s+[\w$]+",
     "ES6 classes not allowed in Vocalls"),
    ("module-syntax", r"\bimport\s|\bexport\s+",
     "import/export not allowed in Vocalls"),
    ("require-call", r"\brequire\s*\(",
     "require() not allowed in Vocalls runtime"),
    ("block-scoped-declaration", r"\b(?:let|const)\s+",
     "let/const not allowed, use var in Vocalls ES5.1"),
    ("for-block-scoped", r"\bfor\s*\(\s*(?:let|const)\b",
     "for loops with let/const not allowed in ES5.1"),
    ("promise-catch", r"\.catch\s*\(",
     ".catch() not supported in Vocalls (use .then(success, error))"),
    ("promise-combinator", r"\bPromise\.(?:all|race|allSettled|any)\s*\(",
     "Promise.all/race not supported in Vocalls ES5.1"),
    ("nullish-coalescing", r"\?\?",
     "nullish coalescing (??) not allowed in ES5.1"),
    ("optional-chaining", r"\?\.",
     "optional chaining (?.) not allowed in ES5.1"),
    ("dynamic-evaluation", r"\beval\s*\(|\bnew\s+Function\s*\(",
     "eval/Function constructor not allowed in Vocalls"),
    ("console-diagnostics", r"\bconsole\.(?:log|info|warn|error|debug|trace)\s*\(",
     "console.* not allowed, use logInfo/logWarn/logError"),
    ("timer-primitive", r"\bsetTimeout\s*\(|\bsetInterval\s*\(",
     "setTimeout/setInterval not available in Vocalls"),
    ("template-literal", r"`",
     "Template literals not allowed in ES5.1"),
    ("arrow-function", r"=\s*>",
     "Arrow functions not allowed in ES5.1"),
    ("rest-spread", r"\.\.\.",
     "Spread/rest operator not allowed in ES5.1"),
    ("object-destructuring", r"\b(?:var|let|const)\s*\{|\{[^{}]*\}\s*=(?![=>])",
     "Destructuring assignment not allowed in ES5.1"),
    ("array-destructuring", r"\b(?:var|let|const)\s*\[|(?:^|[;{(,])\s*\[[^\]]*\]\s*=(?![=>])",
     "Array destructuring not allowed in ES5.1"),
]

RULES: List[Tuple[str, Pattern[str], str]] = [
    (rule_id, re.compile(pattern), message) for rule_id, pattern, message in _RULE_SPECS
]


def _strip_comments(line: str, in_block: bool) -> Tuple[str, bool]:
    """Remove comment content from one line; returns (code, still_in_block)."""
    out = []
    i = 0
    while i < len(line):
        if in_block:
            end = line.find("*/", i)
            if end == -1:
                return "".join(out), True
            i = end + 2
            in_block = False
            out.append(" ")
            continue

        block_start = line.find("/*", i)
        line_start = line.find("//", i)
        if line_start != -1 and (block_start == -1 or line_start < block_start):
            out.append(line[i:line_start])
            return "".join(out), False
        if block_start == -1:
            out.append(line[i:])
            return "".join(out), False

        out.append(line[i:block_start])
        i = block_start + 2
        in_block = True
    return "".join(out), in_block


def scan(source_text: str) -> List[Violation]:
    """Return every forbidden-construct match in ``source_text``.

    Line numbers are 1-based and refer to the original text. Never raises.
    """
    violations: List[Violation] = []
    if not source_text:
        return violations

    in_block = False
    for index, raw_line in enumerate(source_text.split("\n")):
        raw_line = raw_line.rstrip("\r")
        code, in_block = _strip_comments(raw_line, in_block)
        if not code.strip():
            continue
        for rule_id, pattern, message in RULES:
            if pattern.search(code):
                violations.append(Violation(
                    rule_id=rule_id,
                    line=index + 1,
                    message=message,
                    snippet=raw_line.strip(),
                ))
    return violations


def is_compliant(source_text: str) -> bool:
    return not scan(source_text)
