"""Defensive extraction of a JSON document from free-form model output.

Model output is untrusted text. It may wrap the JSON in markdown fences,
prefix it with a JavaScript-style assignment, interleave comments, leave
trailing commas, or stop before the last closing brace. ``sanitize`` turns
that text into the best JSON string it can without raising; the caller's
``json.loads`` is what finally decides whether the output is usable.

Every step leaves already-clean JSON untouched, so sanitizing twice gives
the same string as sanitizing once.

CLEANING STEPS:
    1. Take the body of a ```json fenced block if there is one
    2. Drop ``name =`` assignment prefixes in front of { or [
    3. Skip leading lines until one plausibly starts the JSON
    4. Cut the first balanced {...} (or [...]) span
    5. Repair: comments, trailing commas, control characters, missing closers
"""

import re
from typing import List, Optional


FENCE_PATTERN = re.compile(r"```(?:json|JSON)?[ \t]*\n?([\s\S]*?)\n?```")
ASSIGNMENT_OBJECT_PATTERN = re.compile(r"^\s*\w+\s*=\s*\{", re.MULTILINE)
ASSIGNMENT_ARRAY_PATTERN = re.compile(r"^\s*\w+\s*=\s*\[", re.MULTILINE)
NON_JSON_LINE_PATTERN = re.compile(r"^\s*(\w+\s*=|#|//)")
TRAILING_COMMA_PATTERN = re.compile(r",(\s*[}\]])")
CONTROL_CHAR_PATTERN = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")

# More missing closers than this means the output was cut off too early
MAX_MISSING_CLOSERS = 2

CLOSERS = {"{": "}", "[": "]"}


def sanitize(text: Optional[str]) -> str:
    """Extract and repair the JSON document contained in model output.

    Args:
        text: Raw model output

    Returns:
        Cleaned JSON string (possibly still invalid if nothing was
        recoverable; never raises)
    """
    return repair_json(extract_json(text))


def extract_json(text: Optional[str]) -> str:
    """Locate the JSON span inside noisy text (steps 1-4)."""
    if not text:
        return ""

    cleaned = text.strip()

    fenced = FENCE_PATTERN.search(cleaned)
    if fenced:
        cleaned = fenced.group(1)
    cleaned = cleaned.replace("```", "")

    cleaned = ASSIGNMENT_OBJECT_PATTERN.sub("{", cleaned)
    cleaned = ASSIGNMENT_ARRAY_PATTERN.sub("[", cleaned)

    lines = cleaned.split("\n")
    for index, line in enumerate(lines):
        if ("{" in line or "[" in line) and not NON_JSON_LINE_PATTERN.match(line):
            cleaned = "\n".join(lines[index:])
            break

    span = _first_balanced_span(cleaned)
    if span is not None:
        cleaned = span

    return cleaned.strip()


def repair_json(text: str) -> str:
    """Fix the common syntax damage in model-produced JSON (step 5)."""
    if not text:
        return ""

    repaired = _strip_comments(text)
    repaired = TRAILING_COMMA_PATTERN.sub(r"\1", repaired)
    repaired = CONTROL_CHAR_PATTERN.sub("", repaired)
    repaired = _close_unbalanced(repaired.rstrip())
    return repaired.strip()


def _first_balanced_span(text: str) -> Optional[str]:
    """Return the first balanced object span, else the first array span.

    When the text opens with an array the array is tried first, so a
    top-level list of objects is not cut down to its first element.
    """
    brace = text.find("{")
    bracket = text.find("[")
    order = ["{", "["]
    if bracket != -1 and (brace == -1 or bracket < brace):
        order = ["[", "{"]

    for opener in order:
        start = text.find(opener)
        if start == -1:
            continue
        end = _matching_close(text, start, opener, CLOSERS[opener])
        if end is not None:
            return text[start:end + 1]
    return None


def _matching_close(text: str, start: int, opener: str, closer: str) -> Optional[int]:
    """Index of the closer matching ``text[start]``, ignoring string contents."""
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == opener:
            depth += 1
        elif char == closer:
            depth -= 1
            if depth == 0:
                return index
    return None


def _strip_comments(text: str) -> str:
    """Remove // line comments and /* */ block comments outside strings."""
    out: List[str] = []
    index = 0
    length = len(text)
    in_string = False
    escaped = False
    while index < length:
        char = text[index]
        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            index += 1
            continue
        if char == '"':
            in_string = True
            out.append(char)
            index += 1
        elif text.startswith("//", index):
            newline = text.find("\n", index)
            index = length if newline == -1 else newline
        elif text.startswith("/*", index):
            end = text.find("*/", index + 2)
            index = length if end == -1 else end + 2
        else:
            out.append(char)
            index += 1
    return "".join(out)


def _close_unbalanced(text: str) -> str:
    """Append missing } and ] in nesting order when only a few are missing."""
    stack: List[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char in CLOSERS:
            stack.append(char)
        elif char in ("}", "]"):
            if stack and CLOSERS[stack[-1]] == char:
                stack.pop()
            else:
                # Stray closer; counts no longer describe the damage
                return text

    if not stack:
        return text
    if stack.count("{") > MAX_MISSING_CLOSERS or stack.count("[") > MAX_MISSING_CLOSERS:
        return text

    # Drop a dangling comma before closing
    text = re.sub(r",\s*$", "", text)
    return text + "".join(CLOSERS[opener] for opener in reversed(stack))
