"""Text repairs for near-JSON generator output.

Each function takes text and returns text; none of them parse. The decoder
composes them into stages.
"""

import re

_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_NUMBER_THEN_QUOTED_KEY = re.compile(r"(\d)\s*,\s*\"([A-Za-z])")
_NUMBER_MISSING_COMMA = re.compile(r"(\d)\s+(\"[A-Za-z_][\w]*\"\s*:)")

# Known failure signatures of the generator.
_TARGETED_PATCHES: list[tuple[re.Pattern[str], str]] = [
    # "longitude": 1.0 "latitude" / "longitude": 1.0, latitude"
    (
        re.compile(r"(\"longitude\"\s*:\s*-?[\d.]+)\s*,?\s*\"?latitude\"\s*:"),
        r'\1, "latitude":',
    ),
    # location object left open after latitude: "latitude": 2.0, "visitDuration"
    (
        re.compile(
            r"(\"latitude\"\s*:\s*-?[\d.]+)\s*,\s*"
            r"(\"(?:visitDuration|description|name|address|rating|category|imageUrl)\"\s*:)"
        ),
        r"\1}, \2",
    ),
    # attraction left open after visitDuration: "visitDuration": 120 ] / { / "name"
    (re.compile(r"(\"visitDuration\"\s*:\s*\d+)\s*\]"), r"\1}]"),
    (re.compile(r"(\"visitDuration\"\s*:\s*\d+)\s*,?\s*\{"), r"\1}, {"),
    # unterminated category string: "category": "park}
    (re.compile(r"(\"category\"\s*:\s*\"[^\"{}\[\],]*)(\s*[}\]])"), r'\1"\2'),
    # attraction left open after category: "category": "park" ]
    (re.compile(r"(\"category\"\s*:\s*\"[^\"]*\")\s*,?\s*\]"), r"\1}]"),
]

_CLOSER_FOR = {"{": "}", "[": "]"}


def strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def clean_text(text: str) -> str:
    """Whitespace, escaping, and separator clean-up."""
    cleaned = (
        text.strip()
        .replace("\n", " ")
        .replace("\r", "")
        .replace("\\n", " ")
        .replace('\\"', '"')
        .replace('"{', "{")
        .replace('}"', "}")
    )
    cleaned = _NUMBER_THEN_QUOTED_KEY.sub(r'\1,"\2', cleaned)
    cleaned = _NUMBER_MISSING_COMMA.sub(r"\1, \2", cleaned)
    return strip_trailing_commas(cleaned)


def extract_object(text: str) -> str:
    """Substring from the first ``{`` to the last ``}``.

    Raises:
        ValueError: if ``text`` has no such span
    """
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ValueError("no JSON object span found")
    return text[start : end + 1]


def apply_targeted_patches(text: str) -> str:
    for pattern, replacement in _TARGETED_PATCHES:
        text = pattern.sub(replacement, text)
    return text


def balance_brackets(text: str) -> str:
    """Rewrite bracket structure in a single left-to-right scan.

    Tracks open ``{``/``[`` outside of strings. A closer that does not match
    the innermost opener is rewritten to the expected closer; a closer with
    nothing open is dropped. At the end an unterminated string is closed and
    missing closers are appended innermost first.
    """
    out: list[str] = []
    stack: list[str] = []
    in_string = False
    escaped = False

    for ch in text:
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
        elif ch in _CLOSER_FOR:
            stack.append(ch)
            out.append(ch)
        elif ch in "}]":
            if not stack:
                continue
            out.append(_CLOSER_FOR[stack.pop()])
        else:
            out.append(ch)

    if in_string:
        if escaped:
            out.pop()
        out.append('"')
    while stack:
        out.append(_CLOSER_FOR[stack.pop()])

    return strip_trailing_commas("".join(out))
