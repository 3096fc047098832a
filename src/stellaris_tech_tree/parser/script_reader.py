"""Line-based reader for Clausewitz-style script files.

The format is a loose nesting of ``key = value`` and ``key = { ... }``
statements. There is no formal grammar; the reader works on an indexed
list of lines with an integer cursor:

  1. preprocess_script() strips '#' comments and blank lines, then lays
     the text out one statement per line ("key = value", "key = {",
     "}" and bare array elements each on their own line).
  2. split_top_level_blocks() cuts the file into one body per
     ``identifier = {`` found at brace depth zero.
  3. parse_block() walks a body line by line, using extract_block() to
     cut out nested braces and is_array() to decide whether a nested
     body is an array or a map. find_blocks() returns every body of a
     key that repeats within one block.
  4. parse_value() turns a scalar token into bool / int / float / str.

Everything here is total: malformed or truncated input produces a
best-effort result, never an exception.
"""

import re

from stellaris_tech_tree.models.script import ScriptArray, ScriptMap, ScriptValue


_TOP_LEVEL_RE = re.compile(r"(\w+)\s*=\s*\{")
_QUOTED_RE = re.compile(r'"([^"]+)"')
_INT_RE = re.compile(r"-?[0-9]+")

# Tokens of the statement layout pass: quoted strings (an unterminated
# quote runs to the end of the line), braces, operators, bare words.
_TOKEN_RE = re.compile(r'"[^"\n]*"?|\{|\}|>=|<=|!=|==|=|<|>|[^\s{}=<>!"]+|!')
_OPERATORS = frozenset({"=", ">", "<", ">=", "<=", "!=", "=="})

# key <op> value for the comparison operators ('=' is handled by a plain split).
_COMPARISON_RE = re.compile(r"^([^\s=<>!]+)\s*(>=|<=|!=|==|>|<)\s*(.*)$")


# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------


def parse_value(token: str) -> ScriptValue:
    """Classify a scalar token by ordered trial.

    quoted string → str, yes/true/no/false → bool, integer → int,
    float → float, anything else → the raw token as str.
    """
    value = token.strip().rstrip(",").strip()

    if value.startswith('"') and value.endswith('"'):
        return value.strip('"')

    if value in ("yes", "true"):
        return True
    if value in ("no", "false"):
        return False

    if _INT_RE.fullmatch(value):
        return int(value)

    # float() also accepts digit separators; identifiers like 1_a are not numbers.
    if value and "_" not in value:
        try:
            return float(value)
        except ValueError:
            pass

    return value


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------


def _strip_comments(text: str) -> list[str]:
    lines: list[str] = []
    for line in text.splitlines():
        idx = line.find("#")
        if idx != -1:
            line = line[:idx]
        line = line.strip()
        if line:
            lines.append(line)
    return lines


def _statement_lines(tokens: list[str]) -> list[str]:
    """Lay a token stream out one statement per line."""
    lines: list[str] = []
    i = 0
    while i < len(tokens):
        tok = tokens[i]
        if tok in ("{", "}"):
            lines.append(tok)
            i += 1
            continue
        if tok in _OPERATORS:
            # Operator with no key in front of it.
            i += 1
            continue

        op = tokens[i + 1] if i + 1 < len(tokens) else None
        if op not in _OPERATORS:
            # Bare scalar (array element).
            lines.append(tok)
            i += 1
            continue

        value = tokens[i + 2] if i + 2 < len(tokens) else None
        if value == "{":
            lines.append(f"{tok} {op} {{")
            i += 3
        elif value is None or value == "}" or value in _OPERATORS:
            # Missing value: keep the statement, leave the next token alone.
            lines.append(f"{tok} {op}")
            i += 2
        else:
            lines.append(f"{tok} {op} {value}")
            i += 3
    return lines


def preprocess_script(text: str) -> str:
    """Strip comments and blank lines and lay out one statement per line.

    A '#' anywhere on a line truncates it, including inside quotes.
    """
    tokens: list[str] = []
    for line in _strip_comments(text):
        tokens.extend(_TOKEN_RE.findall(line))
    lines = _statement_lines(tokens)
    return "\n".join(lines) + "\n" if lines else ""


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


def extract_block(lines: list[str], start: int) -> tuple[str, int]:
    """Cut out the brace block opening on lines[start].

    Returns (body, resume_index). The opening '{' and its matching '}'
    are not part of the body; every interior line keeps its trailing
    newline. If the input ends before the block closes, returns what was
    collected and len(lines).
    """
    body: list[str] = []
    depth = 0
    started = False
    first_brace = True

    for i in range(start, len(lines)):
        for char in lines[i]:
            if char == "{":
                depth += 1
                started = True
                if first_brace:
                    first_brace = False
                    continue
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return "".join(body), i + 1

            if started and depth > 0:
                body.append(char)

        if started and depth > 0:
            body.append("\n")

    return "".join(body), len(lines)


def is_array(body: str) -> bool:
    """A block is an array unless an '=' appears anywhere in it.

    This is a structural heuristic only: a map whose entries contain no
    '=' (e.g. only '>' comparisons) is read as an array.
    """
    return "=" not in body.strip("{} \n\t")


def parse_array(body: str) -> ScriptArray:
    """Parse an array body.

    Quoted strings win; if there are none, every whitespace-separated
    token goes through parse_value().
    """
    content = body.strip("{} \n\t")
    quoted = _QUOTED_RE.findall(content)
    if quoted:
        return list(quoted)
    return [parse_value(part) for part in content.split()]


def parse_block(body: str) -> ScriptMap:
    """Parse a block body into an ordered key → value mapping.

    Statements are split on the first '='. Comparisons other than '='
    are stored as the text "<op> <value>" under their key. Later
    duplicate keys overwrite earlier ones.

    Nested maps are walked with an explicit stack of
    (mapping, lines, cursor) frames, so nesting depth is not limited by
    the interpreter's recursion limit.
    """
    root: ScriptMap = {}
    stack: list[tuple[ScriptMap, list[str], int]] = [(root, body.split("\n"), 0)]

    while stack:
        result, lines, i = stack.pop()

        while i < len(lines):
            line = lines[i].strip()
            if not line or line == "}":
                i += 1
                continue

            comparison = _COMPARISON_RE.match(line)
            if comparison is not None:
                key, operator, rest = comparison.groups()
                result[key] = f"{operator} {rest.strip()}".rstrip()
                i += 1
                continue

            if "=" not in line:
                i += 1
                continue

            key, value_text = line.split("=", 1)
            key = key.strip()
            value_text = value_text.strip()

            if not value_text.startswith("{"):
                result[key] = parse_value(value_text)
                i += 1
                continue

            block_body, i = extract_block(lines, i)
            if is_array(block_body):
                result[key] = parse_array(block_body)
                continue

            child: ScriptMap = {}
            result[key] = child
            # Resume this body after the child is filled.
            stack.append((result, lines, i))
            stack.append((child, block_body.split("\n"), 0))
            break

    return root


def find_blocks(body: str, key: str) -> list[str]:
    """Return the body of every ``key = { ... }`` statement directly in body.

    parse_block() keeps only the last of repeated keys; this keeps all of
    them, in source order. Blocks nested inside other blocks are not
    searched.
    """
    found: list[str] = []
    lines = body.split("\n")
    i = 0

    while i < len(lines):
        name, sep, rest = lines[i].strip().partition("=")
        if sep and rest.strip().startswith("{"):
            block_body, i = extract_block(lines, i)
            if name.strip() == key:
                found.append(block_body)
            continue
        i += 1

    return found


def split_top_level_blocks(content: str) -> dict[str, str]:
    """Split preprocessed file content into top-level block bodies.

    A block starts at a line matching ``identifier = {`` while the brace
    depth is zero; the header line itself is not part of the body. A
    block still open at end of input is kept. Keys are returned in
    first-seen order; a repeated key keeps its last body.
    """
    blocks: dict[str, str] = {}
    current_key = ""
    current: list[str] = []
    depth = 0
    in_block = False

    for line in content.split("\n"):
        match = _TOP_LEVEL_RE.search(line) if depth == 0 else None
        if match is not None:
            if in_block and current_key:
                blocks[current_key] = "".join(current)

            current_key = match.group(1)
            current = []
            in_block = True
            depth += line.count("{") - line.count("}")
            # Whole block on the header line.
            if depth <= 0:
                blocks[current_key] = extract_block([line], 0)[0]
                in_block = False
                current_key = ""
                depth = 0
        elif in_block:
            current.append(line + "\n")
            depth += line.count("{") - line.count("}")
            if depth <= 0:
                blocks[current_key] = "".join(current)
                in_block = False
                current_key = ""
                current = []
                depth = 0

    if in_block and current_key:
        blocks[current_key] = "".join(current)

    return blocks
