"""Extraction of a JSON object from free-form model output."""

JSON_FENCE = "```json"
FENCE = "```"


def extract_json(text: str) -> str:
    """Return the JSON object the model most likely meant to produce.

    Best effort and never raises. In priority order:

    1. The inner content of the first ```json fenced block, with only the
       fence lines removed.
    2. The first balanced ``{...}`` starting at the first ``{``, found by
       counting brace depth (braces inside string literals are ignored).
    3. The input unchanged.

    The result is not validated; callers must parse it themselves.
    """
    fenced = _fenced_json(text)
    if fenced is not None:
        return fenced

    start = text.find("{")
    if start != -1:
        return _balanced_object(text, start)

    return text


def _fenced_json(text: str) -> str | None:
    start = text.find(JSON_FENCE)
    if start == -1:
        return None

    body_start = start + len(JSON_FENCE)
    newline = text.find("\n", body_start)
    close = text.find(FENCE, body_start)

    # ```json {...}``` on a single line
    if close != -1 and (newline == -1 or close < newline):
        return text[body_start:close].strip()

    # Content begins on the line after the opening fence
    if newline == -1:
        return text[body_start:].strip()
    body = text[newline + 1:]

    end = body.find(FENCE)
    if end == -1:
        return body

    body = body[:end]
    if body.endswith("\r\n"):
        return body[:-2]
    if body.endswith("\n"):
        return body[:-1]
    return body


def _balanced_object(text: str, start: int) -> str:
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
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]

    # Unbalanced: the tail is still the best candidate
    return text[start:]
