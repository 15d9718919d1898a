"""Tolerant extraction of a string array field from a small JSON-ish body.

Only the shape the download page sends is understood:
``{"files": ["a", "b/c"]}``. A missing field, bracket or body yields an
empty list rather than an error.
"""


def extract_string_array(body: str, key: str) -> list[str]:
    """Return the comma-separated quoted strings inside ``key``'s brackets."""
    key_pos = body.find(f'"{key}"')
    if key_pos == -1:
        return []
    after_key = body[key_pos + len(key) + 2 :]
    open_pos = after_key.find("[")
    if open_pos == -1:
        return []
    after_open = after_key[open_pos + 1 :]
    close_pos = after_open.find("]")
    if close_pos == -1:
        return []

    values = []
    for item in after_open[:close_pos].split(","):
        value = item.strip().strip('"')
        if value:
            values.append(value)
    return values
