"""Text composition for overwriting the last line of a sent message."""


def compose_override_text(previous_text: str, new_line: str) -> str:
    """Replace the last line of previous_text with new_line.

    >>> compose_override_text("x\\ny", "z")
    'x\\nz'
    """
    lines = previous_text.split("\n")
    lines.pop()
    lines.append(new_line)
    return "\n".join(lines)
