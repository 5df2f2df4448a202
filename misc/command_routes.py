from __future__ import annotations


def parse_command(content: str, prefix: str) -> tuple[str, str] | None:
    """Split `<prefix><verb> <args>` into (verb, args). Returns None for anything else."""
    text = (content or "").strip()
    if not prefix or not text.startswith(prefix):
        return None
    body = text[len(prefix):]
    if not body or body[0].isspace():
        return None
    parts = body.split(None, 1)
    verb = parts[0].lower()
    args = parts[1].strip() if len(parts) > 1 else ""
    return verb, args


def match_command(content: str, prefix: str, verb: str) -> str | None:
    parsed = parse_command(content, prefix)
    if parsed is None or parsed[0] != verb.lower():
        return None
    return parsed[1]
