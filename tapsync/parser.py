from __future__ import annotations


def parse_command(line: str) -> list[str]:
    """Split one MONITOR line into tokens.

    ``1700000000.000000 [0 127.0.0.1:1234] "SET" "foo" "bar"`` gives
    ``['1700000000.000000 [0 127.0.0.1:1234]', 'SET', 'foo', 'bar']``.
    Token 0 is the metadata prefix, token 1 the command name.
    """
    out: list[str] = []
    for part in line.split('"'):
        part = part.strip()
        if part:
            out.append(part)
    return out


def command_args(parsed: list[str]) -> list[str] | None:
    # fewer than two tokens means metadata only, nothing to run
    if len(parsed) < 2:
        return None
    return parsed[1:]
