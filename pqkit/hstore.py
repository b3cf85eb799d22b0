"""Conversion of hstore values to and from Python dictionaries."""

from __future__ import annotations

from dataclasses import dataclass

__all__ = ["Hstore", "quote_hstore"]


def quote_hstore(value: str | None) -> str:
    """Quote and escape an hstore key or value; None becomes NULL."""
    if value is None:
        return "NULL"
    if not isinstance(value, str):
        raise TypeError("not a string or None")
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _finish_value(raw: str, did_quote: bool) -> str | None:
    if not did_quote and raw.lower() == "null":
        return None
    return raw


@dataclass
class Hstore:
    """An hstore value: keys mapping to strings or None (NULL).

    ``map`` is None when the hstore itself is NULL.
    """

    map: dict[str, str | None] | None = None

    def scan(self, value: bytes | str | None) -> None:
        """Replace the contents with a value received from the database."""
        if value is None:
            self.map = None
            return
        text = value.decode() if isinstance(value, (bytes, bytearray)) else value
        result: dict[str, str | None] = {}
        pair = [[], []]
        index = 0
        in_quote = did_quote = saw_slash = False
        for ch in text:
            if saw_slash:
                pair[index].append(ch)
                saw_slash = False
                continue
            if ch == "\\":
                saw_slash = True
                continue
            if ch == '"':
                in_quote = not in_quote
                did_quote = True
                continue
            if not in_quote:
                if ch in " \t\n\r=":
                    continue
                if ch == ">":
                    index = 1
                    did_quote = False
                    continue
                if ch == ",":
                    result["".join(pair[0])] = _finish_value("".join(pair[1]), did_quote)
                    pair = [[], []]
                    index = 0
                    continue
            pair[index].append(ch)
        if len(text) > 1:
            result["".join(pair[0])] = _finish_value("".join(pair[1]), did_quote)
        self.map = result

    def value(self) -> bytes | None:
        """Return the encoded value to send, or None for a NULL hstore."""
        if self.map is None:
            return None
        parts = (f"{quote_hstore(k)}=>{quote_hstore(v)}" for k, v in self.map.items())
        return ",".join(parts).encode()