"""
Workload profile loading.

A profile is a Java-style `.properties` file. `parse_properties` keeps the
declaration order of keys, which decides table order and therefore which
foreign-key references count as backward. `Profile` layers the built-in
defaults under the global, per-client and per-table knobs.
"""
from __future__ import annotations

import math
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple

from sqlloadgen.domain.errors import ConfigurationError

DEFAULTS: Dict[str, int] = {
    "rows": 1000,
    "clients": 10,
    "statements": 10000,
    "mspt": 5,
    "mix.select": 70,
    "mix.update": 15,
    "mix.insert": 10,
    "mix.delete": 5,
    "commit": 100,
    "rollback": 0,
    "notnull": 100,
    "partitions": 0,
    "mix.select.index": 0,
    "mix.select.in": 0,
    "mix.select.in.count": 5,
}

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def _logical_lines(text: str) -> Iterator[str]:
    pending = ""
    for raw in text.splitlines():
        line = raw.lstrip() if pending else raw.strip()
        if not pending and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        yield pending + line
        pending = ""
    if pending:
        yield pending


def _unescape(value: str) -> str:
    out: List[str] = []
    i = 0
    while i < len(value):
        ch = value[i]
        if ch == "\\" and i + 1 < len(value):
            nxt = value[i + 1]
            if nxt == "u":
                digits = value[i + 2 : i + 6]
                if len(digits) != 4 or any(c not in _HEX_DIGITS for c in digits):
                    raise ValueError(f"malformed \\uXXXX escape '\\u{digits}'")
                out.append(chr(int(digits, 16)))
                i += 6
                continue
            out.append(_ESCAPES.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _split(line: str) -> Tuple[str, str]:
    i = 0
    while i < len(line):
        ch = line[i]
        if ch == "\\":
            i += 2
            continue
        if ch in "=: \t":
            break
        i += 1
    key = line[:i]
    rest = line[i:].lstrip(" \t")
    if rest[:1] in ("=", ":"):
        rest = rest[1:].lstrip(" \t")
    return _unescape(key), _unescape(rest)


def parse_properties(text: str) -> Dict[str, str]:
    """Parse `.properties` text into an insertion-ordered dict (last write wins)."""
    result: Dict[str, str] = {}
    for line in _logical_lines(text):
        try:
            key, value = _split(line)
        except ValueError as exc:
            raise ConfigurationError(f"Invalid profile line '{line}': {exc}") from None
        if key in result:
            del result[key]
        result[key] = value
    return result


def scale_count(count: int, scale: float) -> int:
    """Apply a -s/-t multiplier, rounding half up."""
    return max(0, int(math.floor(count * scale + 0.5)))


def profile_name(configuration: str) -> str:
    """`foo/bar.properties` and `foo/bar` both name the profile `foo/bar`."""
    if configuration.endswith(".properties"):
        return configuration[: -len(".properties")]
    return configuration


def load_properties(path: Path | str) -> Dict[str, str]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigurationError(f"Profile not found: {path}") from None
    return parse_properties(text)


class Profile:
    """
    Typed, precedence-aware view over the profile entries.

    Mix knobs resolve table → client → global → default, client knobs resolve
    client → global → default and table knobs resolve table → global → default.
    """

    def __init__(self, entries: Dict[str, str], name: str = "sqlloadgenerator") -> None:
        self.entries = entries
        self.name = name

    @classmethod
    def load(cls, configuration: str) -> "Profile":
        name = profile_name(configuration)
        return cls(load_properties(name + ".properties"), name=Path(name).name)

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.entries.get(key)
        if value is None or value.strip() == "":
            return default
        return value.strip()

    def get_bool(self, key: str) -> bool:
        value = self.get(key)
        return value is not None and value.lower() == "true"

    def _int(self, key: str) -> Optional[int]:
        value = self.get(key)
        if value is None:
            return None
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"Property '{key}' must be an integer, got '{value}'") from None

    def get_int(self, *keys: str, default: Optional[int] = None) -> int:
        """First integer found among `keys`, else `default`, else the built-in default."""
        for key in keys:
            value = self._int(key)
            if value is not None:
                return value
        if default is not None:
            return default
        base = keys[-1]
        if base not in DEFAULTS:
            raise ConfigurationError(f"Missing required property '{base}'")
        return DEFAULTS[base]

    def table_int(self, table: str, knob: str) -> int:
        return self.get_int(f"{table}.{knob}", knob)

    def client_int(self, client_id: int, knob: str) -> int:
        return self.get_int(f"client.{client_id}.{knob}", knob)

    def mix_int(self, table: str, client_id: int, knob: str) -> int:
        return self.get_int(f"{table}.{knob}", f"client.{client_id}.{knob}", knob)

    def rows(self, table: str) -> int:
        return self.table_int(table, "rows")

    def keys_with_prefix(self, prefix: str) -> List[str]:
        return [k for k in self.entries if k.startswith(prefix)]


__all__ = [
    "DEFAULTS",
    "Profile",
    "load_properties",
    "parse_properties",
    "profile_name",
    "scale_count",
]
