"""Parsing of Kubernetes resource quantities.

Examples::

    parse_memory("128Mi")  -> 134217728
    parse_memory("1000Ki") -> 1024000
    parse_memory("1500m")  -> 1         (millibytes, truncated)
    parse_cpu("250m")      -> 250       (millicores)
    parse_cpu("2")         -> 2000
    parse_cpu("15000000n") -> 15
"""

from __future__ import annotations

_MEMORY_MULTIPLIERS: dict[str, int] = {
    "Ki": 1024,
    "Mi": 1024**2,
    "Gi": 1024**3,
    "Ti": 1024**4,
    "Pi": 1024**5,
    "Ei": 1024**6,
    "k": 1000,
    "K": 1000,
    "M": 1000**2,
    "G": 1000**3,
    "T": 1000**4,
    "P": 1000**5,
    "E": 1000**6,
}

# Millicores per unit for the CPU suffixes metrics-server and the API emit.
_CPU_DIVISORS: dict[str, float] = {
    "n": 1_000_000,
    "u": 1_000,
    "m": 1,
}


def parse_memory(value: str | int | None) -> int:
    """Parse a memory quantity into bytes.  Empty input yields 0.

    Raises:
        ValueError: if *value* is not a valid quantity.
    """
    if value is None or value == "":
        return 0
    text = str(value).strip()

    # Millibytes: the API writes non-integral byte values this way.  No
    # other memory suffix ends in a lowercase "m".
    if text.endswith("m"):
        return int(float(text[:-1]) / 1000)

    # Two-letter binary suffixes must be tried before their one-letter prefixes.
    for suffix in sorted(_MEMORY_MULTIPLIERS, key=len, reverse=True):
        if text.endswith(suffix):
            return int(float(text[: -len(suffix)]) * _MEMORY_MULTIPLIERS[suffix])

    return int(float(text))


def parse_cpu(value: str | int | None) -> int:
    """Parse a CPU quantity into millicores.  Empty input yields 0.

    Raises:
        ValueError: if *value* is not a valid quantity.
    """
    if value is None or value == "":
        return 0
    text = str(value).strip()

    suffix = text[-1]
    if suffix in _CPU_DIVISORS:
        return int(float(text[:-1]) / _CPU_DIVISORS[suffix])

    # Plain cores
    return int(float(text) * 1000)
