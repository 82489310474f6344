from functools import lru_cache
from types import MappingProxyType
from typing import Mapping


@lru_cache(maxsize=None)
def bytes_to_unicode() -> Mapping[int, str]:
    """
    GPT-2 byte -> printable character table.

    The 188 printable bytes map to themselves; the other 68 get code points
    from 256 upward in ascending byte order. Built once, read-only.
    """
    bs = (
        list(range(ord("!"), ord("~") + 1))
        + list(range(ord("¡"), ord("¬") + 1))
        + list(range(ord("®"), ord("ÿ") + 1))
    )
    cs = bs[:]
    n = 0
    for b in range(256):
        if b not in bs:
            bs.append(b)
            cs.append(256 + n)
            n += 1
    return MappingProxyType({b: chr(c) for b, c in zip(bs, cs)})
