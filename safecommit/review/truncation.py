"""Byte-bounded truncation of diff text."""


def utf8_length(text: str) -> int:
    """Number of bytes ``text`` occupies when encoded as UTF-8."""
    return len(text.encode("utf-8", errors="surrogatepass"))


def truncate_by_bytes(text: str, max_bytes: int) -> str:
    """
    Trim ``text`` to at most ``max_bytes`` UTF-8 bytes.

    Text that already fits is returned unchanged. Otherwise the first
    ``max_bytes`` bytes are decoded and a code point split by the cut is
    dropped, so the result never exceeds the limit. Content past the cut
    point is lost; only the payload size is guaranteed.
    """
    if max_bytes < 0:
        raise ValueError(f"max_bytes must be non-negative, got {max_bytes}")

    encoded = text.encode("utf-8", errors="surrogatepass")
    if len(encoded) <= max_bytes:
        return text
    return encoded[:max_bytes].decode("utf-8", errors="ignore")
