"""Translation between hierarchical keys and flat blob names.

Keys are ``/``-delimited paths with no leading slash. The blob store has no
native hierarchy, so a listing reconstructs one level of it: names directly
under the prefix are returned as-is, deeper names collapse into a single
directory key ending with the delimiter.
"""

from collections.abc import Iterable

DELIMITER = "/"


def child_key(prefix: str, name: str) -> str:
    """Return the one-level child key of ``name`` below ``prefix``.

    Args:
        prefix: Listing prefix the name was returned for
        name: Full blob name, expected to start with ``prefix``

    Returns:
        The remainder for a leaf, or the remainder truncated just after its
        first delimiter for anything deeper.

    Examples:
        >>> child_key("", "a")
        'a'
        >>> child_key("", "e/f/g")
        'e/'
        >>> child_key("b/", "b/c")
        'c'
    """
    rest = name[len(prefix):] if name.startswith(prefix) else name
    i = rest.find(DELIMITER)
    if i == -1:
        return rest
    return rest[: i + 1]


def is_directory(key: str) -> bool:
    """True for synthesized directory keys."""
    return key.endswith(DELIMITER)


def list_keys(prefix: str, names: Iterable[str]) -> list[str]:
    """Collapse flat blob names into a sorted, de-duplicated key listing."""
    keys: set[str] = set()
    for name in names:
        keys.add(child_key(prefix, name))
    return sorted(keys)
