"""
Removal of non-semantic tags (mapper metadata, bulk import artefacts).
"""

from routegraph.constants import DELETE_KEYS


def make_clean_tags(keys=DELETE_KEYS):
    """
    Compile a list of keys into a tag cleaning function.

    Parameters
    ----------
    keys : iterable of str
        Exact keys, or prefixes written as ``'prefix:*'`` which match every
        key starting with ``'prefix:'``.

    Returns
    -------
    callable
        ``clean(tags) -> (filtered, is_empty)``. The input mapping is not
        modified; ``is_empty`` is True when no tag survives.
    """
    exact = set()
    prefixes = []
    for key in keys:
        if key.endswith('*'):
            prefixes.append(key[:-1])
        else:
            exact.add(key)
    prefixes = tuple(prefixes)

    def clean(tags):
        if not tags:
            return {}, True
        filtered = {k: v for k, v in tags.items()
                    if k not in exact and not (prefixes and k.startswith(prefixes))}
        return filtered, len(filtered) == 0

    return clean


_default_clean = make_clean_tags(DELETE_KEYS)


def clean_tags(tags, keys=None):
    """Filter `tags` with `keys` (default DELETE_KEYS). Returns (filtered, is_empty)."""
    if keys is None:
        return _default_clean(tags)
    return make_clean_tags(keys)(tags)
