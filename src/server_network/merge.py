def merge_string_lists(local: list[str], remote: list[str]) -> list[str]:
    """Merge a remote list into a locally ordered one.

    Items of ``local`` that are still present in ``remote`` keep their local
    order. Items only in ``remote`` are appended in remote order. Items only
    in ``local`` are dropped. Each item appears at most once in the result.

    >>> merge_string_lists(["a", "b", "c"], ["c", "d", "b"])
    ['b', 'c', 'd']
    """
    remote_set = set(remote)
    merged: list[str] = []
    seen: set[str] = set()
    for item in local:
        if item in remote_set and item not in seen:
            merged.append(item)
            seen.add(item)
    for item in remote:
        if item not in seen:
            merged.append(item)
            seen.add(item)
    return merged
