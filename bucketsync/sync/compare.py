"""Merge-join of sorted source and destination listings."""

from dataclasses import dataclass

from ..storage import URL, Object
from ..utils import to_slash


@dataclass(frozen=True)
class ObjectPair:
    """Objects found at the same relative path on both sides."""

    source: Object
    destination: Object


def sort_key(obj: Object) -> str:
    """Diff key of an object: its slash-normalized relative path."""
    return to_slash(obj.relative())


def sort_objects(objects: list[Object]) -> None:
    """Stably sort objects in place by relative path."""
    objects.sort(key=sort_key)


def compare_objects(
    source_objects: list[Object],
    destination_objects: list[Object],
) -> tuple[list[URL], list[URL], list[ObjectPair]]:
    """Split two listings into source-only, destination-only and common objects.

    Both lists are sorted in place and walked in lockstep, so the cost is
    one sort per side plus a single linear pass.

    Args:
        source_objects: Eligible source objects
        destination_objects: Eligible destination objects

    Returns:
        Tuple of (source-only URLs, destination-only URLs, common pairs)
    """
    sort_objects(source_objects)
    sort_objects(destination_objects)

    only_source: list[URL] = []
    only_destination: list[URL] = []
    common: list[ObjectPair] = []

    i_src, i_dst = 0, 0
    n_src, n_dst = len(source_objects), len(destination_objects)

    while i_src < n_src or i_dst < n_dst:
        if i_src >= n_src:
            only_destination.append(destination_objects[i_dst].url)
            i_dst += 1
            continue
        if i_dst >= n_dst:
            only_source.append(source_objects[i_src].url)
            i_src += 1
            continue

        src_obj = source_objects[i_src]
        dst_obj = destination_objects[i_dst]
        src_name, dst_name = sort_key(src_obj), sort_key(dst_obj)

        if src_name == dst_name:
            common.append(ObjectPair(source=src_obj, destination=dst_obj))
            i_src += 1
            i_dst += 1
        elif src_name > dst_name:
            only_destination.append(dst_obj.url)
            i_dst += 1
        else:
            only_source.append(src_obj.url)
            i_src += 1

    return only_source, only_destination, common
