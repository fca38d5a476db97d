from collections import deque

from rbindgen import logging as rbindgen_logging
from rbindgen.c_parser.type_registry import BUILTIN_NAMES
from rbindgen.c_types import Global

logger = rbindgen_logging.get_logger(__name__)


def is_builtin(node: Global, builtin_names=BUILTIN_NAMES) -> bool:
    if node.location.is_builtin:
        return True
    return node.name in builtin_names or (node.typedef_name or "") in builtin_names


def select(node: Global, patterns, builtins_allowed: bool, builtin_names=BUILTIN_NAMES) -> bool:
    """Whether ``node`` is emitted on its own merits.

    A declaration is selected when its file name contains one of
    ``patterns`` (or there are no patterns). Compiler builtins are never
    selected unless ``builtins_allowed``.
    """
    if is_builtin(node, builtin_names):
        if not builtins_allowed:
            return False
        return not patterns
    if not patterns:
        return True
    return any(pattern in node.location.file for pattern in patterns)


def close_over_dependencies(selected, order) -> list[Global]:
    """Add every declaration reachable through a type reference.

    ``order`` lists all known declarations; the result follows it, so the
    emitted set is independent of the order the closure is discovered in.
    """
    reached: set[str] = set()
    queue = deque()
    for node in selected:
        if node.key not in reached:
            reached.add(node.key)
            queue.append(node)

    while queue:
        node = queue.popleft()
        for dep, _ in node.dependencies():
            if dep.key not in reached:
                logger.debug("%r pulled in by %r", dep, node)
                reached.add(dep.key)
                queue.append(dep)

    ordered = [node for node in order if node.key in reached]
    known = {node.key for node in ordered}
    # dependencies reached without being part of ``order`` go last
    for node in selected:
        if node.key not in known:
            ordered.append(node)
            known.add(node.key)
    return ordered
