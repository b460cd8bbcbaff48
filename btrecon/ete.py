"""ETE compatibility helpers.

Trees are handled through this thin layer so that btrecon runs with either
ete4 (preferred) or ete3 (fallback for older environments). Only the tree
operations needed for tagging ancestral nodes are wrapped here.
"""

from __future__ import annotations

_ete4_import_error = None
_ete3_import_error = None
_backend = None

try:
    import ete4 as _ete_mod  # type: ignore[import-not-found]
    _backend = "ete4"
except Exception as exc:  # pragma: no cover - backend-specific
    _ete4_import_error = exc
    _ete_mod = None

if _backend is None:
    try:
        import ete3 as _ete_mod  # type: ignore[import-not-found]
        _backend = "ete3"
    except Exception as exc:  # pragma: no cover - backend-specific
        _ete3_import_error = exc

if _backend is None:  # pragma: no cover - backend-specific
    raise ImportError(
        "Failed to import both ete4 and ete3. "
        f"ete4 error={_ete4_import_error!r}, ete3 error={_ete3_import_error!r}"
    )


def PhyloNode(source, format=1):
    if _backend == "ete4":
        return _ete_mod.Tree(source, parser=format)
    return _ete_mod.PhyloNode(source, format=format)


def is_leaf(node):
    value = getattr(node, "is_leaf")
    return value() if callable(value) else bool(value)


def get_children(node):
    if hasattr(node, "children"):
        return list(node.children)
    return node.get_children()


def get_leaf_names(node):
    if hasattr(node, "leaf_names"):
        return list(node.leaf_names())
    return node.get_leaf_names()


def iter_preorder(node):
    # Both backends accept the strategy name positionally.
    return node.traverse("preorder")


def set_prop(node, key, value):
    if (_backend == "ete4") and hasattr(node, "add_props"):
        node.add_props(**{key: value})
        return value
    setattr(node, key, value)
    return value


def get_prop(node, key, default=None):
    if (_backend == "ete4") and hasattr(node, "props"):
        return node.props.get(key, default)
    return getattr(node, key, default)


def write_tree(tree, format=1):
    if _backend == "ete4":
        return tree.write(parser=format, format_root_node=True)
    return tree.write(format=format)
