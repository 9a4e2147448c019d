"""Shared helpers for working with the lark Tree/Token nodes the parser builds."""
from __future__ import annotations
from typing import Optional, List, TypeGuard

from lark import Token, Tree
from typing_extensions import TypeAlias

Node: TypeAlias = Tree | Token


def is_tree(node: object) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: object) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: object) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: object) -> List[Node]:
    if not is_tree(node):
        return []

    children = getattr(node, "children", None)
    if children is None:
        return []

    return list(children)

def node_meta(node: object) -> Optional[object]:
    if is_token(node):
        return node if getattr(node, "line", None) is not None else None

    meta = getattr(node, "meta", None)
    if meta is None or getattr(meta, "empty", True):
        return None

    return meta

def node_kind(node: object) -> str:
    """Token type or tree label; used in diagnostics."""
    if is_token(node):
        return node.type
    if is_tree(node):
        return node.data
    return type(node).__name__

def unwrap_paren(node: Node) -> Node:
    while tree_label(node) == 'paren' and len(node.children) == 1:
        node = node.children[0]
    return node

def node_text(node: object) -> str:
    """Render a node back to approximate Go source for error messages."""
    if node is None:
        return ""

    if is_token(node):
        return str(node.value)

    label = tree_label(node)
    ch = tree_children(node)

    match label:
        case 'selector':
            return f"{node_text(ch[0])}.{node_text(ch[1])}"
        case 'binary':
            return f"{node_text(ch[0])} {ch[1].value} {node_text(ch[2])}"
        case 'unary':
            return f"{ch[0].value}{node_text(ch[1])}"
        case 'paren':
            return f"({node_text(ch[0])})"
        case 'star':
            return f"*{node_text(ch[0])}"
        case 'call':
            args = ", ".join(node_text(a) for a in tree_children(ch[1]))
            dots = "..." if len(ch) > 2 and ch[2] is not None else ""
            return f"{node_text(ch[0])}({args}{dots})"
        case 'index':
            return f"{node_text(ch[0])}[{node_text(ch[1])}]"
        case 'slice':
            parts = [node_text(ch[1]), node_text(ch[2])]
            if len(ch) > 4 and ch[4] is not None:
                parts.append(node_text(ch[3]))
            return f"{node_text(ch[0])}[{':'.join(parts)}]"
        case 'type_assert':
            return f"{node_text(ch[0])}.({node_text(ch[1])})"
        case 'array_type':
            return f"[{node_text(ch[0])}]{node_text(ch[1])}"
        case 'ellipsis':
            return f"...{node_text(ch[0])}"
        case 'map_type':
            return f"map[{node_text(ch[0])}]{node_text(ch[1])}"
        case 'composite_lit':
            return f"{node_text(ch[0])}{{…}}"
        case 'key_value':
            return f"{node_text(ch[0])}: {node_text(ch[1])}"
        case 'func_lit':
            return "func literal"
        case _:
            return label or ""
