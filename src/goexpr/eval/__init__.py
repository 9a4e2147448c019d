"""Per-node-kind handlers for the Go expression evaluator."""

__all__ = [
    "common",
    "selector",
    "expr",
    "call",
    "literals",
    "typelits",
]
