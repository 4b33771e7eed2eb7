"""Plain-text rendering of hierarchy trees for terminal output."""

from typing import List

from ..models.data_structures import HierarchyNode


class TreeRenderer:
    """Renders a hierarchy as indented lines.

    Group nodes render as '[Type]', record nodes as 'label (id)' or just the
    id when the record has no label.

    Example:
        >>> print(TreeRenderer().render(tree))
        Acme (A1)
          [Contact]
            Jane Doe (C1)
    """

    def __init__(self, indent: str = "  ") -> None:
        self.indent = indent

    def render(self, tree: HierarchyNode) -> str:
        return "\n".join(self.render_lines(tree))

    def render_lines(self, tree: HierarchyNode) -> List[str]:
        lines: List[str] = []

        def visit(node: HierarchyNode, level: int) -> None:
            lines.append(f"{self.indent * level}{self.format_node(node)}")
            for child in node.children:
                visit(child, level + 1)

        visit(tree, 0)
        return lines

    @staticmethod
    def format_node(node: HierarchyNode) -> str:
        if node.is_group:
            return f"[{node.label}]"
        if node.label:
            return f"{node.label} ({node.id})"
        return node.id
