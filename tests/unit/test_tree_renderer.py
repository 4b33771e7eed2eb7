"""
Unit tests for tree_renderer module.
"""

from record_hierarchy.export.tree_renderer import TreeRenderer
from record_hierarchy.models.data_structures import HierarchyNode
from record_hierarchy.processing.hierarchy_builder import HierarchyBuilder


class TestTreeRenderer:
    def test_render_grouped_tree(self, memory_store):
        tree = HierarchyBuilder(memory_store).build("A1", "Account", 2)
        assert TreeRenderer().render(tree) == (
            "Acme (A1)\n"
            "  [Contact]\n"
            "    Jane Doe (C1)\n"
            "    John Roe (C2)"
        )

    def test_custom_indent(self, memory_store):
        tree = HierarchyBuilder(memory_store).build("CS1", "Case", 2)
        assert TreeRenderer(indent="--").render_lines(tree) == [
            "Broken widget (CS1)",
            "--[CaseComment]",
            "----CS1 (CC1)",
        ]

    def test_unlabelled_record(self):
        node = HierarchyNode.record("00kA", None, "OpportunityLineItem")
        assert TreeRenderer.format_node(node) == "00kA"
