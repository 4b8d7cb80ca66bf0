import unittest

from posedecode.vision.skeleton import (
    DEFAULT_SKELETON,
    KEYPOINT_NAMES,
    POSE_CHAIN,
    SkeletonEdge,
    SkeletonGraph,
    SkeletonGraphError,
)


class SkeletonGraphTests(unittest.TestCase):
    def test_default_skeleton_is_a_tree_over_seventeen_keypoints(self) -> None:
        self.assertEqual(DEFAULT_SKELETON.num_keypoints, 17)
        self.assertEqual(DEFAULT_SKELETON.num_edges, 16)
        children = [edge.child for edge in DEFAULT_SKELETON.edges]
        self.assertEqual(len(set(children)), 16)
        self.assertNotIn(DEFAULT_SKELETON.keypoint_id("nose"), children)

    def test_edges_resolve_names_to_type_ids(self) -> None:
        first = DEFAULT_SKELETON.edges[0]
        self.assertEqual(first, SkeletonEdge(index=0, parent=0, child=1))
        self.assertEqual(DEFAULT_SKELETON.named_edges()[-1], ("right_knee", "right_ankle"))
        self.assertEqual(DEFAULT_SKELETON.keypoint_id("left_wrist"), 9)

    def test_backward_edges_run_leaf_to_root(self) -> None:
        indices = [edge.index for edge in DEFAULT_SKELETON.backward_edges()]
        self.assertEqual(indices, list(range(15, -1, -1)))

    def test_wrong_edge_count_raises(self) -> None:
        with self.assertRaises(SkeletonGraphError):
            SkeletonGraph.from_names(KEYPOINT_NAMES, POSE_CHAIN[:-1])

    def test_unknown_keypoint_name_raises(self) -> None:
        chain = list(POSE_CHAIN[:-1]) + [("right_knee", "right_foot")]
        with self.assertRaises(SkeletonGraphError):
            SkeletonGraph.from_names(KEYPOINT_NAMES, chain)

    def test_duplicate_keypoint_names_raise(self) -> None:
        with self.assertRaises(SkeletonGraphError):
            SkeletonGraph.from_names(("a", "a", "b"), [("a", "b"), ("b", "a")])

    def test_unknown_lookup_raises_value_error(self) -> None:
        with self.assertRaises(ValueError):
            DEFAULT_SKELETON.keypoint_id("tail")

    def test_direct_construction_builds_name_lookup(self) -> None:
        graph = SkeletonGraph(names=DEFAULT_SKELETON.names, edges=DEFAULT_SKELETON.edges)
        self.assertEqual(graph.keypoint_id("nose"), 0)
        self.assertEqual(graph.keypoint_id("right_ankle"), 16)
        self.assertEqual(graph, DEFAULT_SKELETON)

    def test_direct_construction_with_missing_edges_raises(self) -> None:
        with self.assertRaises(SkeletonGraphError):
            SkeletonGraph(names=DEFAULT_SKELETON.names, edges=DEFAULT_SKELETON.edges[:10])

    def test_direct_construction_with_out_of_range_edge_raises(self) -> None:
        edges = DEFAULT_SKELETON.edges[:-1] + (SkeletonEdge(index=15, parent=14, child=17),)
        with self.assertRaises(SkeletonGraphError):
            SkeletonGraph(names=DEFAULT_SKELETON.names, edges=edges)

    def test_misnumbered_edge_raises(self) -> None:
        edges = (SkeletonEdge(index=1, parent=0, child=1), SkeletonEdge(index=0, parent=1, child=2))
        with self.assertRaises(SkeletonGraphError):
            SkeletonGraph(names=("a", "b", "c"), edges=edges)

    def test_cycle_leaving_a_keypoint_unreachable_raises(self) -> None:
        # a-b-c-a cycle uses all three edges and never reaches d
        chain = [("a", "b"), ("b", "c"), ("c", "a")]
        with self.assertRaises(SkeletonGraphError) as ctx:
            SkeletonGraph.from_names(("a", "b", "c", "d"), chain)
        self.assertIn("[3]", str(ctx.exception))


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
