import unittest

from posedecode.vision.keypoints import Point, PoseInstance
from posedecode.vision.nms import instance_score, within_nms_radius


def _pose_at(x: float, y: float, score: float = 0.5, num_keypoints: int = 4) -> PoseInstance:
    pose = PoseInstance.empty(num_keypoints)
    for kp in pose.keypoints:
        kp.coord = Point(x=x, y=y)
        kp.score = score
    return pose


class WithinRadiusTests(unittest.TestCase):
    def test_no_accepted_poses_means_never_within_radius(self) -> None:
        self.assertFalse(within_nms_radius(Point(0.0, 0.0), 0, [], 400.0))

    def test_boundary_distance_counts_as_within(self) -> None:
        poses = [_pose_at(100.0, 100.0)]
        self.assertTrue(within_nms_radius(Point(120.0, 100.0), 1, poses, 400.0))
        self.assertTrue(within_nms_radius(Point(112.0, 116.0), 1, poses, 400.0))
        self.assertFalse(within_nms_radius(Point(120.01, 100.0), 1, poses, 400.0))

    def test_only_the_same_keypoint_type_is_compared(self) -> None:
        pose = _pose_at(500.0, 500.0)
        pose.keypoints[2].coord = Point(10.0, 10.0)
        self.assertTrue(within_nms_radius(Point(12.0, 12.0), 2, [pose], 400.0))
        self.assertFalse(within_nms_radius(Point(12.0, 12.0), 3, [pose], 400.0))

    def test_any_accepted_pose_can_suppress(self) -> None:
        poses = [_pose_at(0.0, 0.0), _pose_at(300.0, 300.0)]
        self.assertTrue(within_nms_radius(Point(305.0, 295.0), 0, poses, 400.0))


class InstanceScoreTests(unittest.TestCase):
    def test_first_instance_scores_plain_mean(self) -> None:
        instance = _pose_at(50.0, 50.0, score=0.0)
        for kp, score in zip(instance.keypoints, [0.2, 0.4, 0.6, 0.8]):
            kp.score = score
        self.assertAlmostEqual(instance_score(instance, [], 400.0), 0.5)

    def test_overlapping_keypoints_contribute_zero(self) -> None:
        accepted = [_pose_at(0.0, 0.0)]
        instance = _pose_at(200.0, 200.0, score=0.8)
        instance.keypoints[0].coord = Point(5.0, 5.0)
        instance.keypoints[1].coord = Point(3.0, -4.0)
        self.assertAlmostEqual(instance_score(instance, accepted, 400.0), (0.8 + 0.8) / 4)

    def test_fully_overlapping_instance_scores_zero(self) -> None:
        accepted = [_pose_at(10.0, 10.0)]
        self.assertEqual(instance_score(_pose_at(12.0, 9.0, score=0.9), accepted, 400.0), 0.0)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
