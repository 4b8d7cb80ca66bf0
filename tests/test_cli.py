import contextlib
import io
import json
import tempfile
import unittest
from pathlib import Path

from posedecode import cli
from posedecode.config import DecoderConfig
from posedecode.io.tensors import TensorBundle, save_tensor_bundle
from posedecode.vision.cache import cache_path, load_decoded_frames

from synthetic import STRIDE, empty_outputs, paint_person


def _run(argv):
    stdout, stderr = io.StringIO(), io.StringIO()
    with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
        code = cli.run_cli(argv)
    return code, stdout.getvalue(), stderr.getvalue()


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.workdir = Path(tempfile.mkdtemp())
        outputs = empty_outputs()
        self.cells = paint_person(outputs, origin=(3, 3), score=0.9)
        self.bundle = save_tensor_bundle(self.workdir / "frame.npz", TensorBundle(*outputs))

    def test_decode_prints_named_keypoints(self) -> None:
        code, out, _ = _run(["decode", str(self.bundle)])
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(payload["num_poses"], 1)
        nose = payload["poses"][0]["keypoints"][0]
        self.assertEqual(nose["part"], "nose")
        row, col = self.cells[0]
        self.assertEqual((nose["x"], nose["y"]), (col * STRIDE, row * STRIDE))

    def test_scale_flag_rescales_output(self) -> None:
        code, out, _ = _run(["decode", str(self.bundle), "--scale", "2", "3"])
        self.assertEqual(code, 0)
        nose = json.loads(out)["poses"][0]["keypoints"][0]
        row, col = self.cells[0]
        self.assertEqual((nose["x"], nose["y"]), (col * STRIDE * 2.0, row * STRIDE * 3.0))

    def test_output_file_is_written_as_jsonl(self) -> None:
        out_path = self.workdir / "poses.jsonl"
        code, _, _ = _run(["decode", str(self.bundle), "--output", str(out_path)])
        self.assertEqual(code, 0)
        frames = list(load_decoded_frames(out_path))
        self.assertEqual(len(frames), 1)
        self.assertEqual(len(frames[0].poses), 1)

        code, _, err = _run(["decode", str(self.bundle), "--output", str(out_path)])
        self.assertEqual(code, 2)
        self.assertIn("already exists", err)

    def test_cache_dir_is_populated_and_reused(self) -> None:
        cache_dir = self.workdir / "cache"
        code, first, _ = _run(["decode", str(self.bundle), "--cache-dir", str(cache_dir), "--source-size", "640", "480"])
        self.assertEqual(code, 0)
        self.assertEqual(len(list(cache_dir.glob("*.jsonl"))), 1)

        code, second, _ = _run(["decode", str(self.bundle), "--cache-dir", str(cache_dir), "--source-size", "640", "480"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(first)["poses"], json.loads(second)["poses"])

    def test_empty_cache_file_is_treated_as_a_miss(self) -> None:
        cache_dir = self.workdir / "cache"
        cache_dir.mkdir()
        cache_file = cache_path(cache_dir, self.bundle, DecoderConfig(), "nchw")
        cache_file.write_text("", encoding="utf-8")

        code, out, err = _run(["decode", str(self.bundle), "--cache-dir", str(cache_dir)])
        self.assertEqual(code, 0, err)
        self.assertEqual(json.loads(out)["num_poses"], 1)
        self.assertEqual(len(list(load_decoded_frames(cache_file))), 1)

    def test_strict_min_pose_score_yields_empty_result(self) -> None:
        code, out, _ = _run(["decode", str(self.bundle), "--min-pose-score", "0.95"])
        self.assertEqual(code, 0)
        self.assertEqual(json.loads(out)["num_poses"], 0)

    def test_errors_are_reported_with_exit_code_two(self) -> None:
        code, _, err = _run(["decode", str(self.workdir / "missing.npz")])
        self.assertEqual(code, 2)
        self.assertTrue(err.startswith("Error:"))

        code, _, err = _run(["decode", str(self.bundle), "--scale", "1", "1", "--source-size", "10", "10"])
        self.assertEqual(code, 2)

    def test_skeleton_command_lists_edges(self) -> None:
        code, out, _ = _run(["skeleton"])
        self.assertEqual(code, 0)
        payload = json.loads(out)
        self.assertEqual(len(payload["keypoints"]), 17)
        self.assertEqual(payload["edges"][0], ["nose", "left_eye"])


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
