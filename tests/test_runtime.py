import threading
import unittest

import numpy as np

from yolov2_kit.config import GridConfig, PostConfig
from yolov2_kit.postprocess import YoloPostprocessor
from yolov2_kit.runtime import AdmissionGate, FpsMeter, YoloPipeline


def _grid() -> GridConfig:
    return GridConfig(grid_h=2, grid_w=2, anchors=((1.0, 1.0),), num_classes=2, input_width=64, input_height=64)


def _good_tensor(grid: GridConfig) -> np.ndarray:
    t = np.full(grid.expected_shape, -30.0, dtype=np.float32)
    t[0, 0, :] = [0.0, 0.0, 0.0, 0.0, 8.0, 4.0, 0.0]
    return t


class _FakeClock:
    def __init__(self, step: float):
        self.t = 0.0
        self.step = step

    def __call__(self) -> float:
        self.t += self.step
        return self.t


class TestAdmissionGate(unittest.TestCase):
    def test_drops_when_full(self) -> None:
        gate = AdmissionGate(max_in_flight=2)
        self.assertTrue(gate.try_acquire())
        self.assertTrue(gate.try_acquire())
        self.assertFalse(gate.try_acquire())
        self.assertEqual((gate.admitted, gate.dropped), (2, 1))
        gate.release()
        self.assertTrue(gate.try_acquire())

    def test_over_release_is_an_error(self) -> None:
        gate = AdmissionGate(max_in_flight=1)
        with self.assertRaises(ValueError):
            gate.release()

    def test_invalid_size(self) -> None:
        with self.assertRaises(ValueError):
            AdmissionGate(max_in_flight=0)


class TestYoloPipeline(unittest.TestCase):
    def _pipeline(self, infer_fn, **kwargs) -> YoloPipeline:
        grid = _grid()
        post = YoloPostprocessor(grid, PostConfig(conf_threshold=0.3, iou_threshold=0.5, max_detections=5))
        return YoloPipeline(infer_fn, post, **kwargs)

    def test_good_frame(self) -> None:
        grid = _grid()
        pipe = self._pipeline(lambda frame: _good_tensor(grid))
        result = pipe.run_frame(object())
        self.assertTrue(result.ok)
        self.assertEqual(len(result.predictions), 1)
        self.assertEqual(result.predictions[0].class_index, 0)
        self.assertGreaterEqual(result.elapsed_s, 0.0)
        self.assertEqual(len(pipe(object())), 1)

    def test_bad_tensor_shows_nothing_then_recovers(self) -> None:
        grid = _grid()
        frames = iter([np.zeros((3, 3, 3)), _good_tensor(grid)])
        pipe = self._pipeline(lambda frame: next(frames))

        with self.assertLogs("yolov2_kit.runtime", level="WARNING"):
            bad = pipe.run_frame(None)
        self.assertFalse(bad.ok)
        self.assertEqual(bad.predictions, [])
        self.assertIn("does not match", bad.error)

        good = pipe.run_frame(None)
        self.assertTrue(good.ok)
        self.assertEqual(len(good.predictions), 1)

    def test_submit_drops_when_gate_full(self) -> None:
        grid = _grid()
        gate = AdmissionGate(max_in_flight=1)
        pipe = self._pipeline(lambda frame: _good_tensor(grid), gate=gate)

        self.assertTrue(gate.try_acquire())
        self.assertIsNone(pipe.submit(None))
        gate.release()

        result = pipe.submit(None)
        self.assertIsNotNone(result)
        self.assertEqual(len(result.predictions), 1)
        # slot released after the cycle
        self.assertTrue(gate.try_acquire())

    def test_submit_releases_on_unexpected_error(self) -> None:
        gate = AdmissionGate(max_in_flight=1)

        def boom(frame):
            raise RuntimeError("inference failed")

        pipe = self._pipeline(boom, gate=gate)
        with self.assertRaises(RuntimeError):
            pipe.submit(None)
        self.assertTrue(gate.try_acquire())

    def test_in_flight_bounded_across_threads(self) -> None:
        grid = _grid()
        gate = AdmissionGate(max_in_flight=2)
        started = threading.Barrier(3)
        release = threading.Event()

        def slow_infer(frame):
            started.wait(timeout=5)
            release.wait(timeout=5)
            return _good_tensor(grid)

        pipe = self._pipeline(slow_infer, gate=gate)
        results = []
        workers = [threading.Thread(target=lambda: results.append(pipe.submit(None))) for _ in range(2)]
        for w in workers:
            w.start()
        started.wait(timeout=5)

        self.assertIsNone(pipe.submit(None))

        release.set()
        for w in workers:
            w.join(timeout=5)
        self.assertEqual(len(results), 2)
        self.assertTrue(all(r is not None and r.ok for r in results))
        self.assertEqual(gate.dropped, 1)


class TestFpsMeter(unittest.TestCase):
    def test_rate_and_window_reset(self) -> None:
        clock = _FakeClock(step=0.25)
        meter = FpsMeter(window_s=1.0, clock=clock)
        rates = [meter.tick() for _ in range(6)]
        self.assertEqual(rates[0], 0.0)
        self.assertAlmostEqual(rates[1], 2 / 0.25)
        self.assertAlmostEqual(rates[4], 5 / 1.0)
        # window exceeded at the 6th tick, counting restarts afterwards
        self.assertAlmostEqual(rates[5], 6 / 1.25)
        self.assertEqual(meter.tick(), 1 / 0.25)


if __name__ == "__main__":
    unittest.main()
