import tempfile
import unittest
from pathlib import Path

from yolov2_kit.metadata import COCO_LABELS, load_class_names
from yolov2_kit.types import Prediction, Rect


class TestClassNames(unittest.TestCase):
    def _write(self, text: str) -> Path:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "names.txt"
        path.write_text(text, encoding="utf-8")
        return path

    def test_coco_labels(self) -> None:
        self.assertEqual(len(COCO_LABELS), 80)
        self.assertEqual(COCO_LABELS[0], "person")
        self.assertEqual(COCO_LABELS[-1], "toothbrush")

    def test_plain_list(self) -> None:
        path = self._write("# voc subset\nperson\n\nbicycle\n'traffic light'\n")
        self.assertEqual(load_class_names(path), ["person", "bicycle", "traffic light"])

    def test_yaml_names_mapping(self) -> None:
        path = self._write("path: data\nnames:\n  0: person\n  1: 'hard hat'\n  2: \"vest\"\nnc: 3\n")
        self.assertEqual(load_class_names(path), ["person", "hard hat", "vest"])

    def test_yaml_inline_names_list(self) -> None:
        path = self._write("nc: 3\nnames: [person, 'hard hat', \"vest\"]\n")
        self.assertEqual(load_class_names(path), ["person", "hard hat", "vest"])

    def test_yaml_inline_names_other_value_rejected(self) -> None:
        path = self._write("nc: 2\nnames: {0: person, 1: vest}\n")
        with self.assertRaises(ValueError):
            load_class_names(path)

    def test_yaml_gaps_rejected(self) -> None:
        path = self._write("names:\n  0: person\n  2: vest\n")
        with self.assertRaises(ValueError):
            load_class_names(path)


class TestPredictionLabel(unittest.TestCase):
    def test_label_with_names(self) -> None:
        p = Prediction(class_index=2, score=0.876, rect=Rect(0, 0, 1, 1))
        self.assertEqual(p.label(COCO_LABELS), "car 87.6")

    def test_label_fallback(self) -> None:
        p = Prediction(class_index=99, score=0.5, rect=Rect(0, 0, 1, 1))
        self.assertEqual(p.label(COCO_LABELS), "99 50.0")
        self.assertEqual(p.label(), "99 50.0")

    def test_rect_scaled(self) -> None:
        r = Rect(10.0, 20.0, 30.0, 40.0).scaled(2.0, 0.5, dy=5.0)
        self.assertEqual(r, Rect(20.0, 15.0, 60.0, 20.0))
        self.assertEqual(r.as_xyxy(), (20.0, 15.0, 80.0, 35.0))


if __name__ == "__main__":
    unittest.main()
