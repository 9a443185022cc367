"""Tests for data loading and I/O operations."""

import json
import tempfile
from pathlib import Path

import numpy as np
import pytest

from arc_cascade.integration.io import (
    ARCDataLoader, TaskFormatError, load_task, parse_task, save_results
)


def sample_task_data():
    """Two training pairs and one held-out pair."""
    return {
        "train": [
            {"input": [[1, 2], [3, 4]], "output": [[2, 1], [4, 3]]},
            {"input": [[5, 6]], "output": [[6, 5]]},
        ],
        "test": [
            {"input": [[7, 8]], "output": [[8, 7]]},
        ],
    }


def write_json(path, data):
    with open(path, 'w') as f:
        json.dump(data, f)


class TestParseTask:
    """Test decoding of task documents."""

    def test_parse(self):
        """Test parsing a task document."""
        task = parse_task("t1", sample_task_data())
        assert task.task_id == "t1"
        assert len(task.train) == 2
        assert len(task.test) == 1
        assert task.train[0].input.dtype == np.int32
        np.testing.assert_array_equal(task.test[0].output, [[8, 7]])

    def test_pairs_without_output_skipped(self):
        """Test pairs without an output are skipped."""
        data = sample_task_data()
        data["test"] = [{"input": [[1]]}]
        data["train"].append({"input": [[1]]})
        task = parse_task("t1", data)
        assert len(task.train) == 2
        assert task.test == []

    def test_missing_train(self):
        """Test a document without training pairs raises error."""
        with pytest.raises(TaskFormatError):
            parse_task("t1", {"test": []})

    def test_no_complete_training_pairs(self):
        """Test incomplete training pairs raise error."""
        with pytest.raises(TaskFormatError):
            parse_task("t1", {"train": [{"input": [[1]]}]})

    def test_not_an_object(self):
        """Test a non-object document raises error."""
        with pytest.raises(TaskFormatError):
            parse_task("t1", [1, 2, 3])

    def test_ragged_grid(self):
        """Test ragged grids raise error."""
        with pytest.raises(TaskFormatError):
            parse_task("t1", {"train": [{"input": [[1, 2], [3]], "output": [[1]]}]})

    def test_negative_colors_rejected(self):
        """Test negative colors raise error."""
        with pytest.raises(TaskFormatError):
            parse_task("t1", {"train": [{"input": [[1, -2]], "output": [[1]]}]})

    def test_colors_above_nine_accepted(self):
        """Test colors above 9 load unchanged."""
        task = parse_task("t1", {"train": [{"input": [[12, 3]], "output": [[4]]}]})
        assert task.train[0].input[0, 0] == 12


class TestLoadTask:
    """Test loading task files."""

    def test_task_id_from_filename(self):
        """Test loading a single task from individual JSON file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "abc123.json"
            write_json(path, sample_task_data())
            task = load_task(path)
            assert task.task_id == "abc123"

    def test_missing_file(self):
        """Test loading a nonexistent file raises error."""
        with pytest.raises(FileNotFoundError):
            load_task("/nonexistent/task.json")

    def test_invalid_json(self):
        """Test malformed JSON raises error."""
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "broken.json"
            path.write_text("{not json")
            with pytest.raises(TaskFormatError):
                load_task(path)


class TestARCDataLoader:
    """Test the directory loader."""

    def test_missing_directory(self):
        """Test that invalid data directory raises error."""
        with pytest.raises(FileNotFoundError):
            ARCDataLoader("/nonexistent/dir")

    def test_iter_tasks_sorted_and_skips_invalid(self):
        """Test iterating over all tasks in id order."""
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            write_json(root / "b.json", sample_task_data())
            write_json(root / "a.json", sample_task_data())
            (root / "c.json").write_text("[]")

            loader = ARCDataLoader(root)
            assert loader.get_task_ids() == ["a", "b", "c"]
            ids = [task_id for task_id, _ in loader.iter_tasks()]
            assert ids == ["a", "b"]

            with pytest.raises(TaskFormatError):
                list(loader.iter_tasks(skip_invalid=False))

    def test_max_tasks(self):
        """Test limiting the number of loaded tasks."""
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            for name in ("x", "y", "z"):
                write_json(root / f"{name}.json", sample_task_data())
            ids = [task_id for task_id, _ in ARCDataLoader(root).iter_tasks(max_tasks=2)]
            assert ids == ["x", "y"]

    def test_combined_files_merge_solutions(self):
        """Test loading tasks from combined challenge and solution files."""
        with tempfile.TemporaryDirectory() as temp_dir:
            root = Path(temp_dir)
            challenge = {"train": [{"input": [[1]], "output": [[2]]}], "test": [{"input": [[3]]}]}
            write_json(root / "arc-agi_training_challenges.json", {"k1": challenge})
            write_json(root / "arc-agi_training_solutions.json", {"k1": [[[4]]]})

            loader = ARCDataLoader(root)
            assert loader.get_task_ids() == ["k1"]
            task = loader.load_task("k1")
            np.testing.assert_array_equal(task.test[0].output, [[4]])

    def test_unknown_task(self):
        """Test loading nonexistent task raises error."""
        with tempfile.TemporaryDirectory() as temp_dir:
            with pytest.raises(FileNotFoundError):
                ARCDataLoader(temp_dir).load_task("missing")


class TestSaveResults:

    def test_creates_parent_directories(self):
        """Test saving results creates parent directories."""
        with tempfile.TemporaryDirectory() as temp_dir:
            out = Path(temp_dir) / "nested" / "results.json"
            save_results({"solved": True}, out)
            with open(out) as f:
                assert json.load(f) == {"solved": True}
