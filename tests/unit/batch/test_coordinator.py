# tests/unit/batch/test_coordinator.py — v1
"""Tests for batch/coordinator.py: dispatch, failure isolation, aggregation."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from textflow.batch.coordinator import BatchCoordinator
from textflow.batch.delivery import BackgroundDelivery
from textflow.batch.errors import JobConfigurationError
from textflow.batch.models import BatchJob, OperationParams
from textflow.storage.local_store import LocalFileStore


def _job(kind, inputs, target, on_progress=None, **params) -> BatchJob:
    return BatchJob(
        operation=kind,
        input_files=tuple(inputs),
        output_target=target,
        params=OperationParams(**params),
        on_progress=on_progress,
    )


class FlakyStore(LocalFileStore):
    """Local store that fails to read any file whose name is listed."""

    def __init__(self, failing: set[str]) -> None:
        super().__init__()
        self._failing = failing

    def _check(self, path: Path) -> None:
        if Path(path).name in self._failing:
            raise OSError(f"simulated read failure: {Path(path).name}")

    def read_text(self, path: Path) -> str:
        self._check(path)
        return super().read_text(path)

    def iter_lines(self, path: Path) -> Iterator[str]:
        self._check(path)
        return super().iter_lines(path)


class TestFindReplace:
    def test_phone_numbers(self, settings, make_file, out_dir):
        src = make_file("a.txt", "call 123-456-7890 now\nno number\n")
        result = BatchCoordinator(settings).run(
            _job("find_replace", [src], out_dir,
                 pattern=r"\d{3}-\d{3}-\d{4}", replacement="[PHONE]")
        )
        assert (result.processed, result.errors, result.total) == (1, 0, 1)
        assert result.operation == "Regex Find and Replace"
        out = out_dir / "a_processed.txt"
        assert result.outputs == [out]
        assert out.read_text(encoding="utf-8") == "call [PHONE] now\nno number\n"

    def test_group_references(self, settings, make_file, out_dir):
        src = make_file("names.txt", "John Smith\nJane Doe\n")
        BatchCoordinator(settings).run(
            _job("find_replace", [src], out_dir, pattern=r"(\w+) (\w+)", replacement="$2, $1")
        )
        assert (out_dir / "names_processed.txt").read_text(encoding="utf-8") == (
            "Smith, John\nDoe, Jane\n"
        )

    def test_matches_do_not_span_lines(self, settings, make_file, out_dir):
        src = make_file("a.txt", "ab\ncd\n")
        BatchCoordinator(settings).run(
            _job("find_replace", [src], out_dir, pattern=r"b\nc", replacement="X")
        )
        assert (out_dir / "a_processed.txt").read_text(encoding="utf-8") == "ab\ncd\n"


class TestExtract:
    def test_emails(self, settings, make_file, out_dir):
        src = make_file("contacts.txt", "x a@b.com y\nc@d.org\n")
        result = BatchCoordinator(settings).run(
            _job("extract", [src], out_dir, pattern=r"\w+@\w+\.\w+")
        )
        assert result.errors == 0
        out = out_dir / "contacts_extracted.txt"
        assert out.read_text(encoding="utf-8") == "a@b.com\nc@d.org\n"

    def test_no_matches_writes_empty_file(self, settings, make_file, out_dir):
        src = make_file("a.txt", "nothing here\n")
        BatchCoordinator(settings).run(_job("extract", [src], out_dir, pattern=r"\d+"))
        assert (out_dir / "a_extracted.txt").read_text(encoding="utf-8") == ""


class TestManyFiles:
    def test_every_input_accounted_for(self, settings, make_file, out_dir, snapshots):
        files = [make_file(f"f{i}.txt", f"line {i}\n") for i in range(12)]
        result = BatchCoordinator(settings, max_workers=3).run(
            _job("find_replace", files, out_dir, snapshots.append, pattern="line", replacement="row")
        )
        assert (result.processed, result.errors, result.total) == (12, 0, 12)
        assert len(result.outcomes) == 12
        for i in range(12):
            assert (out_dir / f"f{i}_processed.txt").read_text(encoding="utf-8") == f"row {i}\n"

        assert len(snapshots) == 12
        assert [s.completed for s in snapshots] == list(range(1, 13))
        assert snapshots[-1].completed == snapshots[-1].total == 12

    def test_outcomes_in_input_order(self, settings, make_file, out_dir):
        files = [make_file(f"f{i}.txt", "x\n") for i in range(6)]
        result = BatchCoordinator(settings).run(_job("extract", files, out_dir, pattern="x"))
        assert [o.input_path for o in result.outcomes] == files

    def test_single_worker(self, settings, make_file, out_dir):
        files = [make_file(f"f{i}.txt", "x\n") for i in range(3)]
        result = BatchCoordinator(settings, max_workers=1).run(
            _job("extract", files, out_dir, pattern="x")
        )
        assert result.processed == 3

    def test_units_run_off_caller_thread(self, settings, make_file, out_dir):
        files = [make_file(f"f{i}.txt", "x\n") for i in range(4)]
        threads = []
        BatchCoordinator(settings).run(
            _job("extract", files, out_dir,
                 lambda s: threads.append(threading.current_thread().name), pattern="x")
        )
        assert threads and all(name.startswith("textflow-worker") for name in threads)


class TestFailureIsolation:
    def test_missing_input(self, settings, make_file, out_dir, snapshots):
        good = [make_file("a.txt", "x\n"), make_file("c.txt", "x\n")]
        missing = good[0].parent / "b.txt"
        result = BatchCoordinator(settings).run(
            _job("find_replace", [good[0], missing, good[1]], out_dir, snapshots.append,
                 pattern="x", replacement="y")
        )
        assert (result.processed, result.errors, result.total) == (3, 1, 3)
        assert result.success_count == 2
        assert [f.input_path for f in result.failures] == [missing]
        assert (out_dir / "a_processed.txt").exists()
        assert (out_dir / "c_processed.txt").exists()
        assert not (out_dir / "b_processed.txt").exists()
        error_messages = [s.message for s in snapshots if s.message.startswith("Error processing")]
        assert len(error_messages) == 1
        assert error_messages[0].startswith("Error processing b.txt:")
        assert snapshots[-1].errors == 1

    def test_file_without_extension(self, settings, make_file, out_dir):
        files = [make_file("README", "x\n"), make_file("a.txt", "x\n")]
        result = BatchCoordinator(settings).run(_job("extract", files, out_dir, pattern="x"))
        assert result.errors == 1
        assert "no extension" in result.failures[0].error

    def test_store_failure(self, settings, make_file, out_dir):
        files = [make_file(f"f{i}.txt", "x\n") for i in range(4)]
        store = FlakyStore({"f1.txt", "f3.txt"})
        result = BatchCoordinator(settings, store=store).run(
            _job("extract", files, out_dir, pattern="x")
        )
        assert (result.processed, result.errors) == (4, 2)
        assert {f.input_path.name for f in result.failures} == {"f1.txt", "f3.txt"}
        assert "simulated read failure" in result.failures[0].error

    def test_all_fail(self, settings, input_dir, out_dir):
        files = [input_dir / "x.txt", input_dir / "y.txt"]
        result = BatchCoordinator(settings).run(_job("extract", files, out_dir, pattern="x"))
        assert (result.processed, result.errors, result.total) == (2, 2, 2)
        assert result.outputs == []

    def test_unit_wrapper_failure_still_counted(self, settings, make_file, out_dir, snapshots):
        files = [make_file(f"f{i}.txt", "x\n") for i in range(3)]
        original = BatchCoordinator._run_unit

        def flaky(process, task, reporter):
            if task.index == 1:
                raise RuntimeError("wrapper crashed")
            return original(process, task, reporter)

        with patch.object(BatchCoordinator, "_run_unit", side_effect=flaky):
            result = BatchCoordinator(settings).run(
                _job("extract", files, out_dir, snapshots.append, pattern="x")
            )
        assert (result.processed, result.errors, result.total) == (3, 1, 3)
        assert result.failures[0].error == "wrapper crashed"
        assert snapshots[-1].completed == 3


class TestConfigurationErrors:
    def test_invalid_pattern_touches_nothing(self, settings, make_file, out_dir, snapshots):
        src = make_file("a.txt", "x\n")
        with pytest.raises(JobConfigurationError, match="Invalid pattern"):
            BatchCoordinator(settings).run(
                _job("find_replace", [src], out_dir, snapshots.append, pattern="[")
            )
        assert snapshots == []
        assert list(out_dir.iterdir()) == []

    def test_empty_pattern(self, settings, make_file, out_dir):
        src = make_file("a.txt", "x\n")
        with pytest.raises(JobConfigurationError):
            BatchCoordinator(settings).run(_job("extract", [src], out_dir, pattern=""))

    def test_missing_output_directory(self, settings, make_file, tmp_path, snapshots):
        src = make_file("a.txt", "x\n")
        with pytest.raises(JobConfigurationError, match="does not exist"):
            BatchCoordinator(settings).run(
                _job("extract", [src], tmp_path / "missing", snapshots.append, pattern="x")
            )
        assert snapshots == []

    def test_invalid_worker_count(self, settings):
        with pytest.raises(JobConfigurationError):
            BatchCoordinator(settings, max_workers=0)


class TestEmptyInput:
    def test_zero_result(self, settings, tmp_path, snapshots):
        result = BatchCoordinator(settings).run(
            _job("extract", [], tmp_path / "missing", snapshots.append, pattern="x")
        )
        assert (result.processed, result.errors, result.total) == (0, 0, 0)
        assert result.operation == "Regex Extract"
        assert snapshots == []

    def test_parameters_still_checked(self, settings, tmp_path):
        with pytest.raises(JobConfigurationError):
            BatchCoordinator(settings).run(_job("extract", [], tmp_path, pattern="["))


class TestMerge:
    def test_with_separators(self, settings, make_file, tmp_path, snapshots):
        a = make_file("a.txt", "a1\na2\n")
        b = make_file("b.txt", "b1\n")
        c = make_file("c.txt", "c1")
        target = tmp_path / "merged.txt"
        result = BatchCoordinator(settings).run(_job("merge", [a, b, c], target, snapshots.append))
        rule = "=" * 50
        expected = (
            "a1\na2\n"
            f"\n\n{rule}\nFILE: b.txt\n{rule}\n\n"
            "b1\n"
            f"\n\n{rule}\nFILE: c.txt\n{rule}\n\n"
            "c1\n"
        )
        assert target.read_text(encoding="utf-8") == expected
        assert result.outputs == [target]
        assert (result.processed, result.errors, result.total) == (3, 0, 3)
        assert [s.message for s in snapshots] == ["a.txt", "b.txt", "c.txt"]

    def test_without_separators(self, settings, make_file, tmp_path):
        a = make_file("a.txt", "a1\n")
        b = make_file("b.txt", "b1\n")
        target = tmp_path / "merged.txt"
        BatchCoordinator(settings).run(_job("merge", [a, b], target, add_separators=False))
        assert target.read_text(encoding="utf-8") == "a1\nb1\n"

    def test_failed_input_skipped(self, settings, make_file, input_dir, tmp_path):
        a = make_file("a.txt", "a1\n")
        c = make_file("c.txt", "c1\n")
        target = tmp_path / "merged.txt"
        result = BatchCoordinator(settings).run(
            _job("merge", [a, input_dir / "b.txt", c], target)
        )
        assert result.errors == 1
        text = target.read_text(encoding="utf-8")
        assert "FILE: b.txt" not in text
        assert text.startswith("a1\n")
        assert text.endswith("FILE: c.txt\n" + "=" * 50 + "\n\nc1\n")

    def test_merge_runs_on_caller_thread(self, settings, make_file, tmp_path):
        a = make_file("a.txt", "a1\n")
        threads = []
        BatchCoordinator(settings).run(
            _job("merge", [a], tmp_path / "m.txt",
                 lambda s: threads.append(threading.get_ident()))
        )
        assert threads == [threading.get_ident()]

    def test_overwrites_existing_output(self, settings, make_file, tmp_path):
        target = tmp_path / "merged.txt"
        target.write_text("stale\n", encoding="utf-8")
        BatchCoordinator(settings).run(_job("merge", [make_file("a.txt", "new\n")], target))
        assert target.read_text(encoding="utf-8") == "new\n"


class TestSplit:
    def test_parts(self, settings, make_file, out_dir, snapshots):
        src = make_file("big.txt", "l1\nl2\nl3\nl4\nl5\n")
        result = BatchCoordinator(settings).run(
            _job("split", [src], out_dir, snapshots.append, lines_per_chunk=2)
        )
        assert (result.processed, result.errors, result.total) == (1, 0, 1)
        assert [p.name for p in result.outputs] == [
            "big_part1.txt", "big_part2.txt", "big_part3.txt",
        ]
        assert (out_dir / "big_part1.txt").read_text(encoding="utf-8") == "l1\nl2\n"
        assert (out_dir / "big_part2.txt").read_text(encoding="utf-8") == "l3\nl4\n"
        assert (out_dir / "big_part3.txt").read_text(encoding="utf-8") == "l5\n"
        assert [s.message for s in snapshots] == [
            "Created part file 1", "Created part file 2", "Created part file 3", "big.txt",
        ]
        assert snapshots[-1].completed == 1

    def test_exact_multiple(self, settings, make_file, out_dir):
        src = make_file("even.txt", "1\n2\n3\n4\n")
        result = BatchCoordinator(settings).run(_job("split", [src], out_dir, lines_per_chunk=2))
        assert len(result.outputs) == 2

    def test_empty_file_produces_no_parts(self, settings, make_file, out_dir):
        src = make_file("empty.txt", "")
        result = BatchCoordinator(settings).run(_job("split", [src], out_dir, lines_per_chunk=3))
        assert (result.processed, result.errors) == (1, 0)
        assert result.outputs == []
        assert list(out_dir.iterdir()) == []

    def test_default_chunk_from_settings(self, make_file, out_dir):
        from textflow.config.settings import Settings

        settings = Settings(_env_file=None, split_lines_per_chunk=1)
        src = make_file("s.txt", "a\nb\n")
        result = BatchCoordinator(settings).run(_job("split", [src], out_dir))
        assert len(result.outputs) == 2

    def test_missing_input_is_file_error(self, settings, input_dir, out_dir):
        result = BatchCoordinator(settings).run(
            _job("split", [input_dir / "gone.txt"], out_dir, lines_per_chunk=2)
        )
        assert (result.processed, result.errors, result.total) == (1, 1, 1)

    def test_invalid_chunk_size(self, settings, make_file, out_dir):
        src = make_file("a.txt", "x\n")
        with pytest.raises(JobConfigurationError):
            BatchCoordinator(settings).run(_job("split", [src], out_dir, lines_per_chunk=0))


class TestOutputOwnership:
    def test_same_name_in_two_directories(self, settings, make_file, out_dir, snapshots):
        a = make_file("a/x.txt", "A\n" * 100)
        b = make_file("b/x.txt", "B\n" * 100)
        with pytest.raises(JobConfigurationError, match="x_processed.txt"):
            BatchCoordinator(settings).run(
                _job("find_replace", [a, b], out_dir, snapshots.append, pattern="A", replacement="a")
            )
        assert snapshots == []
        assert list(out_dir.iterdir()) == []

    def test_same_base_different_extension(self, settings, make_file, out_dir):
        files = [make_file("x.txt", "1\n"), make_file("x.md", "2\n")]
        with pytest.raises(JobConfigurationError, match="x_extracted.txt"):
            BatchCoordinator(settings).run(_job("extract", files, out_dir, pattern=r"\d"))

    def test_same_input_twice(self, settings, make_file, out_dir):
        src = make_file("a.txt", "x\n")
        with pytest.raises(JobConfigurationError):
            BatchCoordinator(settings).run(_job("extract", [src, src], out_dir, pattern="x"))

    def test_distinct_bases_still_run(self, settings, make_file, out_dir):
        files = [make_file("a/x.txt", "1\n"), make_file("b/y.txt", "2\n")]
        result = BatchCoordinator(settings).run(_job("extract", files, out_dir, pattern=r"\d"))
        assert (result.processed, result.errors) == (2, 0)
        assert sorted(p.name for p in result.outputs) == ["x_extracted.txt", "y_extracted.txt"]

    def test_unnamed_inputs_left_to_per_file_errors(self, settings, make_file, out_dir):
        files = [make_file("a/README", "x\n"), make_file("b/README", "x\n")]
        result = BatchCoordinator(settings).run(_job("extract", files, out_dir, pattern="x"))
        assert (result.processed, result.errors) == (2, 2)


class TestPatternOnAnyOperation:
    def test_merge_rejects_invalid_pattern(self, settings, make_file, tmp_path, snapshots):
        src = make_file("a.txt", "x\n")
        target = tmp_path / "merged.txt"
        with pytest.raises(JobConfigurationError, match="Invalid pattern"):
            BatchCoordinator(settings).run(_job("merge", [src], target, snapshots.append, pattern="["))
        assert not target.exists()
        assert snapshots == []

    def test_split_rejects_invalid_pattern(self, settings, make_file, out_dir, snapshots):
        src = make_file("a.txt", "x\n")
        with pytest.raises(JobConfigurationError, match="Invalid pattern"):
            BatchCoordinator(settings).run(
                _job("split", [src], out_dir, snapshots.append, pattern="[", lines_per_chunk=1)
            )
        assert list(out_dir.iterdir()) == []
        assert snapshots == []

    def test_merge_ignores_valid_pattern(self, settings, make_file, tmp_path):
        src = make_file("a.txt", "x\n")
        target = tmp_path / "merged.txt"
        result = BatchCoordinator(settings).run(_job("merge", [src], target, pattern="x+"))
        assert result.errors == 0
        assert target.read_text(encoding="utf-8") == "x\n"


class TestBrokenDelivery:
    @pytest.fixture
    def closed_delivery(self) -> BackgroundDelivery:
        delivery = BackgroundDelivery()
        delivery.close()
        return delivery

    def test_parallel_job_still_returns(self, settings, make_file, out_dir, closed_delivery):
        files = [make_file(f"f{i}.txt", "x\n") for i in range(3)]
        result = BatchCoordinator(settings, delivery=closed_delivery).run(
            _job("extract", files, out_dir, lambda s: None, pattern="x")
        )
        assert (result.processed, result.errors, result.total) == (3, 0, 3)

    def test_sequential_job_still_returns(self, settings, make_file, tmp_path, closed_delivery):
        files = [make_file("a.txt", "a\n"), make_file("b.txt", "b\n")]
        target = tmp_path / "merged.txt"
        result = BatchCoordinator(settings, delivery=closed_delivery).run(
            _job("merge", files, target, lambda s: None, add_separators=False)
        )
        assert (result.processed, result.errors, result.total) == (2, 0, 2)
        assert target.read_text(encoding="utf-8") == "a\nb\n"

    def test_split_notices_do_not_escape(self, settings, make_file, out_dir, closed_delivery):
        src = make_file("big.txt", "1\n2\n3\n")
        result = BatchCoordinator(settings, delivery=closed_delivery).run(
            _job("split", [src], out_dir, lambda s: None, lines_per_chunk=1)
        )
        assert (result.processed, result.errors) == (1, 0)
        assert len(result.outputs) == 3
