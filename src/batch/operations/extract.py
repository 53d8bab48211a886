# src/batch/operations/extract.py — v1
"""Pattern extraction: keep only the matched spans of each input."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from textflow.batch.models import BatchJob, FileTask, OperationKind
from textflow.batch.operations.base_operation import BaseOperation, UnitProcessor
from textflow.batch.progress import ProgressReporter
from textflow.patterns.matcher import find_all

logger = logging.getLogger(__name__)


class ExtractOperation(BaseOperation):
    """Write ``<base>_extracted.txt`` holding one match per line, in order."""

    kind = OperationKind.EXTRACT
    requires_pattern = True
    parallel = True

    def output_suffix(self) -> str:
        return self._settings.extracted_suffix

    @contextmanager
    def session(self, job: BatchJob, reporter: ProgressReporter) -> Iterator[UnitProcessor]:
        compiled = self.compile(job)
        suffix = self.output_suffix()

        def process(task: FileTask) -> list[Path]:
            output = self.output_path(job, task.input_path, suffix)
            # Matches may span lines, so the whole file is one buffer.
            content = self._store.read_text(task.input_path)
            found = find_all(content, compiled)
            self._store.write_lines(output, (m.text for m in found))
            logger.debug("Extracted %d matches from %s", len(found), task.name)
            return [output]

        yield process
