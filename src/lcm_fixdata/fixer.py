"""DataFixer: the main entry point for repairing a .fwdata project file."""

from __future__ import annotations

import logging
from pathlib import Path

from lcm_fixdata.config import FixerConfig
from lcm_fixdata.exceptions import FixDataError
from lcm_fixdata.fixers import RecordFixer, create_fixers
from lcm_fixdata.indexer import IndexBuilder
from lcm_fixdata.models import ErrorLogger, FixResult, PassContext
from lcm_fixdata.progress import Progress
from lcm_fixdata.records import (
    FIELDS_TAG,
    RECORD_TAG,
    ProjectReader,
    project_writer,
    record_class,
    record_guid,
)

logger = logging.getLogger(__name__)


class DataFixer:
    """Fix whatever errors can be fixed in a project file, in place.

    Each pass rebuilds the indices from the current file, lets the fixers
    inspect it, then writes a repaired copy.  Passes repeat until one logs
    no fixes, since deleting an object can leave references to it that only
    the next pass can see.  On success the input becomes the backup and
    the last pass's output takes its name.
    """

    def __init__(
        self,
        path: str | Path,
        log: ErrorLogger,
        *,
        progress: Progress | None = None,
        config: FixerConfig | None = None,
        fixers: list[RecordFixer] | None = None,
    ) -> None:
        self.path = Path(path)
        self.config = config or FixerConfig()
        self.progress = progress or Progress()
        self.fixers = fixers if fixers is not None else create_fixers(self.config.fixers)
        self._log_callback = log
        self._fixed_count = 0
        self._record_count = 0
        self._reported: set[str] = set()

    @property
    def backup_path(self) -> Path:
        return self.path.with_suffix(self.config.backup_suffix)

    def _log(self, description: str, fixed: bool) -> None:
        # Unfixed problems come back every pass; report each one once per run.
        if fixed:
            self._fixed_count += 1
        elif description in self._reported:
            return
        else:
            self._reported.add(description)
        self._log_callback(description, fixed)

    # ------------------------------------------------------------------
    # Passes
    # ------------------------------------------------------------------

    def _initialize_fixers(self, infile: Path) -> PassContext:
        """Read ``infile`` once: build the indices and run the inspections."""
        for fixer in self.fixers:
            fixer.reset()
        builder = IndexBuilder(self._log)
        interval = self.config.progress_interval
        self.progress.set_range(0, 1000)
        self.progress.set_message(f"Reading the input file {infile}")

        count = 0
        with ProjectReader(infile) as reader:
            for element in reader.elements():
                if element.tag == FIELDS_TAG:
                    for fixer in self.fixers:
                        fixer.inspect_custom_fields(element)
                elif element.tag == RECORD_TAG:
                    builder.add(element)
                    for fixer in self.fixers:
                        fixer.inspect_record(element)
                    count += 1
                    if count % interval == 0:
                        self.progress.step()

        context = builder.context
        for fixer in self.fixers:
            fixer.finalize_indices(context)
        self._record_count = count
        logger.debug(
            f"Read {count} records from {infile}; "
            f"{len(context.to_delete)} flagged for deletion"
        )
        return context

    def _write_pass(self, infile: Path, outfile: Path, context: PassContext) -> None:
        """Write the repaired copy of ``infile`` to ``outfile``."""
        self.progress.set_range(0, self._record_count)
        self.progress.set_message(f"Looking for and fixing errors in {infile}")

        with ProjectReader(infile) as reader, \
                project_writer(outfile, reader.root_attrib) as writer:
            for element in reader.elements():
                if element.tag != RECORD_TAG:
                    if element.tag != FIELDS_TAG:
                        logger.warning(f"Copying unexpected <{element.tag}> element unchanged")
                    writer.write(element)
                    continue
                guid = record_guid(element)
                if guid in context.to_delete:
                    self._log(
                        f"Removing unused object (class='{record_class(element)}', guid='{guid}').",
                        True,
                    )
                elif self._fix_record(element):
                    writer.write(element)
                self.progress.step()

    def _fix_record(self, element) -> bool:
        # Every fixer sees every record, even one an earlier fixer dropped.
        keep = True
        for fixer in self.fixers:
            if not fixer.fix_record(element, self._log):
                keep = False
        return keep

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def fix_errors_and_save(self) -> FixResult:
        """Repair the file until nothing changes, then swap it into place.

        Raises whatever the parser or a fixer raises; in that case every
        temporary file is removed and the input file is left untouched.
        """
        if self.backup_path == self.path:
            raise FixDataError(
                f"Backup suffix {self.config.backup_suffix!r} is the suffix of {self.path.name}"
            )
        self._reported.clear()
        self._fixed_count = 0
        infile = self.path
        outfiles: list[Path] = []
        converged = False
        previous_count = 0
        try:
            for repeat in range(self.config.max_iterations):
                context = self._initialize_fixers(infile)
                outfile = self.path.with_name(f"{self.path.name}-x{repeat}")
                outfiles.append(outfile)
                self._write_pass(infile, outfile, context)
                if self._fixed_count == previous_count:
                    converged = True
                    break
                previous_count = self._fixed_count
                infile = outfile
        except BaseException:
            for outfile in outfiles:
                outfile.unlink(missing_ok=True)
            raise

        if not converged:
            logger.warning(
                f"{self.path}: still fixing errors after {len(outfiles)} passes; "
                f"keeping the last result"
            )
            self._log(f"Data did not converge after {len(outfiles)} passes.", False)

        final = outfiles[-1]
        backup = self.backup_path
        if backup.exists():
            backup.unlink()
        self.path.rename(backup)
        final.rename(self.path)
        for outfile in outfiles[:-1]:
            outfile.unlink(missing_ok=True)
        logger.debug(f"{self.path}: {self._fixed_count} fixes in {len(outfiles)} passes")

        return FixResult(
            passes=len(outfiles),
            converged=converged,
            fixed_count=self._fixed_count,
            backup_path=backup,
        )
