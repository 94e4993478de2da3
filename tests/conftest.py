"""Shared test fixtures for lcm-fixdata."""

import pytest

from lcm_fixdata import DataFixer, FixLog

from fwdata_builders import write_project


@pytest.fixture
def fix_log():
    """An empty log collector."""
    return FixLog()


@pytest.fixture
def project(tmp_path):
    """Factory writing records to tmp_path/test.fwdata and returning its path."""
    def _write(*records, fields=""):
        return write_project(tmp_path / "test.fwdata", *records, fields=fields)
    return _write


@pytest.fixture
def run_fixer():
    """Run the whole repair pipeline on a file; returns (result, log)."""
    def _run(path, config=None):
        log = FixLog()
        result = DataFixer(path, log, config=config).fix_errors_and_save()
        return result, log
    return _run
