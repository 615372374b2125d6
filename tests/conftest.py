"""Synthetic client folders shared by the loader, session and save tests."""

from pathlib import Path

import pytest

from l2dat.engine.table_loader import LoadResult, TableLoader

from dat_builders import write_system_folder


@pytest.fixture
def system_folder(tmp_path) -> Path:
    return write_system_folder(tmp_path / "system")


@pytest.fixture
def loaded(system_folder) -> LoadResult:
    return TableLoader(max_workers=2).load_directory(system_folder)
