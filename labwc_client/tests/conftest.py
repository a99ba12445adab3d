import os
import shutil
import tempfile
from pathlib import Path

import pytest
from PyQt6.QtCore import QCoreApplication


@pytest.fixture(scope="module")
def qt_app():
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture
def socket_path():
    # AF_UNIX paths are limited to ~108 bytes, so avoid pytest's deep tmp_path.
    directory = tempfile.mkdtemp(prefix="labwc-", dir="/tmp" if os.path.isdir("/tmp") else None)
    try:
        yield str(Path(directory) / "ipc.sock")
    finally:
        shutil.rmtree(directory, ignore_errors=True)
