import pytest

from zenworld.parsers.archive import ArchiveFormat
from zenworld.utils import init_logging, close_logging


ALL_FORMATS = [ArchiveFormat.BINSAFE, ArchiveFormat.BINARY, ArchiveFormat.ASCII]


@pytest.fixture(autouse=True)
def fresh_logging():
    """Reset warning/error tracking for every test."""
    init_logging()
    yield
    close_logging()


@pytest.fixture(params=ALL_FORMATS, ids=lambda f: f.name.lower())
def archive_format(request):
    return request.param
