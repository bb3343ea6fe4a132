"""
Export file reader

Decodes a vendor export (GBK by default) one line at a time. Bytes that do
not decode are replaced rather than failing the file.
"""

import logging
from pathlib import Path
from typing import Iterator, Optional, Union

from ..models import UnsupportedFile

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = ('.txt',)


def check_export_file(path: Union[str, Path]) -> Path:
    """
    Validate that a path is a readable export file

    Raises:
        UnsupportedFile: If the extension is not a supported export format
        FileNotFoundError: If the file does not exist
    """
    path = Path(path)
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise UnsupportedFile(f"Unsupported export file: {path.name} (expected {', '.join(SUPPORTED_SUFFIXES)})")
    if not path.exists():
        raise FileNotFoundError(f"Export file not found: {path}")
    return path


class LineReader:
    """Stateful decoded line reader; use as a context manager"""

    def __init__(self, path: Union[str, Path], encoding: str = 'gbk'):
        self.path = Path(path)
        self.encoding = encoding
        self.line_no = 0
        self._file = None

    def open(self) -> 'LineReader':
        self._file = open(self.path, 'r', encoding=self.encoding, errors='replace')
        return self

    def readline(self) -> Optional[str]:
        """Next line without its line terminator, or None at end of file"""
        if self._file is None:
            raise ValueError(f"Reader for {self.path} is not open")
        line = self._file.readline()
        if not line:
            return None
        self.line_no += 1
        return line.rstrip("\r\n")

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None

    def __enter__(self) -> 'LineReader':
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()


def iter_lines(path: Union[str, Path], encoding: str = 'gbk') -> Iterator[str]:
    """Yield decoded lines of a file, title row included"""
    with LineReader(path, encoding) as reader:
        while True:
            line = reader.readline()
            if line is None:
                return
            yield line
