"""String splitting, file reading and project path helpers."""

from __future__ import annotations

import os
import re
import sys
from typing import List, Optional

EXECUTABLE_SEPARATOR_COUNT = 2


def split_string(text: str, delim: str = " ", allow_empty: bool = False) -> List[str]:
    """Split ``text`` at any character of ``delim``."""
    parts = re.split(f"[{re.escape(delim)}]", text) if delim else [text]
    if allow_empty:
        return parts
    return [part for part in parts if part]


def read_file(filename) -> bytes:
    """Return the complete content of a file."""
    try:
        with open(filename, "rb") as handle:
            return handle.read()
    except OSError as exc:
        raise OSError(f"Could not open file '{os.fspath(filename)}'!") from exc


def _default_executable_path() -> str:
    if sys.argv and sys.argv[0]:
        return os.path.abspath(sys.argv[0])
    return sys.executable


def get_root_path(executable_path: Optional[str] = None,
                  separator_count: int = EXECUTABLE_SEPARATOR_COUNT) -> str:
    """Strip ``separator_count`` trailing path components from the executable path."""
    path = (executable_path if executable_path is not None else _default_executable_path())
    path = os.fspath(path).replace("\\", "/")
    end = len(path)
    for _ in range(separator_count):
        end = path.rfind("/", 0, end)
        if end <= 0:
            raise ValueError("getPtxFilename: Failed to extract directory from executable path!")
    return path[:end]


def get_ptx_filename(target_name: str, source_name: str, root_path: Optional[str] = None) -> str:
    """Path of the PTX file compiled from ``source_name`` within ``target_name``."""
    begin = source_name.rfind("/") + 1
    end = source_name.rfind(".")
    if end <= begin:
        end = len(source_name)
    root = root_path if root_path is not None else get_root_path()
    return f"{root}/lib/ptx/{target_name}/{source_name[begin:end]}.ptx"