import json
import sys
import threading
from pathlib import Path
from typing import Dict, Optional, TextIO


class JsonlWriter:
    """Writes one JSON record per line to a file, or to stdout when no path is given."""

    def __init__(self, output_path: Optional[str] = None, append: bool = False) -> None:
        self.output_path = output_path
        self._lock = threading.Lock()
        self._owns_handle = output_path is not None
        if output_path is None:
            self._fh: TextIO = sys.stdout
        else:
            out_path = Path(output_path)
            out_path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = out_path.open("a" if append else "w", encoding="utf-8")
        self.records = 0

    def write(self, record: Dict) -> None:
        line = json.dumps(record, ensure_ascii=False)
        with self._lock:
            self._fh.write(line + "\n")
            self._fh.flush()
            self.records += 1

    def close(self) -> None:
        with self._lock:
            if self._owns_handle and not self._fh.closed:
                self._fh.close()

    def __enter__(self) -> "JsonlWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
