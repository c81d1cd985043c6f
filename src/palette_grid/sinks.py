"""
Sinks - persist the encoded grid string for the consumer
"""
import os
import sys
import tempfile
from pathlib import Path
from typing import Union

from .config import REGISTRY_PATH, REGISTRY_VALUE_NAME
from .errors import SinkError


class RegistrySink:
    """Writes the encoded string as REG_BINARY under HKEY_CURRENT_USER (Windows only)"""

    name = "registry"

    def __init__(self, path: str = REGISTRY_PATH, value_name: str = REGISTRY_VALUE_NAME):
        """
        Args:
            path: subkey of HKEY_CURRENT_USER, created if missing
            value_name: value written on every update
        """
        try:
            import winreg
        except ImportError:
            raise SinkError("registry sink requires Windows") from None

        self._winreg = winreg
        self.path = path
        self.value_name = value_name
        try:
            self.key = winreg.CreateKey(winreg.HKEY_CURRENT_USER, path)
        except OSError as e:
            raise SinkError(f"failed to open registry key {path}: {e}") from e
        print(f"[SINK] Writing to HKEY_CURRENT_USER\\{path}\\{value_name}", file=sys.stderr)

    def write(self, encoded: str):
        try:
            self._winreg.SetValueEx(
                self.key, self.value_name, 0, self._winreg.REG_BINARY, encoded.encode("ascii")
            )
        except OSError as e:
            raise SinkError(f"failed to write registry value {self.value_name}: {e}") from e

    def close(self):
        if self.key is not None:
            self.key.Close()
            self.key = None


class FileSink:
    """Replaces the contents of a file with the encoded bytes"""

    name = "file"

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def write(self, encoded: str):
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            # readers never see a half-written grid
            fd, tmp = tempfile.mkstemp(dir=directory, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(encoded.encode("ascii"))
                os.replace(tmp, self.path)
            except BaseException:
                os.unlink(tmp)
                raise
        except OSError as e:
            raise SinkError(f"failed to write {self.path}: {e}") from e

    def close(self):
        pass


class StreamSink:
    """Writes one encoded string per line to a text stream"""

    name = "stdout"

    def __init__(self, stream=None):
        self.stream = stream if stream is not None else sys.stdout

    def write(self, encoded: str):
        try:
            self.stream.write(encoded + "\n")
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise SinkError(f"failed to write to stream: {e}") from e

    def close(self):
        pass
