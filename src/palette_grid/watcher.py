"""
Capture watcher - poll a source, encode changed images, hand them to a sink
"""
import sys
import threading
import traceback
from datetime import datetime
from typing import Optional

from .config import POLL_INTERVAL, TIMESTAMP_FORMAT, GridConfig
from .errors import InvalidImageError
from .palette import Palette
from .quantizer import GridEncoder


class CaptureWatcher:
    def __init__(self, source, sink, palette: Palette, config: Optional[GridConfig] = None,
                 interval: float = POLL_INTERVAL, on_update=None):
        """
        Initialize the watcher

        Args:
            source: object with grab() -> CapturedImage or None
            sink: object with write(encoded: str)
            palette: palette sampled once at startup
            config: grid geometry (defaults match the palette)
            interval: seconds to sleep between polls
            on_update: optional callback(timestamp, encoded) after each write
        """
        if interval < 0:
            raise ValueError("interval must be >= 0")
        self.source = source
        self.sink = sink
        self.encoder = GridEncoder(palette, config)
        self.interval = interval
        self.on_update = on_update

        # change detection state: digest of the last image written
        self.last_hash: Optional[str] = None
        self.last_update: Optional[str] = None
        self.updates = 0
        self.error: Optional[BaseException] = None

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def poll_once(self) -> bool:
        """
        Run one capture -> encode -> persist cycle.

        Returns:
            True if a new image was encoded and written
        """
        try:
            image = self.source.grab()
        except InvalidImageError as e:
            print(f"[WATCH] Warning - skipping unreadable capture: {e}", file=sys.stderr)
            return False
        if image is None:
            return False

        digest = image.digest()
        if digest == self.last_hash:
            return False

        try:
            encoded = self.encoder.encode(image)
        except InvalidImageError as e:
            # remember it so the same broken capture is not retried every poll
            print(f"[WATCH] Warning - skipping malformed capture: {e}", file=sys.stderr)
            self.last_hash = digest
            return False

        self.sink.write(encoded)

        self.last_hash = digest
        self.last_update = datetime.now().strftime(TIMESTAMP_FORMAT)
        self.updates += 1
        if self.on_update is not None:
            self.on_update(self.last_update, encoded)
        return True

    def _worker(self):
        try:
            while not self._stop.is_set():
                self.poll_once()
                self._stop.wait(self.interval)
        except Exception as e:
            self.error = e
            print(f"[WATCH] Error: {e}", file=sys.stderr)
            traceback.print_exc(file=sys.stderr)

    def start(self):
        """Start polling on a background thread"""
        if self.running:
            raise RuntimeError("watcher already running")
        self._stop.clear()
        self._thread = threading.Thread(target=self._worker, name="capture-watcher", daemon=True)
        self._thread.start()
        print(f"[WATCH] Started: polling {getattr(self.source, 'name', 'source')} "
              f"every {self.interval}s", file=sys.stderr)

    def wait(self, timeout: Optional[float] = None):
        """Wait for the polling thread to finish"""
        if self._thread:
            self._thread.join(timeout)

    def stop(self):
        """Stop polling and close the source and sink"""
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=max(2.0, self.interval * 2))
            self._thread = None
        self.source.close()
        self.sink.close()
        print("[WATCH] Stopped", file=sys.stderr)

    def status(self) -> dict:
        return {
            "last_update": self.last_update,
            "updates": self.updates,
            "running": self.running,
        }
