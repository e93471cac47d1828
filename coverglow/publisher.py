import logging
import os
import subprocess
import sys
import threading
from pathlib import Path

from coverglow.config import UPDATE_FILE_ENV
from coverglow.record import start_args, write_update

logger = logging.getLogger(__name__)


class DisplayManager:
    """
    Publishes update records and keeps at most one display process alive.

    While the display runs it picks new records up from the file itself, so
    publishing only rewrites the record. The child is (re)spawned only when
    no live handle is held.
    """

    def __init__(self, update_path, command=None, popen=subprocess.Popen):
        self.update_path = Path(update_path)
        self.command = command or [sys.executable, "-m", "coverglow.display"]
        self.popen = popen
        self.process = None
        self._lock = threading.Lock()

    def is_alive(self) -> bool:
        with self._lock:
            return self.process is not None and self.process.poll() is None

    def publish(self, update) -> bool:
        """Write the record and make sure a display is running. True if one was spawned."""
        try:
            write_update(self.update_path, update)
            logger.info(f"Wrote update file: {self.update_path}")
            logger.debug(f"Update data: track={update['trackInfo'].get('track')}")
        except OSError as e:
            logger.error(f"Error writing update file: {e}")

        if self.is_alive():
            logger.info("Display process already running, update will be picked up via file watch")
            return False

        self._spawn(update)
        return True

    def _spawn(self, update):
        env = dict(os.environ)
        env.setdefault("DISPLAY", ":0")
        env[UPDATE_FILE_ENV] = str(self.update_path)
        logger.info(
            f"Launching display with DISPLAY={env['DISPLAY']}, "
            f"XAUTHORITY={env.get('XAUTHORITY', 'not set')}"
        )

        process = self.popen(
            self.command + start_args(update),
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            env=env,
            text=True,
        )
        with self._lock:
            self.process = process
        logger.info(f"Launched display process (PID: {process.pid})")

        thread = threading.Thread(target=self._watch, args=(process,), daemon=True)
        thread.start()

    def _watch(self, process):
        if process.stdout is not None:
            for line in process.stdout:
                line = line.rstrip()
                if line:
                    logger.info(f"[Display] {line}")
        code = process.wait()
        logger.info(f"Display process exited with code {code}")
        with self._lock:
            if self.process is process:
                self.process = None

    def shutdown(self, timeout=5):
        with self._lock:
            process, self.process = self.process, None
        if process is None or process.poll() is not None:
            return
        logger.info("Stopping display process")
        process.terminate()
        try:
            process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
