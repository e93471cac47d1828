import logging
from pathlib import Path

from coverglow.record import read_update

logger = logging.getLogger(__name__)


def _stat(path):
    try:
        return path.stat()
    except OSError:
        return None


class UpdateListener:
    """
    Watches the update record and hands each new record to ``on_update``.

    Two independent checks, meant to be driven by the display's timer:
    ``poll_file`` compares the record's modification time, ``poll_directory``
    compares the parent directory's, which also catches the record being
    created or replaced. A record is delivered once per distinct file
    signature no matter which check noticed it.
    """

    def __init__(self, update_path, on_update):
        self.path = Path(update_path)
        self.on_update = on_update
        self._file_mtime = None
        self._dir_mtime = None
        self._seen = None

    @staticmethod
    def _signature(st):
        return (st.st_mtime_ns, st.st_size, st.st_ino)

    def start(self):
        """Remember the current state and deliver the record if one already exists."""
        if self.path.exists():
            logger.info("Update file exists, starting file watch")
        else:
            logger.info("Update file does not exist yet, will watch for it")
        st = _stat(self.path.parent)
        self._dir_mtime = st.st_mtime_ns if st else None
        self._check()

    def poll_file(self) -> bool:
        st = _stat(self.path)
        if st is None or st.st_mtime_ns == self._file_mtime:
            return False
        return self._check()

    def poll_directory(self) -> bool:
        st = _stat(self.path.parent)
        mtime = st.st_mtime_ns if st else None
        if mtime == self._dir_mtime:
            return False
        self._dir_mtime = mtime
        logger.debug("Update directory changed")
        return self._check()

    def _check(self) -> bool:
        st = _stat(self.path)
        if st is None:
            return False
        self._file_mtime = st.st_mtime_ns
        signature = self._signature(st)
        if signature == self._seen:
            return False
        self._seen = signature

        try:
            update = read_update(self.path)
        except (OSError, ValueError) as e:
            # Probably caught mid-write; the next change will bring a whole record
            logger.debug(f"Error reading update file: {e}")
            return False

        logger.info(
            f"Update file changed, updating window with track: "
            f"{(update.get('trackInfo') or {}).get('track', 'unknown')}"
        )
        self.on_update(update)
        return True
