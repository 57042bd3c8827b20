# designrelay/logger.py
import json
import logging
from datetime import datetime, timezone
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

log = logging.getLogger("designrelay.job")


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def now_iso():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class JobLogger:
    """
    Per-job step trail: JSON lines on disk, mirrored to the console logger.

    Disk problems never interrupt a job; they are reported on the console
    and the trail continues in memory.
    """

    def __init__(self, job_id: str, directory: Path):
        self.job_id = job_id
        self.path = directory / f"{job_id}.log.jsonl"
        self.entries = []
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.warning("[%s] Job log file disabled, cannot create %s: %s", job_id, directory, e)
            self.path = None

    def log(self, step: str, success: bool, message: str, extra: dict = None):
        entry = {
            "timestamp": now_iso(),
            "step": step,
            "success": success,
            "message": message,
            "extra": extra or {}
        }
        self.entries.append(entry)
        level = logging.INFO if success else logging.WARNING
        log.log(level, "[%s] %s: %s", self.job_id, step, message)
        if self.path is not None:
            try:
                with open(self.path, "a", encoding="utf-8") as f:
                    f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
            except OSError as e:
                log.warning("[%s] Could not write job log %s: %s", self.job_id, self.path, e)
        return entry
