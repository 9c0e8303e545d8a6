import json
import datetime
import os

LOG_FILE = os.getenv("OBSERVABILITY_LOG", "logs/run.log")
RUN_ID = os.getenv("RUN_ID", "unknown")


def log(section, event_type, payload):
    record = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "run_id": payload.get("run_id", RUN_ID),
        "section": section,
        "event_type": event_type,
        "payload": payload
    }

    log_dir = os.path.dirname(LOG_FILE)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)

    with open(LOG_FILE, "a") as f:
        f.write(json.dumps(record, default=str) + "\n")


class RunLog:
    """
    Chronological plain-text lines for one ingestion run.

    This is the operator-facing audit trail; it is written to its own file
    and copied onto the run row when the run is finalized.
    """

    def __init__(self, run_id=None):
        self.run_id = run_id
        self.lines = []

    def add(self, line):
        self.lines.append(line)

    @property
    def text(self):
        return "\n".join(self.lines)

    def write(self, logs_dir, edition_date, now=None):
        """Write the lines to logs_dir and return the file path as a string."""
        now = now or datetime.datetime.now(datetime.timezone.utc)
        stamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        stamp = stamp.replace(":", "-").replace(".", "-")

        os.makedirs(logs_dir, exist_ok=True)
        path = os.path.join(str(logs_dir), f"ingestion-{edition_date}-{stamp}.log")
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.text)
        return path
