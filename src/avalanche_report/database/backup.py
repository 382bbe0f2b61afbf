"""Periodic off-site backup of the database to S3 compatible storage."""

import base64
import hashlib
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any
from typing import Protocol

import boto3
from botocore.exceptions import BotoCoreError
from botocore.exceptions import ClientError
from pydantic import SecretStr

from avalanche_report.config.types import BackupOptions
from avalanche_report.database import Database
from avalanche_report.exceptions import BackupError
from avalanche_report.utils.logging_utils import LoggerMixin


DB_FILE_NAME = "db.sqlite3"
RETRY_INTERVAL = 30.0

@dataclass
class BackupInfo:
    size: int
    entity_tag: str
    version_id: str | None = None

class BackupUploader(Protocol):
    def upload(self, path: Path, key: str, content_md5: str) -> dict[str, Any]:
        ...

class S3BackupUploader:
    """Uploads backup files with ``put_object``."""

    def __init__(self, options: BackupOptions, aws_secret_access_key: SecretStr, client: Any = None):
        self.bucket = options.s3_bucket_name
        self._client = client or boto3.client(
            "s3",
            region_name=options.s3_bucket_region,
            endpoint_url=options.s3_endpoint,
            aws_access_key_id=options.aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key.get_secret_value(),
        )

    def upload(self, path: Path, key: str, content_md5: str) -> dict[str, Any]:
        try:
            with open(path, "rb") as body:
                return self._client.put_object(
                    Bucket=self.bucket,
                    Key=key,
                    Body=body,
                    ContentMD5=content_md5,
                )
        except (BotoCoreError, ClientError) as e:
            raise BackupError(f"Upload to bucket {self.bucket} failed: {e}") from e

def md5_base64(path: Path) -> str:
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(64 * 1024), b""):
            digest.update(chunk)
    return base64.b64encode(digest.digest()).decode("ascii")

class BackupScheduler(LoggerMixin):
    """Runs a backup immediately and then on every schedule interval.

    A failed backup is retried every 30 seconds until it succeeds.
    """

    def __init__(
        self,
        database: Database,
        options: BackupOptions,
        uploader: BackupUploader,
        retry_interval: float = RETRY_INTERVAL
    ):
        super().__init__()
        self.database = database
        self.options = options
        self.uploader = uploader
        self.retry_interval = retry_interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.set_log_context(service="backup")

    def perform_backup(self) -> BackupInfo:
        """Snapshot the database with ``VACUUM INTO`` and upload it."""
        with tempfile.TemporaryDirectory() as temp_dir:
            backup_path = Path(temp_dir) / DB_FILE_NAME
            self.info("Performing backup", path=str(backup_path))
            with self.database.connection() as conn:
                conn.execute("VACUUM main INTO ?", (str(backup_path),))

            size = backup_path.stat().st_size
            response = self.uploader.upload(backup_path, DB_FILE_NAME, md5_base64(backup_path))

        info = BackupInfo(
            size=size,
            entity_tag=str(response.get("ETag", "")).replace('"', ""),
            version_id=response.get("VersionId"),
        )
        self.info(
            "Completed backup to s3",
            entity=info.entity_tag,
            version=info.version_id or "",
            size=info.size
        )
        return info

    def run(self) -> None:
        initial = True
        while not self._stop.is_set():
            while not self._stop.is_set():
                try:
                    self.perform_backup()
                    break
                except Exception as e:
                    kind = "initial" if initial else "recurring"
                    self.error(f"Error performing {kind} backup", exc_info=e)
                self.warning(f"Retrying in {self.retry_interval:.0f} seconds...")
                if self._stop.wait(self.retry_interval):
                    return

            initial = False
            interval = self.options.schedule.interval
            self.info(f"Next backup in {interval:.0f} seconds")
            self._stop.wait(interval)

    def start(self) -> None:
        self._thread = threading.Thread(target=self.run, name="backup", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
