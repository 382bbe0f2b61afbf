"""Secrets read from the environment or from files in a secrets directory.

Each secret is looked up first as an environment variable and then as a
file named after the lower-cased variable inside the secrets directory.
Values are wrapped in ``SecretStr`` so they never show up in reprs,
logs or serialized responses.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from pydantic import SecretStr


logger = logging.getLogger(__name__)

GOOGLE_DRIVE_API_KEY = "GOOGLE_DRIVE_API_KEY"
ADMIN_PASSWORD_HASH = "ADMIN_PASSWORD_HASH"
AWS_SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"

def _read_secret(name: str, secrets_dir: Path) -> SecretStr | None:
    value = os.getenv(name)
    if value:
        logger.debug("Secret %s loaded from environment", name)
        return SecretStr(value)

    path = secrets_dir / name.lower()
    if path.is_file():
        logger.debug("Secret %s loaded from %s", name, path)
        return SecretStr(path.read_text(encoding="utf-8").strip())

    return None

@dataclass(frozen=True)
class Secrets:
    """Secrets required by the service."""
    google_drive_api_key: SecretStr | None = None
    admin_password_hash: SecretStr | None = None
    aws_secret_access_key: SecretStr | None = None

    @classmethod
    def initialize(cls, secrets_dir: str | Path = "secrets") -> "Secrets":
        secrets_dir = Path(secrets_dir)
        secrets = cls(
            google_drive_api_key=_read_secret(GOOGLE_DRIVE_API_KEY, secrets_dir),
            admin_password_hash=_read_secret(ADMIN_PASSWORD_HASH, secrets_dir),
            aws_secret_access_key=_read_secret(AWS_SECRET_ACCESS_KEY, secrets_dir),
        )
        if secrets.google_drive_api_key is None:
            logger.warning("%s is not set, forecasts cannot be fetched", GOOGLE_DRIVE_API_KEY)
        return secrets

    def values(self) -> list[str]:
        """Plain text of every configured secret, for redaction."""
        return [
            secret.get_secret_value()
            for secret in (
                self.google_drive_api_key,
                self.admin_password_hash,
                self.aws_secret_access_key,
            )
            if secret is not None and secret.get_secret_value()
        ]

def redact(text: str, secrets: list[str]) -> str:
    """Replace every occurrence of the given secret values in ``text``."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, "***REDACTED***")
    return text
