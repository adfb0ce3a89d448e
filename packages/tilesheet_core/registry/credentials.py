"""Bot credential file handling."""

from __future__ import annotations

from logging import getLogger
from pathlib import Path
import json

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import CredentialsError

logger = getLogger("tilesheet_core.registry.credentials")

DEFAULT_CREDENTIALS_PATH = Path("ftb.json")
CREDENTIALS_TEMPLATE = {
    "useragent": "tilesheet-sync",
    "username": "insert bot username here",
    "password": "insert bot password here",
    "baseapi": "https://ftb.gamepedia.com/api.php",
}


class Credentials(BaseModel):
    model_config = ConfigDict(extra="ignore")

    useragent: str = Field(min_length=1)
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    baseapi: str = Field(min_length=1, pattern=r"^https?://")


def write_template(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(CREDENTIALS_TEMPLATE, indent=4) + "\n", encoding="utf-8")
    return path


def load_credentials(path: Path = DEFAULT_CREDENTIALS_PATH) -> Credentials:
    """Load bot credentials, writing a template first if the file is missing."""
    if not path.is_file():
        write_template(path)
        logger.warning("[CREDENTIALS] Wrote credential template to %s", path)
        raise CredentialsError(
            f"Failed to locate {path}. A template was created; fill it in with a bot account and rerun.",
            error_code="credentials_missing",
        )

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise CredentialsError(f"Cannot read credentials from {path}: {exc}", error_code="credentials_corrupt") from exc

    try:
        creds = Credentials.model_validate(raw)
    except ValidationError as exc:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in exc.errors())
        raise CredentialsError(
            f"Invalid credentials in {path}: check {fields}",
            error_code="credentials_invalid",
        ) from exc

    if creds.username == CREDENTIALS_TEMPLATE["username"] or creds.password == CREDENTIALS_TEMPLATE["password"]:
        raise CredentialsError(
            f"{path} still contains the template placeholders",
            error_code="credentials_template",
        )
    return creds
