"""Key-value store keeping one JSON file per key."""

import os
import tempfile
from pathlib import Path
from urllib.parse import quote, unquote

from aws_lambda_powertools import Logger

from portfolio.core.models.errors import StorageError
from portfolio.core.repositories.key_value_store import KeyValueStore
from portfolio.core.utils.constants import (
    ERROR_CODE_METADATA_DELETE_FAILED,
    ERROR_CODE_METADATA_READ_FAILED,
    ERROR_CODE_METADATA_WRITE_FAILED,
)

logger = Logger(UTC=True)


class FileKeyValueStore(KeyValueStore):
    """Documents stored as `<directory>/<key>.json`.

    With the bulk variant this is the `data/photos.json` file of a local
    deployment.
    """

    backend_name = "local-file"

    def __init__(self, directory: Path) -> None:
        self._directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self._directory / f"{quote(key, safe='')}.json"

    def get(self, key: str) -> str | None:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.exception("Metadata file read failed", extra={"path": str(path)})
            raise StorageError(
                message="Unable to retrieve photo metadata",
                error_code=ERROR_CODE_METADATA_READ_FAILED,
                details={"key": key},
            ) from exc

    def set(self, key: str, value: str) -> None:
        path = self.path_for(key)
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._directory, prefix=".tmp-")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            logger.exception("Metadata file write failed", extra={"path": str(path)})
            raise StorageError(
                message="Unable to save photo metadata at this time",
                error_code=ERROR_CODE_METADATA_WRITE_FAILED,
                details={"key": key},
            ) from exc

    def delete(self, key: str) -> bool:
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            logger.exception("Metadata file delete failed", extra={"path": str(path)})
            raise StorageError(
                message="Unable to delete photo metadata",
                error_code=ERROR_CODE_METADATA_DELETE_FAILED,
                details={"key": key},
            ) from exc
        return True

    def scan_keys(self, prefix: str) -> list[str]:
        if not self._directory.exists():
            return []
        try:
            keys = [unquote(path.stem) for path in self._directory.glob("*.json")]
        except OSError as exc:
            logger.exception("Metadata directory scan failed", extra={"path": str(self._directory)})
            raise StorageError(
                message="Unable to retrieve photo metadata",
                error_code=ERROR_CODE_METADATA_READ_FAILED,
                details={"prefix": prefix},
            ) from exc
        return sorted(key for key in keys if key.startswith(prefix))
