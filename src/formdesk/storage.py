from __future__ import annotations

from formdesk.config import Settings
from formdesk.protocols import Storage
from formdesk.repo_json import JSONStorage
from formdesk.repo_sqlite import SQLiteStorage


def init_storage(settings: Settings) -> Storage:
    if settings.storage_backend == "json":
        return JSONStorage(settings.json_path)
    return SQLiteStorage(settings.sqlite_path)
