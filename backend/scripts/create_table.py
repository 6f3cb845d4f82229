"""
Create the document table and its secondary indexes (local / ephemeral environments).

Usage:
  AWS_DYNAMODB_ENDPOINT=http://localhost:8000 APP_ENVIRONMENT_PREFIX=dev \
    python backend/scripts/create_table.py
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure `backend/` is on sys.path so `import docmeta.*` works from a checkout.
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from docmeta.db.dynamodb.client import dynamodb_client  # noqa: E402
from docmeta.db.dynamodb.retry import NO_RETRY, ddb_call  # noqa: E402
from docmeta.observability.logging import configure_logging, get_logger  # noqa: E402
from docmeta.settings import settings  # noqa: E402
from docmeta.storage.indexes import create_table_kwargs, table_exists  # noqa: E402


def main() -> int:
    configure_logging(level=settings.log_level)
    log = get_logger("create_table")
    client = dynamodb_client()
    table_name = settings.table_name

    if ddb_call("ListTables", lambda: table_exists(client, table_name), retry_policy=NO_RETRY):
        log.info("table_exists", table_name=table_name)
        return 0

    ddb_call("CreateTable", lambda: client.create_table(**create_table_kwargs(table_name)), table_name=table_name)
    client.get_waiter("table_exists").wait(TableName=table_name)
    log.info("table_created", table_name=table_name)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
