# backend/tests/conftest.py
from __future__ import annotations

import os
import tempfile

# Must be set before rentflow.config is imported anywhere.
_TMP = tempfile.mkdtemp(prefix="rentflow-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP}/rentflow_test.db"
os.environ["PAYMENT_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["AUTH_MODE"] = "dev"
os.environ["CELERY_TASK_ALWAYS_EAGER"] = "true"
os.environ["CELERY_BROKER_URL"] = "memory://"
os.environ["CELERY_RESULT_BACKEND"] = "cache+memory://"
os.environ.pop("EMAIL_API_TOKEN", None)

import pytest  # noqa: E402

from rentflow.db import Base, engine, init_db  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_schema():
    init_db()
    yield
    Base.metadata.drop_all(bind=engine)
