from __future__ import annotations

import os
import tempfile

# settings are read at import time, so point at a throwaway database first
_DB_DIR = tempfile.mkdtemp(prefix="rentdesk-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'rentdesk-test.db')}"
os.environ["APP_ENV"] = "local"
os.environ["AUTH_MODE"] = "dev"
os.environ["DEV_AUTO_PROVISION"] = "true"
os.environ["DEMO_LOGIN_ENABLED"] = "true"

import pytest  # noqa: E402

from rentdesk import models  # noqa: E402,F401
from rentdesk.db import Base, engine  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield

