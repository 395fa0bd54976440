"""
Shared test setup: point the app at a throwaway database and upload dir
before any project module reads its settings.
"""

import os
import sys
import tempfile
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TMP_DIR = tempfile.mkdtemp(prefix="expense-tests-")
UPLOAD_DIR = os.path.join(TMP_DIR, "uploads")
SECRET_KEY = "test-secret-key-with-enough-bytes-for-hs256"

os.environ["DATABASE_URL"] = f"sqlite:///{TMP_DIR}/test.db"
os.environ["JWT_SECRET_KEY"] = SECRET_KEY
os.environ["UPLOAD_DIR"] = UPLOAD_DIR
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["ACCESS_TOKEN_TTL_SECONDS"] = "3600"
