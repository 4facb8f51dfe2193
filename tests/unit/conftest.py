"""
Shared fixtures for unit tests.
"""

import copy

import pytest

from app.config import Settings
from app.models.review import ReviewContext


SAMPLE_DIFF = """diff --git a/src/app.py b/src/app.py
index 83db48f..bf269f4 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,4 +1,5 @@
 import os
-import sys
+import json
+import logging

 def main():
@@ -10,3 +11,3 @@ def main():
     config = load()
-    run(config)
+    run(config, verbose=True)
     return 0
diff --git a/docs/notes.txt b/docs/notes.txt
new file mode 100644
index 0000000..3b18e51
--- /dev/null
+++ b/docs/notes.txt
@@ -0,0 +1,3 @@
+first
+second
+third
diff --git a/old.txt b/old.txt
deleted file mode 100644
index 3b18e51..0000000
--- a/old.txt
+++ /dev/null
@@ -1,2 +0,0 @@
-gone
-also gone
"""


PULL_REQUEST_PAYLOAD = {
    "action": "opened",
    "number": 123,
    "pull_request": {
        "number": 123,
        "title": "Add JSON logging",
        "body": "Switches logging to JSON",
        "state": "open",
        "draft": False,
        "commits": 2,
        "additions": 10,
        "deletions": 5,
        "changed_files": 3,
        "user": {"login": "testuser", "id": 12345, "type": "User"},
        "head": {
            "ref": "feature/json-logging",
            "sha": "abc123def456",
            "repo": {"full_name": "testuser/test-repo"},
        },
        "base": {
            "ref": "main",
            "repo": {"full_name": "testuser/test-repo"},
        },
        "html_url": "https://github.com/testuser/test-repo/pull/123",
        "diff_url": "https://github.com/testuser/test-repo/pull/123.diff",
        "patch_url": "https://github.com/testuser/test-repo/pull/123.patch",
        "created_at": "2024-01-01T12:00:00Z",
        "updated_at": "2024-01-01T12:30:00Z",
    },
    "repository": {
        "name": "test-repo",
        "full_name": "testuser/test-repo",
        "owner": {"login": "testuser"},
        "private": False,
    },
    "sender": {"login": "testuser", "id": 12345, "type": "User"},
}


def make_hunk_diff(count: int) -> str:
    """Diff with ``count`` single-line hunks in one file."""
    parts = [
        "diff --git a/lib/module.py b/lib/module.py",
        "--- a/lib/module.py",
        "+++ b/lib/module.py",
    ]
    for i in range(count):
        start = i * 10 + 1
        parts.append(f"@@ -{start},1 +{start},1 @@")
        parts.append(f"-old line {i}")
        parts.append(f"+new line {i}")
    return "\n".join(parts) + "\n"


@pytest.fixture
def sample_diff() -> str:
    return SAMPLE_DIFF


@pytest.fixture
def pr_payload() -> dict:
    return copy.deepcopy(PULL_REQUEST_PAYLOAD)


@pytest.fixture
def settings() -> Settings:
    """Settings built without reading the environment or a .env file."""
    return Settings(
        _env_file=None,
        github_webhook_secret="test_secret",
        github_token="test_token",
        deepseek_api_key="test_key",
        review_batch_delay_seconds=0,
    )


@pytest.fixture
def review_context() -> ReviewContext:
    return ReviewContext(
        title="Add JSON logging",
        author="testuser",
        source_branch="feature/json-logging",
        target_branch="main",
        pr_number=123,
        repository="testuser/test-repo",
        head_sha="abc123def456",
    )


@pytest.fixture
def hunk_diff():
    """Factory for single-file diffs with a given number of hunks."""
    return make_hunk_diff
