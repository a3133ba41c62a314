"""Root conftest: test settings must be in the environment before classroom_chat imports."""
from __future__ import annotations

import os

_TEST_ENV = {
    "POSTGRES_USER": "chat",
    "POSTGRES_PASSWORD": "chat",
    "POSTGRES_DB": "classroom_chat_test",
    "JWT_SECRET": "test-secret-for-classroom-chat-tests",
    "CHANNEL_BACKEND": "local",
}

for key, value in _TEST_ENV.items():
    os.environ.setdefault(key, value)
