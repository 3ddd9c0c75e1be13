#!/usr/bin/env python3
"""
API Test Executor サーバー起動スクリプト

APITEST_API_HOST / APITEST_API_PORT / APITEST_API_RELOAD で上書きできる。
"""
import os
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import uvicorn

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8000


def main() -> None:
    uvicorn.run(
        "api.main:app",
        host=os.getenv("APITEST_API_HOST", DEFAULT_HOST),
        port=int(os.getenv("APITEST_API_PORT", str(DEFAULT_PORT))),
        reload=os.getenv("APITEST_API_RELOAD", "").lower() in ("1", "true", "yes"),
    )


if __name__ == "__main__":
    main()
