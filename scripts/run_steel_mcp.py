#!/usr/bin/env python3
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

_local = (os.environ.get("STEEL_LOCAL") or "").strip().lower() in {"1", "true", "yes", "on"}
print(
    f"[mcp] steel mode={'local' if _local else 'remote'} | "
    f"base_url={os.environ.get('STEEL_BASE_URL') or ('http://localhost:3000' if _local else 'https://api.steel.dev')} | "
    f"api_key={'set' if os.environ.get('STEEL_API_KEY') else 'unset'} | "
    f"global_wait={os.environ.get('GLOBAL_WAIT_SECONDS', '0')}s",
    file=sys.stderr,
)

from mcp_servers.steel_browser.main import main  # noqa: E402

if __name__ == "__main__":
    main()
