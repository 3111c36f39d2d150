from __future__ import annotations

from typing import Any

from ..session_manager import BrowserSessionManager


def get_download_list(session: BrowserSessionManager) -> dict[str, Any]:
    """All tracked downloads in the order they started."""
    records = [record.to_dict() for record in session.downloads.list()]
    return {"downloads": records, "count": len(records), "downloadDir": str(session.downloads.download_dir)}
