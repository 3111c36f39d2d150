from __future__ import annotations

import threading
import time

import pytest

from mcp_servers.gui_browser.downloads import DownloadPathError, DownloadState, DownloadTracker


def _begin(tracker: DownloadTracker, guid: str = "g1", filename: str = "report.csv") -> None:
    tracker.handle_event(
        {
            "method": "Browser.downloadWillBegin",
            "params": {"guid": guid, "url": f"https://files.test/{filename}", "suggestedFilename": filename},
        }
    )


def test_will_begin_records_download(tmp_path) -> None:  # noqa: ANN001
    tracker = DownloadTracker(str(tmp_path / "dl"))

    _begin(tracker, filename="annual report.csv")

    (record,) = tracker.list()
    assert record.guid == "g1"
    assert record.progress == 0.0
    assert record.state == DownloadState.IN_PROGRESS
    assert record.resource_uri == "download://annual%20report.csv"
    assert (tmp_path / "dl").is_dir()
    assert record.to_dict()["suggestedFilename"] == "annual report.csv"


@pytest.mark.parametrize("missing", ["guid", "url", "suggestedFilename"])
def test_will_begin_without_required_field_is_ignored(tmp_path, missing: str) -> None:  # noqa: ANN001
    tracker = DownloadTracker(str(tmp_path))
    params = {"guid": "g1", "url": "https://files.test/a.bin", "suggestedFilename": "a.bin"}
    params.pop(missing)

    tracker.handle_event({"method": "Browser.downloadWillBegin", "params": params})

    assert tracker.list() == []


@pytest.mark.parametrize(
    ("received", "total", "expected"),
    [(50, 200, 25.0), (10, 0, 0.0), (0, None, 0.0), (200, 200, 100.0)],
)
def test_progress_percentage(tmp_path, received, total, expected) -> None:  # noqa: ANN001
    tracker = DownloadTracker(str(tmp_path))
    _begin(tracker)

    tracker.handle_event(
        {
            "method": "Browser.downloadProgress",
            "params": {"guid": "g1", "receivedBytes": received, "totalBytes": total, "state": "inProgress"},
        }
    )

    assert tracker.list()[0].progress == expected


def test_completed_download_is_kept(tmp_path) -> None:  # noqa: ANN001
    tracker = DownloadTracker(str(tmp_path))
    _begin(tracker)

    tracker.on_progress({"guid": "g1", "receivedBytes": 10, "totalBytes": 10, "state": "completed"})

    assert tracker.list()[0].state == DownloadState.COMPLETED
    assert tracker.find_by_filename("report.csv") is not None


def test_path_for_stays_inside_download_dir(tmp_path) -> None:  # noqa: ANN001
    tracker = DownloadTracker(str(tmp_path / "dl"))
    _begin(tracker, guid="ok", filename="report.csv")
    _begin(tracker, guid="up", filename="../secret.txt")
    _begin(tracker, guid="abs", filename=str(tmp_path / "elsewhere.txt"))

    ok = tracker.find_by_filename("report.csv")
    assert tracker.path_for(ok) == (tmp_path / "dl" / "report.csv").resolve()
    for name in ("../secret.txt", str(tmp_path / "elsewhere.txt")):
        with pytest.raises(DownloadPathError):
            tracker.path_for(tracker.find_by_filename(name))


def test_canceled_download_is_removed(tmp_path) -> None:  # noqa: ANN001
    tracker = DownloadTracker(str(tmp_path))
    _begin(tracker, guid="g1", filename="a.csv")
    _begin(tracker, guid="g2", filename="b.csv")

    tracker.on_progress({"guid": "g1", "state": "canceled"})

    assert [r.guid for r in tracker.list()] == ["g2"]


def test_progress_for_unknown_guid_is_ignored(tmp_path) -> None:  # noqa: ANN001
    tracker = DownloadTracker(str(tmp_path))

    assert tracker.on_progress({"guid": "nope", "receivedBytes": 1, "totalBytes": 2}) is None
    assert tracker.list() == []


def test_attach_enables_download_events(tmp_path) -> None:  # noqa: ANN001
    got_event = threading.Event()

    class FakeConnection:
        def __init__(self) -> None:
            self.sent: list[tuple[str, dict]] = []
            self.events = [
                {
                    "method": "Browser.downloadWillBegin",
                    "params": {"guid": "g9", "url": "https://files.test/x.zip", "suggestedFilename": "x.zip"},
                }
            ]

        def send(self, method: str, params: dict | None = None, **_kw) -> dict:  # noqa: ANN003
            self.sent.append((method, params or {}))
            return {}

        def recv_event(self, timeout: float = 0.5):  # noqa: ANN201
            if self.events:
                return self.events.pop(0)
            got_event.set()
            time.sleep(0.01)
            return None

        def close(self) -> None:
            pass

    conn = FakeConnection()
    tracker = DownloadTracker(str(tmp_path / "dl"))
    tracker.attach("ws://browser", connection_factory=lambda url: conn)
    try:
        assert got_event.wait(5)
        assert tracker.attached
    finally:
        tracker.detach()

    assert conn.sent[0] == (
        "Browser.setDownloadBehavior",
        {"behavior": "allow", "downloadPath": str(tmp_path / "dl"), "eventsEnabled": True},
    )
    assert [r.guid for r in tracker.list()] == ["g9"]
    assert not tracker.attached
