from __future__ import annotations

import base64

import pytest

from mcp_servers.gui_browser.resources import (
    CONSOLE_LOGS_URI,
    ResourceNotFoundError,
    list_resources,
    read_resource,
)


def _download(session, filename: str, payload: bytes) -> str:  # noqa: ANN001
    record = session.downloads.on_will_begin(
        {"guid": filename, "url": f"https://files.test/{filename}", "suggestedFilename": filename}
    )
    session.downloads.path_for(record).write_bytes(payload)
    return record.resource_uri


def test_console_logs_always_resolve(make_session) -> None:  # noqa: ANN001
    session = make_session()

    empty = read_resource(session, CONSOLE_LOGS_URI)
    session.console.append("log", "ready")
    filled = read_resource(session, CONSOLE_LOGS_URI)

    assert empty.to_dict() == {"uri": "console://logs", "mimeType": "text/plain", "text": ""}
    assert filled.text == "[log] ready"


def test_text_download_is_returned_as_text(make_session) -> None:  # noqa: ANN001
    session = make_session()
    uri = _download(session, "data.csv", b"a,b\n1,2\n")

    content = read_resource(session, uri)

    assert content.mime_type == "text/csv"
    assert content.text == "a,b\n1,2\n"
    assert content.blob is None


def test_binary_download_is_returned_as_blob(make_session) -> None:  # noqa: ANN001
    session = make_session()
    uri = _download(session, "archive.zip", b"PK\x03\x04")

    content = read_resource(session, uri)

    assert content.blob == base64.b64encode(b"PK\x03\x04").decode()
    assert "text" not in content.to_dict()


def test_screenshot_resource(make_session) -> None:  # noqa: ANN001
    session = make_session()
    shot = session.screenshots.put("aGVsbG8=", name="home")

    content = read_resource(session, shot.uri)

    assert content.blob == "aGVsbG8="
    assert content.mime_type == "image/png"


@pytest.mark.parametrize("uri", ["screenshot://missing", "download://missing.txt", "other://x"])
def test_unknown_resources(make_session, uri: str) -> None:  # noqa: ANN001
    with pytest.raises(ResourceNotFoundError) as exc_info:
        read_resource(make_session(), uri)
    assert str(exc_info.value) == f"Resource not found: {uri}"


def test_list_resources(make_session) -> None:  # noqa: ANN001
    session = make_session()
    session.screenshots.put("aGVsbG8=", name="home")
    _download(session, "notes.txt", b"hi")

    uris = [r["uri"] for r in list_resources(session)]

    assert uris == ["console://logs", "screenshot://home", "download://notes.txt"]


def test_download_outside_download_dir_is_not_served(make_session, tmp_path) -> None:  # noqa: ANN001
    session = make_session()
    (tmp_path / "secret.txt").write_text("top secret")
    record = session.downloads.on_will_begin(
        {"guid": "g", "url": "https://files.test/x", "suggestedFilename": "../secret.txt"}
    )

    with pytest.raises(ResourceNotFoundError):
        read_resource(session, record.resource_uri)
