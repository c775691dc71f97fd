import json
import re
import uuid

import pytest
import responses

from tm1ctl.http_client import ApiClient, ApiError
from tm1ctl.restore_cmd import restore
from tm1ctl.settings import ConfigError, Settings

DB_ROOT = "http://localhost:4444/tm1/api/v1/Databases('db')"
BACKUPSETS = f"{DB_ROOT}/Contents('Files')/Contents('.backupsets')"
ENTRY = re.compile(re.escape(BACKUPSETS) + r"/Contents\('[0-9a-f-]+-backup\.zip'\)$")
CONTENT = re.compile(re.escape(BACKUPSETS) + r"/Contents\('[0-9a-f-]+-backup\.zip'\)/Content$")


@pytest.fixture
def client(tmp_path):
    values = {
        "hosts": {"local": {"service_root_url": "http://localhost:4444", "instance": "tm1"}},
        "host": "local",
        "users": {"admin": {"password": "password"}},
        "user": "admin",
    }
    return ApiClient(Settings(tmp_path / "config.json", values))


@pytest.fixture
def backupset(tmp_path):
    path = tmp_path / "backup.zip"
    path.write_bytes(b"backup-data")
    return path


@pytest.fixture
def mock():
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


def _register_success(mock, folder_status=200):
    mock.add(responses.GET, BACKUPSETS, json={}, status=folder_status)
    mock.add(responses.POST, f"{DB_ROOT}/Contents('Files')/Contents", json={}, status=201)
    mock.add(responses.POST, f"{BACKUPSETS}/Contents", json={}, status=201)
    mock.add(responses.PUT, CONTENT, status=204)
    mock.add(responses.POST, f"{DB_ROOT}/tm1s.Restore", status=204)


def _calls(mock, method, url_part):
    return [c for c in mock.calls if c.request.method == method and url_part in c.request.url]


def test_missing_database_is_an_error(client, backupset):
    with pytest.raises(ConfigError, match="no database specified"):
        list(restore(client, str(backupset), "", "", "", "", ""))


def test_successful_restore(client, backupset, mock):
    _register_success(mock)
    mock.add(responses.DELETE, ENTRY, status=204)

    messages = list(restore(client, str(backupset), "", "", "db", "", ""))

    assert messages == [
        f"Restore initiated on database 'db' running on instance 'tm1' "
        f"using backupset: {backupset}"
    ]
    document = json.loads(_calls(mock, "POST", "backupsets')/Contents")[0].request.body)
    temp_name = document["Name"]
    assert document["@odata.type"] == "#ibm.tm1.api.v1.Document"
    assert temp_name.endswith("-backup.zip")
    uuid.UUID(temp_name[:36])

    restore_call = _calls(mock, "POST", "tm1s.Restore")[0]
    assert json.loads(restore_call.request.body) == {"URL": temp_name}

    put_call = _calls(mock, "PUT", temp_name)[0]
    assert put_call.request.body == b"backup-data"
    assert len(_calls(mock, "DELETE", temp_name)) == 1
    assert not _calls(mock, "POST", "Contents('Files')/Contents")[:1] or all(
        "backupsets" in c.request.url for c in _calls(mock, "POST", "Contents('Files')/Contents")
    )


def test_missing_folder_is_created(client, backupset, mock):
    _register_success(mock, folder_status=404)
    mock.add(responses.DELETE, ENTRY, status=204)

    messages = list(restore(client, str(backupset), "", "", "db", "", ""))

    assert messages == [
        f"Restore initiated on database 'db' running on instance 'tm1' "
        f"using backupset: {backupset}"
    ]
    folder_calls = [
        c for c in mock.calls
        if c.request.method == "POST" and c.request.url.endswith("Contents('Files')/Contents")
    ]
    assert len(folder_calls) == 1
    assert json.loads(folder_calls[0].request.body) == {
        "@odata.type": "#ibm.tm1.api.v1.Folder",
        "Name": ".backupsets",
    }


def test_missing_backupset_file(client, tmp_path, mock):
    _register_success(mock)
    missing = tmp_path / "absent.zip"

    with pytest.raises(FileNotFoundError):
        list(restore(client, str(missing), "", "", "db", "", ""))

    assert _calls(mock, "POST", "backupsets')/Contents") == []


def test_cleanup_failure_yields_warning(client, backupset, mock):
    _register_success(mock)
    mock.add(responses.DELETE, ENTRY, body="gone", status=500)

    messages = list(restore(client, str(backupset), "", "", "db", "", ""))

    assert len(messages) == 2
    assert messages[1].startswith("Warning: temporary backupset '")
    assert messages[1].endswith("could not be delete due to: error response: gone")


def test_failed_restore_still_cleans_up(client, backupset, mock):
    mock.add(responses.GET, BACKUPSETS, json={})
    mock.add(responses.POST, f"{BACKUPSETS}/Contents", json={}, status=201)
    mock.add(responses.PUT, CONTENT, status=204)
    mock.add(responses.POST, f"{DB_ROOT}/tm1s.Restore", body="bad backup", status=400)
    mock.add(responses.DELETE, ENTRY, status=204)

    with pytest.raises(ApiError, match="bad backup"):
        list(restore(client, str(backupset), "", "", "db", "", ""))

    assert len([c for c in mock.calls if c.request.method == "DELETE"]) == 1


def test_explicit_instance_is_used(client, backupset, mock):
    root = "http://localhost:4444/other/api/v1/Databases('db')"
    mock.add(responses.GET, f"{root}/Contents('Files')/Contents('.backupsets')", json={})
    mock.add(responses.POST, f"{root}/Contents('Files')/Contents('.backupsets')/Contents", json={})
    mock.add(responses.PUT, re.compile(re.escape(root) + r".*/Content$"), status=204)
    mock.add(responses.POST, f"{root}/tm1s.Restore", status=204)
    mock.add(responses.DELETE, re.compile(re.escape(root) + r".*backup\.zip'\)$"), status=204)

    messages = list(restore(client, str(backupset), "", "other", "db", "", ""))

    assert "instance 'other'" in messages[0]
    assert all("/other/api/v1/" in c.request.url for c in mock.calls)