import json

import pytest
import responses
from click.testing import CliRunner

from tm1ctl.http_client import ApiClient, ApiError, basic_authorization
from tm1ctl.instance_cmd import (
    build_command,
    create_instance,
    delete_instance,
    list_instances,
    use_instance,
)
from tm1ctl.settings import ConfigError, Settings

ROOT = "http://localhost:4444"
MANAGE = f"{ROOT}/manage/v1"


@pytest.fixture
def settings(tmp_path):
    values = {
        "hosts": {
            "local": {
                "service_root_url": ROOT,
                "root_client_id": "client",
                "root_client_secret": "secret",
            }
        }
    }
    return Settings(tmp_path / "config.json", values)


@pytest.fixture
def client(settings):
    return ApiClient(settings)


def test_list_instances_json(client):
    rows = [{"Name": "prod"}, {"Name": "test"}]
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{MANAGE}/Instances", json={"value": rows})
        text = list_instances(client, "", "", "json")
        sent = rsps.calls[0].request
    assert json.loads(text) == rows
    assert sent.headers["Authorization"] == basic_authorization("client", "secret")


def test_list_instances_table(client):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{MANAGE}/Instances", json={"value": [{"Name": "prod"}]})
        text = list_instances(client, "local", "", "table")
    assert "prod" in text
    assert text.startswith("+")


def test_list_named_instance_path(client):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{MANAGE}/Instances('prod')", json={"value": []})
        text = list_instances(client, "local", "prod", "json")
    assert json.loads(text) == []


def test_create_instance_posts_name(client):
    reply = {"@odata.context": "$metadata#Instances/$entity", "Name": "prod"}
    with responses.RequestsMock() as rsps:
        rsps.add(responses.POST, f"{MANAGE}/Instances", json=reply, status=201)
        text = create_instance(client, "local", "prod", "json")
        body = json.loads(rsps.calls[0].request.body)
    assert body == {"Name": "prod"}
    assert json.loads(text) == {"Name": "prod"}


def test_delete_instance(client):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.DELETE, f"{MANAGE}/Instances('prod')", status=204)
        text = delete_instance(client, "local", "prod")
    assert text == "Instance 'prod' has been deleted!\n"


def test_error_response(client):
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{MANAGE}/Instances", body="boom", status=500)
        with pytest.raises(ApiError, match="error response: boom"):
            list_instances(client, "local", "", "json")


def test_missing_root_credentials(tmp_path):
    bare = ApiClient(Settings(tmp_path / "config.json", {}))
    with pytest.raises(ConfigError, match="root_client_id"):
        list_instances(bare, "", "", "json")


def test_use_instance_and_reset(settings):
    assert use_instance(settings, "", "prod") == "Set active instance on host 'local' to 'prod'.\n"
    saved = json.loads(settings.path.read_text())
    assert saved["hosts"]["local"]["instance"] == "prod"
    assert settings.instance_name("", "") == "prod"

    assert use_instance(settings, "local") == "Reset active instance on host 'local'.\n"
    assert "instance" not in settings.get_map("hosts")["local"]


def test_use_instance_unknown_host(settings):
    with pytest.raises(ConfigError, match="no configuration specified for host 'dev'"):
        use_instance(settings, "dev", "prod")


def test_cli_list(settings):
    settings.override("output-format", "json")
    with responses.RequestsMock() as rsps:
        rsps.add(responses.GET, f"{MANAGE}/Instances", json={"value": [{"Name": "prod"}]})
        result = CliRunner().invoke(build_command(), ["list"], obj=settings)
    assert result.exit_code == 0
    assert json.loads(result.output) == [{"Name": "prod"}]


def test_cli_use_reports_errors(settings):
    result = CliRunner().invoke(build_command(), ["use", "prod", "--host", "dev"], obj=settings)
    assert result.exit_code == 1
    assert "no configuration specified for host 'dev'" in result.output