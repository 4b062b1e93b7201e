"""
File source test suite.

Covers JSON and TOML parsing, pydantic validation and error wrapping.
"""

import json
from typing import List

import pytest
from pydantic import BaseModel

from config_control import ConfigLoadError, Control, FileSource


class Server(BaseModel):
    host: str = "localhost"
    port: int


class ServiceConfig(BaseModel):
    name: str
    server: Server
    tags: List[str] = []


@pytest.fixture
def json_file(tmp_path):
    path = tmp_path / "service.json"
    path.write_text(json.dumps({"name": "api", "server": {"port": 8080}, "tags": ["a"]}))
    return path


@pytest.fixture
def toml_file(tmp_path):
    path = tmp_path / "service.toml"
    path.write_text('name = "api"\ntags = ["a"]\n\n[server]\nport = 8080\n')
    return path


class TestFileSource:
    """Parsing configuration files."""

    def test_identity(self, json_file):
        assert FileSource(json_file).identity() == str(json_file)

    def test_load_json(self, json_file):
        data = FileSource(json_file).load()

        assert data == {"name": "api", "server": {"port": 8080}, "tags": ["a"]}

    def test_load_toml(self, toml_file):
        data = FileSource(toml_file).load()

        assert data["server"]["port"] == 8080
        assert data["tags"] == ["a"]

    def test_load_into_model(self, toml_file):
        config = FileSource(toml_file, model=ServiceConfig).load()

        assert isinstance(config, ServiceConfig)
        assert config.server.host == "localhost"

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "service.ini"
        path.write_text("[server]\n")

        with pytest.raises(ConfigLoadError) as excinfo:
            FileSource(path).load()

        assert ".ini" in str(excinfo.value)


class TestWithControl:
    """File sources driving the controller."""

    def test_model_changes_tracked(self, json_file):
        control = Control(FileSource(json_file, model=ServiceConfig))

        json_file.write_text(json.dumps({"name": "api", "server": {"port": 9090}, "tags": ["a", "b"]}))
        control.reload()

        assert control.changed == ("server.port", "tags.1")
        assert control.is_changed("server.*")
        assert not control.is_changed("name")

    def test_invalid_json_wrapped(self, json_file):
        control = Control(FileSource(json_file))
        json_file.write_text("{not json")

        with pytest.raises(ConfigLoadError) as excinfo:
            control.reload()

        assert isinstance(excinfo.value.__cause__, json.JSONDecodeError)
        assert control.config["server"]["port"] == 8080

    def test_validation_error_wrapped(self, json_file):
        control = Control(FileSource(json_file, model=ServiceConfig))
        json_file.write_text(json.dumps({"name": "api", "server": {}}))

        with pytest.raises(ConfigLoadError):
            control.reload()

    def test_missing_file_on_create(self, tmp_path):
        with pytest.raises(ConfigLoadError):
            Control(FileSource(tmp_path / "absent.json"))
