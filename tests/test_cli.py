"""Tests for the tooldeck command line."""

import json

import pytest
from click.testing import CliRunner

from tooldeck.cli import cli
from tooldeck.output import console
from tooldeck.providers import registry
from tooldeck.providers.base import BaseProvider
from tooldeck.providers.response import ModelResponse
from tooldeck.tools.calls import ToolCall


ANSWERS = {
    "divide 1 by 0": ModelResponse(tool_calls=(
        ToolCall("d1", "Divide", json.dumps({"a": 1, "b": 0, "rounding_mode": "Zero"})),
    )),
    "add 8 and 2": ModelResponse(tool_calls=(
        ToolCall("c1", "Add", json.dumps({"a": 8, "b": 2, "rounding_mode": "Nearest"})),
    )),
    "The prior result was: 10. multiply the result by 7": ModelResponse(tool_calls=(
        ToolCall("c2", "Multiply", json.dumps({"a": 10, "b": 7, "rounding_mode": "Zero"})),
    )),
}


class WordCounter:
    def count(self, text):
        return len(text.split())


class FakeProvider(BaseProvider):
    async def complete(self, request):
        return ANSWERS.get(request.messages[-1]["content"], ModelResponse(text="?"))

    async def embed(self, text):
        return [1.0, 0.0]


@pytest.fixture
def config_path(tmp_path, monkeypatch):
    for name in ("TOOLDECK_EMBED_PATH", "TOOLDECK_MAX_FUNC_TOKENS"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("tooldeck.tools.tokens._default_counter", WordCounter())
    monkeypatch.setattr(console, "width", 400)
    return str(tmp_path / "config.yaml")


@pytest.fixture
def with_provider(monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setitem(registry._PROVIDERS, "openai", FakeProvider)


def test_catalog(config_path):
    result = CliRunner().invoke(cli, ["--config", config_path, "catalog"])
    assert result.exit_code == 0
    assert "CallMultiStep" in result.output
    assert "GetCurrentWeather" in result.output
    assert "function budget 500" in result.output


def test_catalog_single_plugin(config_path):
    result = CliRunner().invoke(
        cli, ["--config", config_path, "--plugin", "weather", "catalog"],
    )
    assert result.exit_code == 0
    assert "GetCurrentWeather" in result.output
    assert "Add" not in result.output


def test_unknown_plugin(config_path):
    result = CliRunner().invoke(cli, ["--config", config_path, "--plugin", "nope", "catalog"])
    assert result.exit_code == 1
    assert "Unknown plugin: nope" in result.output
    assert "'Unknown plugin" not in result.output


def test_config(config_path):
    result = CliRunner().invoke(cli, ["--config", config_path, "config"])
    assert result.exit_code == 0
    assert "Model: gpt-4-1106-preview" in result.output
    assert "Max depth: 3" in result.output
    assert "Relevance: disabled" in result.output


def test_ask(config_path, with_provider):
    result = CliRunner().invoke(cli, ["--config", config_path, "ask", "add", "8", "and", "2"])
    assert result.exit_code == 0, result.output
    assert "Step 1: add 8 and 2" in result.output
    assert "10" in result.output


def test_ask_reports_failed_call(config_path, with_provider):
    result = CliRunner().invoke(cli, ["--config", config_path, "ask", "divide 1 by 0"])
    assert result.exit_code == 0, result.output
    assert "No result." in result.output
    assert "err | Call d1 (Divide) failed: Cannot divide by zero" in result.output


def test_steps(config_path, with_provider):
    result = CliRunner().invoke(cli, [
        "--config", config_path,
        "steps", "add 8 and 2", "multiply the result by 7",
        "--strategy", "thread",
    ])
    assert result.exit_code == 0, result.output
    assert "70" in result.output


def test_ask_without_key(config_path, monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    result = CliRunner().invoke(cli, ["--config", config_path, "ask", "hi"])
    assert result.exit_code == 1
    assert "No API key" in result.output


def test_index_build(config_path, with_provider, tmp_path):
    archive = str(tmp_path / "functions.npy")

    first = CliRunner().invoke(cli, ["--config", config_path, "index", "build", "--path", archive])
    assert first.exit_code == 0, first.output
    assert "Embedded 6 function(s)" in first.output

    second = CliRunner().invoke(cli, ["--config", config_path, "index", "build", "--path", archive])
    assert second.exit_code == 0
    assert "up to date" in second.output
