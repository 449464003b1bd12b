"""
Tests for RuntimeConfig loading and CLI key=value parsing.
"""

import pytest

from monofuzz.config import RuntimeConfig, parse_cli_key_values
from monofuzz.enums import ProducerTieBreak


def test_defaults():
  config = RuntimeConfig()
  assert config.max_instantiations_per_api == 3
  assert config.max_driver_call_depth == 5
  assert config.max_drivers_per_target == 8
  assert config.producer_tie_break == ProducerTieBreak.DIVERSITY
  assert config.workers == 1
  assert config.targets == []


def test_load_from_pyproject(tmp_path):
  (tmp_path / "pyproject.toml").write_text(
    '[tool.monofuzz]\nmax_driver_call_depth = 2\nproducer_tie_break = "shortest"\n',
    encoding="utf-8",
  )
  nested = tmp_path / "crates" / "demo"
  nested.mkdir(parents=True)

  config = RuntimeConfig.load(search_path=nested)
  assert config.max_driver_call_depth == 2
  assert config.producer_tie_break == ProducerTieBreak.SHORTEST


def test_overrides_win(tmp_path):
  (tmp_path / "pyproject.toml").write_text("[tool.monofuzz]\nworkers = 2\n", encoding="utf-8")
  config = RuntimeConfig.load(overrides={"workers": 6, "targets": "demo::parse"}, search_path=tmp_path)
  assert config.workers == 6
  assert config.targets == ["demo::parse"]


def test_pyproject_without_section(tmp_path):
  (tmp_path / "pyproject.toml").write_text("[project]\nname = 'x'\n", encoding="utf-8")
  assert RuntimeConfig.load(search_path=tmp_path) == RuntimeConfig()


@pytest.mark.parametrize(
  "overrides",
  [{"max_driver_call_depth": -1}, {"unknown_key": 1}, {"producer_tie_break": "random"}, {"workers": 0}],
)
def test_invalid_settings(tmp_path, overrides):
  with pytest.raises(ValueError, match="Invalid monofuzz configuration"):
    RuntimeConfig.load(overrides=overrides, search_path=tmp_path)


def test_parse_cli_key_values(caplog):
  parsed = parse_cli_key_values(
    ["workers=4", "require_seed_input=true", "targets=a::x, b::y", "producer_tie_break=shortest", "oops"]
  )
  assert parsed == {
    "workers": 4,
    "require_seed_input": True,
    "targets": ["a::x", "b::y"],
    "producer_tie_break": "shortest",
  }
  assert "oops" in caplog.text
  assert parse_cli_key_values(None) == {}
