"""Tests for the configuration module."""

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from switchboard.config import CompactionConfig, Config, LinkDef, StoreConfig


@pytest.fixture
def sample_config_yaml(tmp_path: Path) -> Path:
    """Create a sample config file for testing."""
    config = {
        "data_dir": str(tmp_path / "data"),
        "log_level": "DEBUG",
        "log_json": False,
        "database": {"path": "test.db"},
        "store": {"max_workers": 2},
        "compaction": {"keep_recent": 5, "window": 50},
        "agents": ["planner", {"id": "coder"}, "reviewer"],
        "links": [
            {"from": "planner", "to": "coder", "direction": "two_way", "kind": "peer"},
            {"from": "coder", "to": "reviewer", "direction": "one_way", "kind": "hierarchical"},
        ],
    }
    config_path = tmp_path / "config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(config, f)
    return config_path


def test_config_defaults() -> None:
    """Test default configuration values."""
    config = Config()
    assert config.data_dir == Path("./data")
    assert config.log_level == "INFO"
    assert config.log_json is True
    assert config.database.path == "switchboard.db"
    assert config.store.max_workers == 4
    assert config.compaction.keep_recent == 20
    assert config.compaction.window == 200
    assert config.agents == []
    assert config.links == []


def test_config_load(sample_config_yaml: Path) -> None:
    """Test loading configuration from YAML file."""
    config = Config.load(sample_config_yaml)
    assert config.log_level == "DEBUG"
    assert config.log_json is False
    assert config.database_path == config.data_dir / "test.db"
    assert config.store.max_workers == 2
    assert config.compaction.keep_recent == 5
    assert len(config.links) == 2


def test_agents_accept_bare_ids(sample_config_yaml: Path) -> None:
    config = Config.load(sample_config_yaml)
    assert config.agent_ids == ["planner", "coder", "reviewer"]


def test_config_load_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        Config.load(tmp_path / "nope.yaml")


def test_config_load_empty_file(tmp_path: Path) -> None:
    """An empty file yields defaults."""
    config_path = tmp_path / "empty.yaml"
    config_path.write_text("")
    assert Config.load(config_path).log_level == "INFO"


def test_load_or_default_missing(tmp_path: Path) -> None:
    config = Config.load_or_default(tmp_path / "missing.yaml")
    assert config.links == []


def test_config_env_override(sample_config_yaml: Path, monkeypatch) -> None:
    """Test environment variable overrides."""
    monkeypatch.setenv("SWITCHBOARD_LOG_LEVEL", "ERROR")
    monkeypatch.setenv("SWITCHBOARD_LOG_JSON", "true")
    monkeypatch.setenv("SWITCHBOARD_DATA_DIR", "/tmp/elsewhere")

    config = Config.load(sample_config_yaml)

    assert config.log_level == "ERROR"
    assert config.log_json is True
    assert config.data_dir == Path("/tmp/elsewhere")


def test_invalid_log_level() -> None:
    with pytest.raises(ValidationError):
        Config(log_level="LOUD")


def test_log_level_is_uppercased() -> None:
    assert Config(log_level="debug").log_level == "DEBUG"


class TestLinkDef:
    """Tests for raw link definitions."""

    def test_from_and_to_aliases(self) -> None:
        link_def = LinkDef.model_validate({"from": "a", "to": "b"})
        assert link_def.from_agent == "a"
        assert link_def.to_agent == "b"

    def test_populate_by_name(self) -> None:
        link_def = LinkDef(from_agent="a", to_agent="b")
        assert link_def.direction == "two_way"

    def test_kind_defaults_to_peer(self) -> None:
        link_def = LinkDef(from_agent="a", to_agent="b")
        assert link_def.kind_value == "peer"
        assert link_def.kind_field == "kind"

    def test_legacy_relationship_fallback(self) -> None:
        link_def = LinkDef(from_agent="a", to_agent="b", relationship="superior")
        assert link_def.kind_value == "superior"
        assert link_def.kind_field == "relationship"

    def test_kind_wins_over_relationship(self) -> None:
        link_def = LinkDef(from_agent="a", to_agent="b", kind="peer", relationship="superior")
        assert link_def.kind_value == "peer"
        assert link_def.kind_field == "kind"

    def test_values_are_not_parsed_here(self) -> None:
        """Bad direction strings are rejected later, with link context."""
        link_def = LinkDef(from_agent="a", to_agent="b", direction="sideways")
        assert link_def.direction == "sideways"


class TestStoreAndCompaction:
    """Tests for store and compaction sections."""

    def test_max_workers_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            StoreConfig(max_workers=0)

    def test_window_must_exceed_keep_recent(self) -> None:
        with pytest.raises(ValidationError):
            CompactionConfig(keep_recent=10, window=10)

    def test_keep_recent_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            CompactionConfig(keep_recent=0, window=10)
