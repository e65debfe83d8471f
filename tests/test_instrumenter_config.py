"""Tests for instrumenter configuration."""

import json

import pytest

from instrumenter.config import (
    DEFAULT_INSTRUMENTER_CONFIG,
    DISABLED_INSTRUMENTER_CONFIG,
    TESTING_INSTRUMENTER_CONFIG,
    EnvReader,
    InstrumentationScope,
    InstrumenterConfig,
    load_config_file,
    require_valid_config,
    validate_config,
)
from instrumenter.exceptions import InstrumenterConfigurationError, InvalidConfigValueError


class TestEnvReader:
    """Tests for EnvReader."""

    def test_prefix(self, monkeypatch):
        """Test that names are prefixed."""
        monkeypatch.setenv("INSTRUMENTER_SCOPE_NAME", "svc")
        assert EnvReader().get("SCOPE_NAME") == "svc"
        assert EnvReader("OTHER").get("SCOPE_NAME") is None

    def test_no_prefix(self, monkeypatch):
        """Test reading without a prefix."""
        monkeypatch.setenv("PLAIN_NAME", "value")
        assert EnvReader("").get("PLAIN_NAME") == "value"

    @pytest.mark.parametrize("value", ["1", "true", "YES", "on"])
    def test_get_bool_true(self, monkeypatch, value):
        """Test truthy boolean values."""
        monkeypatch.setenv("INSTRUMENTER_FLAG", value)
        assert EnvReader().get_bool("FLAG") is True

    @pytest.mark.parametrize("value", ["0", "false", "No", "OFF"])
    def test_get_bool_false(self, monkeypatch, value):
        """Test falsy boolean values."""
        monkeypatch.setenv("INSTRUMENTER_FLAG", value)
        assert EnvReader().get_bool("FLAG") is False

    def test_get_bool_invalid(self, monkeypatch):
        """Test that unparseable booleans raise."""
        monkeypatch.setenv("INSTRUMENTER_FLAG", "maybe")
        with pytest.raises(InvalidConfigValueError) as exc_info:
            EnvReader().get_bool("FLAG")
        assert exc_info.value.config_key == "INSTRUMENTER_FLAG"
        assert exc_info.value.value == "maybe"

    def test_get_bool_default(self):
        """Test the default for unset booleans."""
        assert EnvReader("UNSET_PREFIX").get_bool("FLAG", default=True) is True

    def test_get_list(self, monkeypatch):
        """Test list parsing drops blanks."""
        monkeypatch.setenv("INSTRUMENTER_ITEMS", "a, b,,c ")
        assert EnvReader().get_list("ITEMS") == ["a", "b", "c"]
        assert EnvReader().get_list("MISSING", default=["x"]) == ["x"]


class TestInstrumentationScope:
    """Tests for InstrumentationScope."""

    def test_default_values(self):
        """Test default scope values."""
        scope = InstrumentationScope()
        assert scope.name == "instrumenter"
        assert scope.version is None
        assert scope.schema_url is None

    def test_with_methods(self):
        """Test the builder-style updates."""
        scope = InstrumentationScope()
        updated = scope.with_name("http").with_version("1.0").with_schema_url("https://x")
        assert updated == InstrumentationScope("http", "1.0", "https://x")
        assert scope.name == "instrumenter"  # Immutable

    def test_to_dict(self):
        """Test serialization."""
        assert InstrumentationScope("http", "1.0").to_dict() == {
            "name": "http",
            "version": "1.0",
            "schema_url": None,
        }


class TestInstrumenterConfig:
    """Tests for InstrumenterConfig."""

    def test_default_values(self):
        """Test default configuration values."""
        config = InstrumenterConfig()
        assert config.enabled is True
        assert config.disabled_instrumentations == frozenset()
        assert config.default_span_name == "unknown"
        assert config.propagators == ("tracecontext", "baggage")
        assert config.metrics_enabled is True

    def test_is_instrumentation_enabled(self):
        """Test per-instrumentation switches."""
        config = InstrumenterConfig().with_disabled("GRPC")
        assert config.is_instrumentation_enabled("grpc") is False
        assert config.is_instrumentation_enabled("Grpc") is False
        assert config.is_instrumentation_enabled("nethttp") is True
        assert config.with_enabled(False).is_instrumentation_enabled("nethttp") is False

    def test_with_disabled_accumulates(self):
        """Test that disabled names accumulate."""
        config = InstrumenterConfig().with_disabled("a").with_disabled("b", "c")
        assert config.disabled_instrumentations == frozenset({"a", "b", "c"})

    def test_chaining(self):
        """Test chaining builder-style updates."""
        config = (
            InstrumenterConfig()
            .with_scope_name("svc")
            .with_default_span_name("op")
            .with_propagators("b3")
            .with_metrics_enabled(False)
        )
        assert config.scope.name == "svc"
        assert config.default_span_name == "op"
        assert config.propagators == ("b3",)
        assert config.metrics_enabled is False

    def test_round_trip_dict(self):
        """Test to_dict/from_dict."""
        config = InstrumenterConfig().with_disabled("grpc").with_scope(
            InstrumentationScope("svc", "2.0")
        )
        assert InstrumenterConfig.from_dict(config.to_dict()) == config

    def test_from_dict_defaults(self):
        """Test that missing keys use defaults."""
        assert InstrumenterConfig.from_dict({}) == InstrumenterConfig()

    def test_from_env(self, monkeypatch):
        """Test loading from environment variables."""
        monkeypatch.setenv("INSTRUMENTER_ENABLED", "true")
        monkeypatch.setenv("INSTRUMENTER_DISABLED_INSTRUMENTATIONS", "grpc, NetHTTP")
        monkeypatch.setenv("INSTRUMENTER_SCOPE_NAME", "svc")
        monkeypatch.setenv("INSTRUMENTER_SCOPE_VERSION", "3.1")
        monkeypatch.setenv("INSTRUMENTER_DEFAULT_SPAN_NAME", "op")
        monkeypatch.setenv("INSTRUMENTER_PROPAGATORS", "tracecontext")
        monkeypatch.setenv("INSTRUMENTER_METRICS_ENABLED", "0")

        config = InstrumenterConfig.from_env()

        assert config.disabled_instrumentations == frozenset({"grpc", "nethttp"})
        assert config.scope == InstrumentationScope("svc", "3.1")
        assert config.default_span_name == "op"
        assert config.propagators == ("tracecontext",)
        assert config.metrics_enabled is False

    def test_from_file_json(self, tmp_path):
        """Test loading from a JSON file."""
        path = tmp_path / "instrumenter.json"
        path.write_text(json.dumps({"enabled": False, "scope": {"name": "svc"}}))

        config = InstrumenterConfig.from_file(path)

        assert config.enabled is False
        assert config.scope.name == "svc"

    def test_from_file_yaml(self, tmp_path):
        """Test loading from a YAML file."""
        pytest.importorskip("yaml")
        path = tmp_path / "instrumenter.yaml"
        path.write_text("disabled_instrumentations:\n  - grpc\ndefault_span_name: op\n")

        config = InstrumenterConfig.from_file(path)

        assert config.disabled_instrumentations == frozenset({"grpc"})
        assert config.default_span_name == "op"

    def test_load_overlays_environment(self, tmp_path, monkeypatch):
        """Test that set environment variables override file values."""
        path = tmp_path / "instrumenter.json"
        path.write_text(json.dumps({
            "disabled_instrumentations": ["grpc"],
            "default_span_name": "file-op",
            "metrics_enabled": True,
        }))
        monkeypatch.setenv("INSTRUMENTER_DISABLED_INSTRUMENTATIONS", "nethttp")
        monkeypatch.setenv("INSTRUMENTER_METRICS_ENABLED", "off")

        config = InstrumenterConfig.load(path)

        assert config.disabled_instrumentations == frozenset({"grpc", "nethttp"})
        assert config.default_span_name == "file-op"
        assert config.metrics_enabled is False


class TestLoadConfigFile:
    """Tests for load_config_file."""

    def test_missing_file(self, tmp_path):
        """Test that a missing file raises."""
        with pytest.raises(InstrumenterConfigurationError):
            load_config_file(tmp_path / "missing.json")

    def test_unsupported_format(self, tmp_path):
        """Test that unknown suffixes raise."""
        path = tmp_path / "config.toml"
        path.write_text("")
        with pytest.raises(InstrumenterConfigurationError) as exc_info:
            load_config_file(path)
        assert exc_info.value.details["suffix"] == ".toml"

    def test_invalid_json(self, tmp_path):
        """Test that malformed JSON raises with the cause attached."""
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(InstrumenterConfigurationError) as exc_info:
            load_config_file(path)
        assert isinstance(exc_info.value.cause, json.JSONDecodeError)

    def test_non_mapping(self, tmp_path):
        """Test that a non-mapping document yields an empty dict."""
        path = tmp_path / "config.json"
        path.write_text("[1, 2]")
        assert load_config_file(path) == {}


class TestValidation:
    """Tests for configuration validation."""

    def test_valid(self):
        """Test that the default config is valid."""
        assert validate_config(InstrumenterConfig()) == []
        require_valid_config(InstrumenterConfig())

    def test_issues(self):
        """Test that every issue is reported."""
        config = InstrumenterConfig(
            scope=InstrumentationScope(name=""),
            default_span_name="",
            propagators=("tracecontext", "zipkin"),
        )
        issues = validate_config(config)
        assert len(issues) == 3
        assert any("zipkin" in issue for issue in issues)

    def test_require_valid_raises(self):
        """Test that require_valid_config raises with the issues attached."""
        with pytest.raises(InstrumenterConfigurationError) as exc_info:
            require_valid_config(InstrumenterConfig(default_span_name=""))
        assert exc_info.value.details["issues"]


class TestPresetConfigurations:
    """Tests for preset configurations."""

    def test_default_config(self):
        """Test the default preset."""
        assert DEFAULT_INSTRUMENTER_CONFIG == InstrumenterConfig()

    def test_disabled_config(self):
        """Test the disabled preset."""
        assert DISABLED_INSTRUMENTER_CONFIG.enabled is False
        assert DISABLED_INSTRUMENTER_CONFIG.metrics_enabled is False

    def test_testing_config(self):
        """Test the testing preset."""
        assert TESTING_INSTRUMENTER_CONFIG.scope.name == "instrumenter.testing"
        assert TESTING_INSTRUMENTER_CONFIG.default_span_name == "test-operation"
