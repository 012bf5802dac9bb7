"""Tests for configuration loading and validation."""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from regsuite.core import config as config_module
from regsuite.core.config import ConfigManager, _convert_env_value, get_config, load_env_overrides
from regsuite.core.enums import TestStatus
from regsuite.core.errors import ConfigurationError
from regsuite.core.types import DEFAULT_EXTENSIONS, JdkInfo, RegsuiteConfig


class TestRegsuiteConfig:
    """Test RegsuiteConfig validation."""

    def test_defaults(self):
        """Test default values."""
        config = RegsuiteConfig()
        assert config.suite_root is None
        assert config.allowed_extensions == DEFAULT_EXTENSIONS
        assert config.time_limit == 0
        assert config.check_bug_ids is True
        assert config.log_level == "INFO"

    def test_extensions_get_a_dot(self):
        """Test extensions are normalized."""
        config = RegsuiteConfig(allowed_extensions=["java", ".sh"])
        assert config.allowed_extensions == [".java", ".sh"]

    @pytest.mark.parametrize("kwargs, message", [
        ({"time_limit": -1}, "Time limit"),
        ({"allowed_extensions": []}, "extension"),
        ({"prior_status": ["failed"]}, "prior_status_file"),
        ({"log_level": "LOUD"}, "Unknown log level"),
    ])
    def test_invalid(self, kwargs, message):
        """Test invalid combinations are rejected."""
        with pytest.raises(ConfigurationError, match=message):
            RegsuiteConfig(**kwargs)

    def test_prior_status(self, temp_dir):
        """Test prior status names become enum values."""
        config = RegsuiteConfig(prior_status=["failed", "error"], prior_status_file=temp_dir / "s.yml")
        assert config.prior_status == [TestStatus.FAILED, TestStatus.ERROR]


class TestJdkInfo:
    """Test JDK version facts."""

    @pytest.mark.parametrize("spec, major", [
        ("1.8", 8),
        ("11", 11),
        ("17.0.2", 17),
        ("", 0),
        ("bogus", 0),
    ])
    def test_major_version(self, spec, major):
        """Test the feature release number."""
        assert JdkInfo(properties={"java.specification.version": spec}).major_version == major

    def test_has_modules(self):
        """Test module support needs JDK 9 and a module list."""
        props = {"java.specification.version": "11"}
        assert JdkInfo(properties=props, installed_modules=["java.base"]).has_modules
        assert not JdkInfo(properties=props).has_modules
        assert not JdkInfo(properties={"java.specification.version": "1.8"},
                           installed_modules=["java.base"]).has_modules


class TestEnvValues:
    """Test conversion of environment values."""

    @pytest.mark.parametrize("raw, expected", [
        ("", None),
        ("42", 42),
        ("1.5", 1.5),
        ("true", True),
        ("Off", False),
        ("a, b,c", ["a", "b", "c"]),
        ("plain", "plain"),
    ])
    def test_convert(self, raw, expected):
        """Test type inference."""
        assert _convert_env_value(raw) == expected

    def test_overrides(self, isolated_environment):
        """Test prefixed variables become fields and sections."""
        os.environ.update({
            "REGSUITE_TIME_LIMIT": "120",
            "REGSUITE_JDK__VM_OPTIONS": "-Xint,-Xcomp",
            "REGSUITE_A__B__C": "ignored",
            "OTHER_VALUE": "1",
        })
        assert load_env_overrides() == {
            "time_limit": 120,
            "jdk": {"vm_options": ["-Xint", "-Xcomp"]},
        }


class TestConfigManager:
    """Test ConfigManager functionality."""

    def setup_method(self):
        """Set up test environment."""
        self.manager = ConfigManager()

    def write(self, path: Path, text: str) -> Path:
        path.write_text(text, encoding="utf-8")
        return path

    def test_precedence(self, temp_dir, isolated_environment):
        """Test CLI overrides beat environment beats file."""
        config_file = self.write(temp_dir / "regsuite.yml", (
            "time_limit: 10\n"
            "keywords: '!manual'\n"
            "check_bug_ids: false\n"
            "jdk:\n"
            "  properties:\n"
            "    java.specification.version: '17'\n"
        ))
        os.environ["REGSUITE_TIME_LIMIT"] = "20"
        os.environ["REGSUITE_KEYWORDS"] = "!headful"

        config = self.manager.load_config(config_file=config_file, keywords="!ignore", log_file=None)

        assert config.time_limit == 20
        assert config.keywords == "!ignore"
        assert config.check_bug_ids is False
        assert config.jdk.major_version == 17

    def test_nested_sections_merge(self, temp_dir, isolated_environment):
        """Test environment values merge into a file section."""
        config_file = self.write(temp_dir / "regsuite.yaml", "jdk:\n  vm_options: [-Xint]\n  properties: {a: b}\n")
        os.environ["REGSUITE_JDK__VM_OPTIONS"] = "-Xcomp,-Xmx1g"
        config = self.manager.load_config(config_file=config_file)
        assert config.jdk.vm_options == ["-Xcomp", "-Xmx1g"]
        assert config.jdk.properties == {"a": "b"}

    def test_missing_file(self, temp_dir):
        """Test a config file that does not exist."""
        with pytest.raises(ConfigurationError, match="not found"):
            self.manager.load_config(config_file=temp_dir / "nope.yml")

    def test_unsupported_format(self, temp_dir):
        """Test only YAML is accepted."""
        config_file = self.write(temp_dir / "regsuite.toml", "time_limit = 1\n")
        with pytest.raises(ConfigurationError, match="Unsupported config file format"):
            self.manager.load_config(config_file=config_file)

    def test_malformed_yaml(self, temp_dir):
        """Test YAML syntax errors."""
        config_file = self.write(temp_dir / "regsuite.yml", "time_limit: [1\n")
        with pytest.raises(ConfigurationError, match="Failed to load"):
            self.manager.load_config(config_file=config_file)

    def test_non_mapping(self, temp_dir):
        """Test a YAML document that is not a mapping."""
        config_file = self.write(temp_dir / "regsuite.yml", "- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            self.manager.load_config(config_file=config_file)

    def test_get_config_loads_once(self, isolated_environment):
        """Test get_config caches the loaded config."""
        first = self.manager.get_config()
        assert self.manager.get_config() is first

    def test_global_manager(self, isolated_environment):
        """Test the module-level helpers share one manager."""
        with patch.object(config_module, "_config_manager", ConfigManager()):
            assert get_config() is get_config()
