"""Tests for the run context."""

from pathlib import Path

import pytest

from regsuite.core.context import RunContext
from regsuite.core.errors import ConfigurationError, ExcludeListError, GroupError
from regsuite.core.types import RegsuiteConfig

PLAIN = """\
/* @test
 * @summary Plain test.
 */
class A {}
"""

MAC_ONLY = """\
/* @test
 * @requires os.family == "mac"
 */
class Mac {}
"""

SLOW = """\
/* @test
 * @key slow
 * @run main/timeout=600 S
 */
class S {}
"""


@pytest.fixture
def suite(temp_dir, write_files):
    return write_files(temp_dir, {
        "TEST.ROOT": "keys=slow\ngroups=TEST.groups\n",
        "TEST.groups": "quick = fast\n",
        "fast/A.java": PLAIN,
        "fast/Mac.java": MAC_ONLY,
        "slow/S.java": SLOW,
    })


def urls(descriptions):
    return sorted(d.url for d in descriptions)


class TestRunContext:
    """Test RunContext creation and selection."""

    def setup_method(self):
        """Set up test environment."""
        self.errors = []

    def test_requires_suite_root(self):
        """Test a config without a suite root is rejected."""
        with pytest.raises(ConfigurationError, match="suite_root"):
            RunContext.create(RegsuiteConfig())

    def test_select_whole_suite(self, suite):
        """Test default selection on a Linux host."""
        ctx = RunContext.for_testing(suite, error_sink=self.errors.append)
        result = ctx.select()

        assert urls(result.selected) == ["fast/A.java", "slow/S.java"]
        assert urls(result.rejected["RequiresFilter"]) == ["fast/Mac.java"]
        assert result.total == 3
        assert self.errors == []

    def test_host_facts_from_for_testing(self, suite):
        """Test fixed host facts are used."""
        ctx = RunContext.for_testing(suite)
        assert ctx.os_info.name == "Linux"
        assert ctx.context["os.family"] == "linux"

    def test_filter_order(self, suite):
        """Test filters follow the evaluation order."""
        config = RegsuiteConfig(suite_root=suite, time_limit=60, keywords="!slow")
        ctx = RunContext.for_testing(
            suite,
            config=config,
            jdk_properties={"java.specification.version": "17"},
            installed_modules=["java.base"],
        )
        assert [f.name for f in ctx.chain] == [
            "ModulesFilter",
            "RequiresFilter",
            "TimeLimitFilter",
            "KeywordsFilter",
        ]
        result = ctx.select()
        assert urls(result.rejected["TimeLimitFilter"]) == ["slow/S.java"]
        assert "KeywordsFilter" not in result.rejected

    def test_no_modules_filter_before_jdk9(self, suite):
        """Test module checks need a modular JDK."""
        ctx = RunContext.for_testing(
            suite,
            jdk_properties={"java.specification.version": "1.8"},
            installed_modules=["java.base"],
        )
        assert ctx.chain.find("ModulesFilter") is None

    def test_config_jdk_is_merged(self, suite):
        """Test keyword arguments override the configured JDK."""
        config = RegsuiteConfig(suite_root=suite, jdk={"properties": {"a": "1", "b": "2"}, "vm_options": ["-Xint"]})
        ctx = RunContext.for_testing(suite, config=config, jdk_properties={"b": "3"})
        assert ctx.jdk.properties == {"a": "1", "b": "3"}
        assert ctx.jdk.vm_options == ["-Xint"]

    def test_select_group(self, suite):
        """Test selecting by group."""
        ctx = RunContext.for_testing(suite)
        result = ctx.select(groups=["quick"])
        assert urls(result.selected) == ["fast/A.java"]
        assert result.total == 2

    def test_group_and_paths(self, suite):
        """Test paths are narrowed to the group."""
        ctx = RunContext.for_testing(suite)
        assert ctx.scan(paths=[Path("slow")], groups=["quick"]) == []
        assert urls(ctx.scan(paths=[Path("fast")], groups=["quick"])) == ["fast/A.java", "fast/Mac.java"]

    def test_unknown_group(self, suite):
        """Test an unknown group name."""
        ctx = RunContext.for_testing(suite)
        with pytest.raises(GroupError):
            ctx.scan(groups=["nope"])

    def test_clear_caches(self, suite):
        """Test caches are dropped and groups reloaded."""
        ctx = RunContext.for_testing(suite)
        first = ctx.groups
        ctx.select()
        assert len(ctx.expressions) > 0

        ctx.clear_caches()

        assert len(ctx.expressions) == 0
        assert len(ctx.faults) == 0
        assert ctx.groups is not first

    def test_exclude_list_filter(self, suite):
        """Test listed tests are rejected by the exclude list filter."""
        problems = suite / "ProblemList.txt"
        problems.write_text("slow/S.java JDK-8000001\n")
        config = RegsuiteConfig(suite_root=suite, exclude_lists=[problems])
        result = RunContext.for_testing(suite, config=config).select()
        assert urls(result.rejected["ExcludeListFilter"]) == ["slow/S.java"]

    def test_missing_exclude_list(self, suite):
        """Test a missing list file is reported as a list error."""
        config = RegsuiteConfig(suite_root=suite, exclude_lists=[suite / "missing.txt"])
        with pytest.raises(ExcludeListError, match="Cannot read list"):
            RunContext.for_testing(suite, config=config)

    def test_missing_group_file_reported(self, temp_dir, write_files):
        """Test an unreadable group file is reported and its groups skipped."""
        write_files(temp_dir, {
            "TEST.ROOT": "groups=TEST.groups other.groups\n",
            "TEST.groups": "quick = fast\n",
            "fast/A.java": PLAIN,
        })
        ctx = RunContext.for_testing(temp_dir, error_sink=self.errors.append)
        assert ctx.groups.names() == {"quick"}
        assert [e for e in self.errors if "other.groups" in e]
