"""Tests for expression contexts and host facts."""

import pytest
from unittest.mock import patch

from regsuite.core.errors import ExprFault
from regsuite.requires.context import (
    ExprContext,
    error_value,
    jdk_version,
    vm_option_facts,
)
from regsuite.requires.host import OSInfo, os_family, simple_arch, simple_version


class TestHostFacts:
    """Test derived operating-system facts."""

    @pytest.mark.parametrize(
        "name,family",
        [
            ("Linux", "linux"),
            ("Mac OS X", "mac"),
            ("Darwin", "mac"),
            ("SunOS", "solaris"),
            ("Windows 11", "windows"),
            ("FreeBSD 14", "FreeBSD"),
        ],
    )
    def test_os_family(self, name, family):
        """Test family names."""
        assert os_family(name) == family

    @pytest.mark.parametrize(
        "arch,simple",
        [("amd64", "x64"), ("x86_64", "x64"), ("i386", "i586"), ("ppc", "ppc"),
         ("ppc64", "ppc64"), ("ia64", "ia64"), ("sparc", "sparc")],
    )
    def test_simple_arch(self, arch, simple):
        """Test architecture simplification."""
        assert simple_arch(arch) == simple

    def test_simple_version(self):
        """Test major.minor extraction."""
        assert simple_version("5.15.0-91-generic") == "5.15"
        assert simple_version("10") == "10.0"
        assert simple_version("unknown") == "99.99"

    def test_as_properties(self, linux_host):
        """Test the os.* names."""
        props = linux_host.as_properties()
        assert props["os.family"] == "linux"
        assert props["os.simpleArch"] == "x64"
        assert props["os.simpleVersion"] == "5.15"
        assert props["os.processors"] == "8"
        assert props["os.maxMemory"] == str(16 * 1024 ** 3)

    def test_from_properties_prefers_jdk_values(self):
        """Test name/arch/version come from the JDK when it reports them."""
        with patch("regsuite.requires.host.psutil") as mock_psutil:
            mock_psutil.cpu_count.return_value = 2
            mock_psutil.virtual_memory.return_value.total = 1024
            mock_psutil.swap_memory.return_value.total = 0
            info = OSInfo.from_properties(
                {"os.name": "Windows 10", "os.arch": "x86", "os.version": "10.0"}
            )
        assert info.family == "windows"
        assert info.simple_arch == "i586"
        assert info.processors == 2
        assert info.max_memory == 1024


class TestJdkFacts:
    """Test facts derived from JDK properties and VM options."""

    def test_jdk_version(self):
        """Test major version for old and new numbering."""
        assert jdk_version({"java.specification.version": "17"}) == ("17", "17")
        assert jdk_version({"java.specification.version": "1.8"}) == ("1.8", "8")
        assert jdk_version({}) == ("unknown", "0")

    def test_vm_option_facts(self):
        """Test GC, compilation mode and -XX flags."""
        facts = vm_option_facts(
            ["-XX:+UseG1GC", "-Xcomp", "-XX:-TieredCompilation", "-XX:MaxRAM=1g"]
        )
        assert facts["vm.gc"] == "G1"
        assert facts["vm.compMode"] == "Xcomp"
        assert facts["vm.opt.UseG1GC"] == "true"
        assert facts["vm.opt.TieredCompilation"] == "false"
        assert facts["vm.opt.MaxRAM"] == "1g"

    def test_later_option_wins(self):
        """Test the last GC option decides."""
        facts = vm_option_facts(["-XX:+UseSerialGC", "-XX:+UseZGC"])
        assert facts["vm.gc"] == "Z"

    def test_unset_facts_are_null(self):
        """Test defaults without options."""
        facts = vm_option_facts([])
        assert facts["vm.gc"] == "null"
        assert facts["vm.compMode"] == "null"


class TestExprContext:
    """Test ExprContext construction and lookup."""

    def test_build(self, linux_host):
        """Test the populated names."""
        context = ExprContext.build(
            jdk_properties={"java.specification.version": "21"},
            vm_options=["-XX:+UseParallelGC"],
            os_info=linux_host,
        )
        assert context.get("jdk.version.major") == "21"
        assert context.get("os.family") == "linux"
        assert context.get("vm.gc") == "Parallel"
        assert context.get("test.thread.factory") == "null"
        assert context.get("null") == "null"

    def test_jdk_property_beats_vm_option(self, linux_host):
        """Test VM-option facts never override a reported value."""
        context = ExprContext.build(
            jdk_properties={"vm.gc": "Shenandoah"},
            vm_options=["-XX:+UseG1GC"],
            os_info=linux_host,
        )
        assert context.get("vm.gc") == "Shenandoah"

    def test_extra_overrides(self, linux_host):
        """Test extra entries are applied last."""
        context = ExprContext.build(os_info=linux_host, extra={"os.family": "mac"})
        assert context.get("os.family") == "mac"

    def test_undefined_is_null(self):
        """Test lookup of an unknown name."""
        assert ExprContext({}).get("nope") == "null"

    def test_error_marker_raises(self):
        """Test a recorded error surfaces as a fault."""
        context = ExprContext({"vm.cds": error_value("timed out")})
        with pytest.raises(ExprFault, match="vm.cds: timed out"):
            context.get("vm.cds")

    def test_error_marker_without_reason(self):
        """Test the default reason."""
        context = ExprContext({"vm.cds": error_value()})
        with pytest.raises(ExprFault, match="error determining value"):
            context.get("vm.cds")

    def test_restricted_names(self):
        """Test the parse-time view of a context."""
        base = ExprContext({"os.family": "linux"})
        view = base.restricted({"custom.prop"})
        assert base.is_valid_name("anything") is True
        assert view.is_valid_name("os.family") is True
        assert view.is_valid_name("vm.opt.UseZGC") is True
        assert view.is_valid_name("custom.prop") is True
        assert view.is_valid_name("other.prop") is False
        assert view.get("os.family") == "linux"

    def test_mapping_protocol(self):
        """Test ExprContext behaves as a read-only mapping."""
        context = ExprContext({"a": "1", "b": "2"})
        assert dict(context) == {"a": "1", "b": "2"}
        assert len(context) == 2
        assert context["a"] == "1"
