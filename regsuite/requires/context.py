"""Name/value tables that requirement expressions evaluate against."""

from typing import AbstractSet, Dict, Iterable, Iterator, Mapping, Optional, Tuple

from ..core.errors import ExprFault
from .expr import VM_OPT_PREFIX
from .host import OSInfo

ERROR_MARKER = "__ERROR__"
DEFAULT_ERROR_REASON = "error determining value"
NULL = "null"

_XX = "-XX:"
_XX_ON = _XX + "+"
_XX_OFF = _XX + "-"
_GC_PREFIX = _XX_ON + "Use"
_GC_SUFFIX = "GC"
_COMP_MODES = {"-Xint": "Xint", "-Xmixed": "Xmixed", "-Xcomp": "Xcomp"}


def error_value(reason: str = "") -> str:
    """Value that makes any expression referencing the name fault with ``reason``."""
    return f"{ERROR_MARKER} {reason}".rstrip()


def jdk_version(properties: Mapping[str, str]) -> Tuple[str, str]:
    """``(jdk.version, jdk.version.major)`` from a JDK's specification version."""
    spec = properties.get("java.specification.version")
    if not spec:
        return "unknown", "0"
    head = spec[2:] if spec.startswith("1.") else spec
    major = head.split(".")[0]
    if not major.isdigit():
        return "unknown", "0"
    return spec, str(int(major))


def vm_option_facts(vm_options: Iterable[str]) -> Dict[str, str]:
    """Facts derived from effective VM options. Later options override earlier ones."""
    gc: Optional[str] = None
    comp_mode: Optional[str] = None
    flags: Dict[str, str] = {}
    props: Dict[str, str] = {}

    for opt in vm_options:
        if opt in _COMP_MODES:
            comp_mode = _COMP_MODES[opt]
        elif opt.startswith(_GC_PREFIX) and opt.endswith(_GC_SUFFIX) and len(opt) > len(_GC_PREFIX + _GC_SUFFIX):
            gc = opt[len(_GC_PREFIX):-len(_GC_SUFFIX)]
            flags[opt[len(_XX_ON):]] = "true"
        elif opt.startswith(_XX_ON):
            flags[opt[len(_XX_ON):]] = "true"
        elif opt.startswith(_XX_OFF):
            flags[opt[len(_XX_OFF):]] = "false"
        elif opt.startswith(_XX):
            name, sep, value = opt[len(_XX):].partition("=")
            if sep and name:
                props[name] = value

    facts = {
        "vm.flavor": NULL,
        "vm.bits": NULL,
        "vm.gc": gc or NULL,
        "vm.compMode": comp_mode or NULL,
    }
    for name, value in flags.items():
        facts.setdefault(VM_OPT_PREFIX + name, value)
    for name, value in props.items():
        facts.setdefault(VM_OPT_PREFIX + name, value)
    return facts


class ExprContext(Mapping[str, str]):
    """Ordered name to value mapping, optionally restricting the legal names.

    A context with ``valid_names=None`` accepts every name. A restricted
    context (see ``restricted``) shares the values of its base and only
    admits names it already defines, the ``vm.opt.*`` family and the
    suite-declared property names.
    """

    def __init__(self, values: Mapping[str, str], valid_names: Optional[AbstractSet[str]] = None) -> None:
        self._values: Dict[str, str] = dict(values)
        self._valid_names = frozenset(valid_names) if valid_names is not None else None

    @classmethod
    def build(
        cls,
        jdk_properties: Optional[Mapping[str, str]] = None,
        vm_options: Iterable[str] = (),
        test_thread_factory: Optional[str] = None,
        os_info: Optional[OSInfo] = None,
        extra: Optional[Mapping[str, str]] = None,
    ) -> "ExprContext":
        """Populate a full context for one run configuration.

        Order: the ``null`` constant, JDK properties, synthesized
        ``jdk.version``/``jdk.version.major``, OS facts, the test thread
        factory, then VM-option facts which never override an earlier value.
        ``extra`` entries are applied last and do override.
        """
        jdk_properties = dict(jdk_properties or {})
        values: Dict[str, str] = {NULL: NULL}
        values.update(jdk_properties)

        version, major = jdk_version(jdk_properties)
        values["jdk.version"] = version
        values["jdk.version.major"] = major

        info = os_info or OSInfo.from_properties(jdk_properties)
        values.update(info.as_properties())
        values["test.thread.factory"] = test_thread_factory or NULL

        for name, value in vm_option_facts(vm_options).items():
            values.setdefault(name, value)

        if extra:
            values.update(extra)
        return cls(values)

    def restricted(self, valid_names: AbstractSet[str]) -> "ExprContext":
        """Names-only view of this context for parse-time validation."""
        view = ExprContext.__new__(ExprContext)
        view._values = self._values
        view._valid_names = frozenset(valid_names)
        return view

    def is_valid_name(self, name: str) -> bool:
        if self._valid_names is None:
            return True
        return (
            name in self._values
            or name.startswith(VM_OPT_PREFIX)
            or name in self._valid_names
        )

    def get(self, name: str, default: Optional[str] = None) -> str:  # type: ignore[override]
        """Resolve ``name``; undefined names read as ``"null"``.

        Raises:
            ExprFault: if the value was recorded as an error marker
        """
        value = self._values.get(name)
        if value is None:
            return NULL if default is None else default
        if value.startswith(ERROR_MARKER):
            reason = value[len(ERROR_MARKER):].strip() or DEFAULT_ERROR_REASON
            raise ExprFault(f"{name}: {reason}")
        return value

    def __getitem__(self, name: str) -> str:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ExprContext({self._values!r})"
