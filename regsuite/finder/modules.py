"""``@modules`` entries: ``module[/package[:modifier,...]]``."""

from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple

from ..core.errors import ModuleSpecError

MODIFIERS = ("open", "private", "+open")


def is_dotted_name(name: str) -> bool:
    """True for a qualified identifier such as ``java.base`` or ``jdk.internal.misc``."""
    return all(part.isidentifier() for part in name.split("."))


@dataclass(frozen=True)
class ModuleSpec:
    """One parsed ``@modules`` item.

    A bare module name requests nothing beyond the module. Naming a package
    exports it unless modifiers say otherwise: ``open`` and ``private`` open
    the package without exporting it, ``+open`` does both.
    """

    module: str
    package: Optional[str] = None
    add_exports: bool = False
    add_opens: bool = False

    @classmethod
    def parse(cls, text: str) -> "ModuleSpec":
        """Parse a single item.

        Raises:
            ModuleSpecError: on a bad modifier or an invalid module or package name
        """
        package = None
        add_exports = add_opens = False

        module, slash, rest = text.partition("/")
        if slash:
            package, colon, modifiers = rest.partition(":")
            if not colon:
                add_exports = True
            else:
                for modifier in modifiers.split(","):
                    if modifier in ("open", "private"):
                        add_opens = True
                    elif modifier == "+open":
                        add_exports = add_opens = True
                    else:
                        raise ModuleSpecError(f"bad modifier: {modifier}")

        if not is_dotted_name(module):
            raise ModuleSpecError(f"invalid module name: {module}")
        if package is not None and not is_dotted_name(package):
            raise ModuleSpecError(f"invalid package name: {package}")
        return cls(module, package, add_exports, add_opens)

    def __str__(self) -> str:
        if self.package is None:
            return self.module
        text = f"{self.module}/{self.package}"
        if self.add_opens:
            text += ":+open" if self.add_exports else ":open"
        return text


def parse_modules(value: Optional[str]) -> Tuple[ModuleSpec, ...]:
    """Parse a whitespace-separated ``@modules`` value, dropping duplicates."""
    if not value:
        return ()
    specs = []
    for item in value.split():
        spec = ModuleSpec.parse(item)
        if spec not in specs:
            specs.append(spec)
    return tuple(specs)


def module_names(specs: Iterable[ModuleSpec]) -> Iterator[str]:
    seen = set()
    for spec in specs:
        if spec.module not in seen:
            seen.add(spec.module)
            yield spec.module
