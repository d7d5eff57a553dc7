"""Read-only registry queries.

Two lookups drive a deployment:

- enumerate-and-match: scan the "installed programs" inventories for the
  uninstall entry of a product code (used for preamble uninstalls)
- key/value lookup: read one value under HKLM and compare it with a required
  version (used for prerequisite checks)

Both work against the RegistryReader interface so they can run against the
real registry (WindowsRegistry) or any other implementation.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from .config import PrereqAccessPolicy
from .errors import RegistryAccessError, RegistryKeyNotFoundError
from .manifest import PrereqEntry
from .versions import RegistryVersion

_logging = logging.getLogger(__name__)

HKLM = "HKLM"
HKCU = "HKCU"

_HIVE_ALIASES = {
    "HKLM": HKLM,
    "HKEY_LOCAL_MACHINE": HKLM,
    "HKCU": HKCU,
    "HKEY_CURRENT_USER": HKCU,
}

UNINSTALL_ROOTS = (
    rf"{HKLM}\SOFTWARE\Microsoft\Windows\CurrentVersion\Uninstall",
    rf"{HKLM}\SOFTWARE\WOW6432Node\Microsoft\Windows\CurrentVersion\Uninstall",
    rf"{HKCU}\Software\Microsoft\Windows\CurrentVersion\Uninstall",
)

IDENTIFYING_NUMBER_VALUE = "IdentifyingNumber"


def split_registry_path(path: str) -> tuple[str, str]:
    """Split ``HIVE\\sub\\key`` into a normalized hive name and subkey.

    Raises:
        ValueError: If the path does not start with a supported hive
    """
    hive, _, subkey = path.strip().strip("\\").partition("\\")
    normalized = _HIVE_ALIASES.get(hive.rstrip(":").upper())
    if normalized is None:
        raise ValueError(f"Unsupported registry hive in path: {path!r}")
    return normalized, subkey.strip("\\")


def join_registry_path(*parts: str) -> str:
    return "\\".join(p.strip("\\") for p in parts if p)


def normalize_product_code(raw: str) -> str:
    """Sanitise ``raw`` into the upper-case ``{GUID}`` form used by msiexec."""
    token = raw.strip().strip("\0")
    core = token.strip("{}")
    if not core:
        return ""
    return f"{{{core.upper()}}}"


class RegistryReader(Protocol):
    def list_subkeys(self, path: str) -> list[str]:
        """Return subkey names under ``path``.

        Raises RegistryKeyNotFoundError if the key is absent and
        RegistryAccessError if it cannot be opened.
        """
        ...

    def read_value(self, path: str, name: str) -> Any:
        """Return the data of value ``name`` under ``path``, or None if absent.

        Raises RegistryKeyNotFoundError if the key is absent and
        RegistryAccessError if it cannot be opened.
        """
        ...


def _is_under_uninstall_root(path: str) -> bool:
    hive, subkey = split_registry_path(path)
    candidate = join_registry_path(hive, subkey).lower()
    return any(
        candidate == root.lower() or candidate.startswith(root.lower() + "\\")
        for root in UNINSTALL_ROOTS
    )


class WindowsRegistry:
    """RegistryReader backed by :mod:`winreg`; keys are opened read-only.

    ``view`` selects the 32- or 64-bit registry view for prerequisite
    lookups. Keys under the uninstall roots are always opened in the 64-bit
    view: the roots name WOW6432Node explicitly, and the 32-bit view would
    redirect the native root onto it.
    """

    def __init__(self, view: int = 64):
        try:
            import winreg
        except ImportError:
            raise RegistryAccessError("The Windows registry is not available on this platform")
        self._winreg = winreg
        self._hives = {
            HKLM: winreg.HKEY_LOCAL_MACHINE,
            HKCU: winreg.HKEY_CURRENT_USER,
        }
        view_flag = winreg.KEY_WOW64_32KEY if view == 32 else winreg.KEY_WOW64_64KEY
        self._access = winreg.KEY_READ | view_flag
        self._inventory_access = winreg.KEY_READ | winreg.KEY_WOW64_64KEY

    def _access_for(self, path: str) -> int:
        if _is_under_uninstall_root(path):
            return self._inventory_access
        return self._access

    def _open(self, path: str):
        hive, subkey = split_registry_path(path)
        try:
            return self._winreg.OpenKey(self._hives[hive], subkey, 0, self._access_for(path))
        except FileNotFoundError:
            raise RegistryKeyNotFoundError(f"Registry key not found: {path}")
        except OSError as e:
            raise RegistryAccessError(f"Cannot open registry key {path}: {e}") from e

    def list_subkeys(self, path: str) -> list[str]:
        names = []
        with self._open(path) as key:
            index = 0
            while True:
                try:
                    names.append(self._winreg.EnumKey(key, index))
                except OSError:
                    break
                index += 1
        return names

    def read_value(self, path: str, name: str) -> Any:
        with self._open(path) as key:
            try:
                value, _ = self._winreg.QueryValueEx(key, name)
            except FileNotFoundError:
                return None
            except OSError as e:
                raise RegistryAccessError(
                    f"Cannot read value '{name}' at {path}: {e}"
                ) from e
        return value


@dataclass(frozen=True)
class UninstallEntry:
    product_code: str
    key_path: str
    display_name: str | None = None


def _entry_product_code(registry: RegistryReader, key_path: str, subkey: str) -> str:
    try:
        identifying = registry.read_value(key_path, IDENTIFYING_NUMBER_VALUE)
    except RegistryAccessError as e:
        _logging.debug(f"Cannot read {IDENTIFYING_NUMBER_VALUE} at {key_path}: {e}")
        identifying = None
    if isinstance(identifying, str) and identifying.strip():
        return normalize_product_code(identifying)
    return normalize_product_code(subkey)


def find_uninstall_entry(
    registry: RegistryReader,
    product_identifier: str,
    roots: tuple[str, ...] = UNINSTALL_ROOTS,
) -> UninstallEntry | None:
    """Return the first uninstall entry matching ``product_identifier``.

    Roots are scanned in order and the first match wins. A root that is
    missing or cannot be opened is logged and skipped.
    """
    target = normalize_product_code(product_identifier)
    if not target:
        _logging.warning(f"Empty product identifier {product_identifier!r}")
        return None

    for root in roots:
        try:
            subkeys = registry.list_subkeys(root)
        except RegistryKeyNotFoundError:
            _logging.debug(f"Uninstall root not present: {root}")
            continue
        except RegistryAccessError as e:
            _logging.warning(f"Skipping uninstall root {root}: {e}")
            continue

        for subkey in subkeys:
            key_path = join_registry_path(root, subkey)
            if _entry_product_code(registry, key_path, subkey) != target:
                continue
            try:
                display_name = registry.read_value(key_path, "DisplayName")
            except RegistryAccessError:
                display_name = None
            _logging.debug(f"Found {target} at {key_path}")
            return UninstallEntry(
                product_code=target,
                key_path=key_path,
                display_name=display_name if isinstance(display_name, str) else None,
            )

    return None


class PrereqStatus(Enum):
    SATISFIED = "satisfied"
    NEEDS_INSTALL = "needs-install"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class PrereqCheck:
    status: PrereqStatus
    key_path: str
    installed_value: Any = None
    reason: str = ""

    @property
    def needs_install(self) -> bool:
        return self.status == PrereqStatus.NEEDS_INSTALL


def check_prereq(
    registry: RegistryReader,
    entry: PrereqEntry,
    policy: PrereqAccessPolicy = PrereqAccessPolicy.SKIP,
) -> PrereqCheck:
    """Decide whether a prerequisite has to be installed.

    An absent key or value, or a stored value strictly below the required
    one, means the prerequisite needs installing. A key that exists but
    cannot be read is resolved by ``policy``.
    """
    key_path = join_registry_path(HKLM, entry.registry_check_key)

    try:
        value = registry.read_value(key_path, entry.check_value_name)
    except RegistryKeyNotFoundError:
        return PrereqCheck(PrereqStatus.NEEDS_INSTALL, key_path, reason="key not found")
    except RegistryAccessError as e:
        _logging.warning(f"Cannot read prerequisite key {key_path}: {e}")
        if policy == PrereqAccessPolicy.INSTALL:
            return PrereqCheck(
                PrereqStatus.NEEDS_INSTALL, key_path, reason="key inaccessible; installing"
            )
        return PrereqCheck(PrereqStatus.SKIPPED, key_path, reason="key inaccessible; skipped")

    if value is None:
        return PrereqCheck(
            PrereqStatus.NEEDS_INSTALL,
            key_path,
            reason=f"value '{entry.check_value_name}' not found",
        )

    required = RegistryVersion(entry.required_value)
    try:
        installed = RegistryVersion(value)
    except ValueError as e:
        _logging.warning(
            f"Unreadable version in {key_path}\\{entry.check_value_name}: {e}; treating as outdated"
        )
        return PrereqCheck(
            PrereqStatus.NEEDS_INSTALL, key_path, value, reason="installed value unreadable"
        )

    if installed < required:
        return PrereqCheck(
            PrereqStatus.NEEDS_INSTALL,
            key_path,
            value,
            reason=f"installed {installed} < required {required}",
        )
    return PrereqCheck(
        PrereqStatus.SATISFIED,
        key_path,
        value,
        reason=f"installed {installed} >= required {required}",
    )


__all__ = [
    "UNINSTALL_ROOTS",
    "RegistryReader",
    "WindowsRegistry",
    "UninstallEntry",
    "PrereqStatus",
    "PrereqCheck",
    "split_registry_path",
    "join_registry_path",
    "normalize_product_code",
    "find_uninstall_entry",
    "check_prereq",
]
