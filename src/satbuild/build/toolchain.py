"""SH-2 toolchain and libyaul tool locations.

Directory structure of a libyaul installation:
    install_root/bin/{prefix}-gcc, -g++, -gcc-nm, -objcopy, -objdump
    install_root/bin/bin2o, make-ip, make-iso, make-cue
    install_root/share/wrap-error
    install_root/share/yaul/ip/ip.sx
    install_root/{arch_prefix}/include/yaul

Paths are derived, not probed: a missing tool surfaces as a spawn failure
when the stage that needs it runs.
"""

from dataclasses import dataclass
from pathlib import Path

from ..errors import ConfigurationError

DEFAULT_ARCH_PREFIX = "sh2eb-elf"


@dataclass(frozen=True)
class Toolchain:
    """Resolved tool paths for one libyaul installation.

    Attributes:
        install_root: Toolchain installation directory
        arch_prefix: SH-2 target triple (e.g. "sh2eb-elf")
        program_prefix: Prefix of the cross binaries (usually the same triple)
    """

    install_root: Path
    arch_prefix: str = DEFAULT_ARCH_PREFIX
    program_prefix: str = DEFAULT_ARCH_PREFIX

    def __post_init__(self) -> None:
        root = str(self.install_root).strip()
        if not root:
            raise ConfigurationError("Undefined toolchain install_root (install root directory)")
        if len(root.split()) != 1:
            raise ConfigurationError(f"Toolchain install_root contains spaces: '{root}'")
        if not self.arch_prefix.strip():
            raise ConfigurationError("Undefined toolchain prefix (tool-chain prefix)")
        if len(self.arch_prefix.split()) != 1:
            raise ConfigurationError(f"Toolchain prefix contains spaces: '{self.arch_prefix}'")
        if len(self.program_prefix.split()) > 1:
            raise ConfigurationError(f"Toolchain program_prefix contains spaces: '{self.program_prefix}'")

    @property
    def bin_dir(self) -> Path:
        return self.install_root / "bin"

    def _prog(self, name: str) -> Path:
        return self.bin_dir / f"{self.program_prefix}-{name}"

    @property
    def cc(self) -> Path:
        return self._prog("gcc")

    @property
    def cxx(self) -> Path:
        return self._prog("g++")

    @property
    def ld(self) -> Path:
        # Linking goes through the compiler driver so specs files apply
        return self._prog("gcc")

    @property
    def nm(self) -> Path:
        return self._prog("gcc-nm")

    @property
    def objcopy(self) -> Path:
        return self._prog("objcopy")

    @property
    def objdump(self) -> Path:
        return self._prog("objdump")

    @property
    def bin2o(self) -> Path:
        return self.bin_dir / "bin2o"

    @property
    def make_ip(self) -> Path:
        return self.bin_dir / "make-ip"

    @property
    def make_iso(self) -> Path:
        return self.bin_dir / "make-iso"

    @property
    def make_cue(self) -> Path:
        return self.bin_dir / "make-cue"

    @property
    def wrap_error(self) -> Path:
        return self.install_root / "share" / "wrap-error"

    @property
    def ip_template(self) -> Path:
        """Boot header source assembled by make-ip."""
        return self.install_root / "share" / "yaul" / "ip" / "ip.sx"

    @property
    def include_dir(self) -> Path:
        return self.install_root / self.arch_prefix / "include" / "yaul"
