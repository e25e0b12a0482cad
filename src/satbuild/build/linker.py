"""SH-2 Linker.

Links every object into <program>.elf, writes the symbol table and
disassembly next to it, and extracts the flat <program>.bin loaded by the
boot ROM.

Linking Strategy:
    - Link through the gcc driver so libyaul's specs files pick the startup
      code and linker script
    - Emit a map file and the stack --defsym symbols
    - Dump symbols (gcc-nm) and disassembly (objdump -S) after each link
    - Convert .elf to .bin using objcopy -O binary
"""

import logging
from pathlib import Path
from typing import List, Sequence

from .build_context import BuildContext
from .stage_executor import StageExecutor

logger = logging.getLogger(__name__)


class Linker:
    """Builds link and extraction commands and runs them.

    Args:
        context: Build context
        executor: Stage executor used to spawn the tools
    """

    def __init__(self, context: BuildContext, executor: StageExecutor):
        self.context = context
        self.executor = executor
        self.toolchain = context.toolchain
        self.flags = context.flags
        self.spec = context.spec

    def link_command(self, objects: Sequence[Path]) -> List[str]:
        return [
            str(self.toolchain.ld),
            *self.flags.specs,
            *self.flags.cxx_specs,
            *(str(obj) for obj in objects),
            *self.flags.ldflags,
            "-o",
            str(self.spec.elf_path),
        ]

    def link(self, objects: Sequence[Path]) -> Path:
        """Link objects into the program ELF and dump its symbols and disassembly.

        Raises:
            StageExecutionError: If the linker or a dump tool fails
        """
        elf = self.spec.elf_path
        self.executor.run("link", self.link_command(objects))
        self.executor.run("link", [str(self.toolchain.nm), str(elf)], stdout_path=self.spec.sym_path)
        self.executor.run(
            "link",
            [str(self.toolchain.objdump), "-S", str(elf)],
            stdout_path=self.spec.asm_path,
        )
        return elf

    def extract_command(self) -> List[str]:
        return [
            str(self.toolchain.objcopy),
            "-O",
            "binary",
            str(self.spec.elf_path),
            str(self.spec.bin_path),
        ]

    def extract_binary(self) -> Path:
        """Convert the program ELF into a flat binary.

        Raises:
            StageExecutionError: If objcopy fails
        """
        self.executor.run("extract", self.extract_command())
        return self.spec.bin_path
