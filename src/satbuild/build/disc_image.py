"""Disc image synthesis.

Produces the files that make a bootable CD:

    build/IP.BIN        boot header (make-ip)
    cd/A.BIN            copy of the program binary, read first by the BIOS
    cd/ABS.TXT ...      abstract, bibliography and copyright files
    <output>.iso        data track (make-iso)
    <output>.cue        cue sheet including audio tracks (make-cue)

The libyaul tools are run through wrap-error, which reformats their
diagnostics.
"""

import logging
import shutil
from pathlib import Path
from typing import List

from .build_context import IMAGE_METADATA_FILES, IMAGE_METADATA_PLACEHOLDER, BuildContext
from .stage_executor import StageExecutor

logger = logging.getLogger(__name__)


class DiscImageBuilder:
    """Builds boot header, ISO and CUE commands and runs them.

    Args:
        context: Build context
        executor: Stage executor used to spawn the tools
    """

    def __init__(self, context: BuildContext, executor: StageExecutor):
        self.context = context
        self.executor = executor
        self.toolchain = context.toolchain
        self.spec = context.spec
        self.dirs = context.spec.dirs

    def _wrapped(self, tool: Path, *args: str) -> List[str]:
        return [str(self.toolchain.wrap_error), str(tool), *args]

    def header_command(self) -> List[str]:
        return self._wrapped(
            self.toolchain.make_ip,
            str(self.spec.bin_path),
            *self.spec.image.header_args(),
        )

    def synthesize_header(self) -> Path:
        """Generate IP.BIN in the build directory.

        Raises:
            StageExecutionError: If make-ip fails
        """
        self.executor.run("header", self.header_command(), cwd=self.dirs.build)
        return self.spec.ip_bin_path

    def prepare_image_directory(self) -> List[Path]:
        """Stage the boot binary and metadata files in the image directory.

        The boot binary is always refreshed. Metadata files are only created
        when absent; existing ones are never overwritten.

        Returns:
            Metadata files that were created
        """
        image_dir = self.dirs.image
        image_dir.mkdir(parents=True, exist_ok=True)

        shutil.copyfile(self.spec.bin_path, image_dir / self.spec.image.first_read_bin)

        created = []
        for name in IMAGE_METADATA_FILES:
            path = image_dir / name
            if path.exists():
                continue
            path.write_text(IMAGE_METADATA_PLACEHOLDER, encoding="utf-8")
            created.append(path)
            logger.debug(f"Created placeholder {path}")
        return created

    def image_command(self) -> List[str]:
        return self._wrapped(
            self.toolchain.make_iso,
            str(self.dirs.image),
            str(self.spec.ip_bin_path),
            str(self.dirs.output),
            self.spec.program,
        )

    def synthesize_image(self) -> Path:
        """Stage the image directory and generate <program>.iso.

        Raises:
            StageExecutionError: If make-iso fails
            OSError: If the image directory cannot be prepared
        """
        self.prepare_image_directory()
        self.dirs.output.mkdir(parents=True, exist_ok=True)
        self.executor.run("image", self.image_command())
        return self.spec.iso_path

    def cue_command(self) -> List[str]:
        return self._wrapped(
            self.toolchain.make_cue,
            str(self.dirs.audio_tracks),
            str(self.spec.iso_path),
        )

    def synthesize_cue(self) -> Path:
        """Generate <program>.cue, creating the audio tracks directory first.

        Raises:
            StageExecutionError: If make-cue fails
        """
        self.dirs.audio_tracks.mkdir(parents=True, exist_ok=True)
        self.executor.run("cue", self.cue_command())
        return self.spec.cue_path
