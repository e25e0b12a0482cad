"""Pipeline Driver.

Runs the fixed six-stage pipeline that turns sources into a disc image:

    1. Compile   each source -> namespaced object    (source vs object)
    2. Link      objects -> <program>.elf            (newest object vs elf)
    3. Extract   elf -> <program>.bin                (elf vs bin)
    4. Header    ip.sx + bin -> IP.BIN               (newest of both vs IP.BIN)
    5. Image     IP.BIN + bin -> <program>.iso       (newest of both vs iso)
    6. Cue       iso -> <program>.cue                (cue missing, or stage 5 ran)

Binary assets are converted by bin2o before stage 1 and their objects join
the link.

Design:
    The stages form a strict total order, not a dependency graph. Each
    transition has exactly one staleness predicate, and a stage that runs
    rewrites the output the next predicate reads, so a change anywhere
    ripples forward. There is no rollback: if a stage fails, earlier
    artifacts stay on disk and the next run resumes at the failed stage.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..errors import ConfigurationError, PathResolutionError
from ..output import log, log_detail, log_phase, log_warning
from .build_context import BuildContext
from .classifier import SourceCollection, classify_sources
from .compiler import Compiler
from .disc_image import DiscImageBuilder
from .linker import Linker
from .namespacer import object_path
from .stage_executor import StageExecutor
from .staleness import get_mtime, is_stale, newest_mtime

logger = logging.getLogger(__name__)


class Stage(Enum):
    """Position in the build pipeline."""

    COMPILE = 1
    LINK = 2
    EXTRACT = 3
    HEADER = 4
    IMAGE = 5
    CUE = 6

    @property
    def label(self) -> str:
        return _STAGE_LABELS[self]


_STAGE_LABELS: Dict[Stage, str] = {
    Stage.COMPILE: "compile",
    Stage.LINK: "link",
    Stage.EXTRACT: "extract binary",
    Stage.HEADER: "boot header",
    Stage.IMAGE: "disc image",
    Stage.CUE: "cue sheet",
}

TOTAL_STAGES = len(Stage)


@dataclass
class StageOutcome:
    """What a stage decided and why.

    Attributes:
        stage: Pipeline position
        output: Declared output artifact (None for the per-file compile stage)
        ran: Whether the stage executed its tool(s)
        reason: Human-readable justification for the decision
    """

    stage: Stage
    output: Optional[Path]
    ran: bool
    reason: str


@dataclass
class BuildResult:
    """Result of one pipeline run.

    Attributes:
        program: Program name
        elf_path: Linked program
        bin_path: Flat program binary
        ip_bin_path: Boot header
        iso_path: Disc image
        cue_path: Cue sheet
        stages: Outcome of every stage, in pipeline order
        compiled: Sources that were recompiled this run
        invocations: Number of external tool invocations
        build_time: Wall-clock duration in seconds
    """

    program: str
    elf_path: Path
    bin_path: Path
    ip_bin_path: Path
    iso_path: Path
    cue_path: Path
    stages: List[StageOutcome] = field(default_factory=list)
    compiled: List[Path] = field(default_factory=list)
    invocations: int = 0
    build_time: float = 0.0

    def outcome(self, stage: Stage) -> StageOutcome:
        for outcome in self.stages:
            if outcome.stage is stage:
                return outcome
        raise KeyError(stage)

    @property
    def rebuilt_stages(self) -> List[Stage]:
        return [outcome.stage for outcome in self.stages if outcome.ran]

    @property
    def up_to_date(self) -> bool:
        return self.invocations == 0


def _describe_mtime(path: Path) -> str:
    mtime = get_mtime(path)
    return "missing" if mtime == 0 else f"{mtime / 1e9:.3f}"


def _staleness_reason(output: Path, inputs: Sequence[Path]) -> str:
    if not output.exists():
        return f"{output.name} missing"
    if newest_mtime(inputs) > get_mtime(output):
        newest = max(inputs, key=get_mtime)
        return f"{newest.name} newer than {output.name}"
    return "up to date"


class BuildPipeline:
    """Sequences the build stages for one invocation.

    Args:
        context: Build context
        executor: Stage executor (defaults to one spawning real processes)
    """

    def __init__(self, context: BuildContext, executor: Optional[StageExecutor] = None):
        self.context = context
        self.spec = context.spec
        self.verbose = context.verbose
        self.executor = executor if executor is not None else StageExecutor(verbose=context.verbose)
        self.compiler = Compiler(context, self.executor)
        self.linker = Linker(context, self.executor)
        self.disc_image = DiscImageBuilder(context, self.executor)

    def run(self) -> BuildResult:
        """Execute the pipeline.

        Returns:
            BuildResult describing what ran

        Raises:
            ConfigurationError: If there is nothing to link or objects collide
            PathResolutionError: If a program source cannot be resolved
            StageExecutionError: If any external tool fails
            OSError: On filesystem failures
        """
        start_time = time.time()
        spec = self.spec
        result = BuildResult(
            program=spec.program,
            elf_path=spec.elf_path,
            bin_path=spec.bin_path,
            ip_bin_path=spec.ip_bin_path,
            iso_path=spec.iso_path,
            cue_path=spec.cue_path,
        )

        log(f"Building {spec.program}")
        if self.verbose:
            self._log_configuration()

        spec.dirs.build.mkdir(parents=True, exist_ok=True)
        spec.dirs.output.mkdir(parents=True, exist_ok=True)

        asset_sources = self._convert_assets()
        sources = classify_sources(list(spec.sources) + asset_sources)
        for ignored in sources.ignored:
            log_warning(f"Ignoring {ignored}: unrecognised source extension")

        objects = self._collect_objects(sources)

        result.compiled = self._compile(sources)
        result.stages.append(
            StageOutcome(
                Stage.COMPILE,
                None,
                bool(result.compiled),
                f"{len(result.compiled)} of {len(sources.compilable)} sources compiled",
            )
        )

        result.stages.append(self._link(objects))
        result.stages.append(self._extract())
        result.stages.append(self._header())
        image = self._image()
        result.stages.append(image)
        result.stages.append(self._cue(image_built=image.ran))

        result.invocations = self.executor.invocation_count
        result.build_time = time.time() - start_time
        return result

    def _log_configuration(self) -> None:
        spec = self.spec
        image = spec.image
        log_detail(f"defined symbols [{','.join(spec.defsyms)}]")
        log_detail(f"sources [{','.join(str(s) for s in spec.sources)}]")
        log_detail(f"iso directory='{spec.dirs.image}'")
        log_detail(f"audio tracks directory='{spec.dirs.audio_tracks}'")
        log_detail(f"iso 1st read binary='{image.first_read_bin}'")
        log_detail(f"ip version='{image.version}'")
        log_detail(f"ip release date='{image.release_date}'")
        log_detail(f"ip areas='{image.areas}'")
        log_detail(f"ip peripherals='{image.peripherals}'")
        log_detail(f"ip title='{image.title}'")
        log_detail(f"ip main stack address='{image.master_stack_addr}'")
        log_detail(f"ip sub stack address='{image.slave_stack_addr}'")
        log_detail(f"ip 1st read address='{image.first_read_addr}'")
        log_detail(f"ip 1st read size='{image.first_read_size}'")

    def _convert_assets(self) -> List[Path]:
        """Convert binary assets and return their object paths as sources.

        An asset whose path cannot be resolved is skipped with a warning.
        """
        asset_sources: List[Path] = []
        if not self.spec.assets:
            return asset_sources

        log("Converting builtin assets...")
        for asset in self.spec.assets:
            try:
                converted = self.compiler.convert_asset(asset)
            except PathResolutionError as e:
                log_warning(str(e))
                continue
            if converted or self.verbose:
                log_detail(f"{asset.file} ({asset.symbol}){'' if converted else ' (cached)'}")
            asset_sources.append(asset.file.with_suffix(".o"))
        return asset_sources

    def _collect_objects(self, sources: SourceCollection) -> List[Path]:
        """Map every source to its object, rejecting collisions."""
        owners: Dict[Path, Path] = {}
        objects: List[Path] = []
        for source in sources.all_sources:
            obj = object_path(self.spec.dirs.build, source.path)
            if obj in owners:
                raise ConfigurationError(
                    f"Sources {owners[obj]} and {source.path} both produce object {obj.name}"
                )
            owners[obj] = source.path
            objects.append(obj)
            logger.debug(f"object {obj}")
        return objects

    def _compile(self, sources: SourceCollection) -> List[Path]:
        log_phase(Stage.COMPILE.value, TOTAL_STAGES, "Compiling sources...")
        compiled: List[Path] = []
        for label, bucket in (
            ("C", sources.c_sources),
            ("C++", sources.cxx_sources),
            ("asm", sources.asm_sources),
        ):
            for source in bucket:
                if self.compiler.compile_source(source):
                    compiled.append(source.path)
                    log_detail(f"[{label}] {source.path.name}")
                elif self.verbose:
                    log_detail(f"[{label}] {source.path.name} (cached)")
        if not compiled:
            log_detail("All objects up to date")
        return compiled

    def _link(self, objects: List[Path]) -> StageOutcome:
        elf = self.spec.elf_path
        log_phase(Stage.LINK.value, TOTAL_STAGES, f"Linking {elf.name}...")
        if not objects:
            raise ConfigurationError(f"No objects to link for {self.spec.program}")

        if self.verbose:
            log_detail(
                f"newest object ({newest_mtime(objects) / 1e9:.3f}) > {elf.name} ({_describe_mtime(elf)})"
            )

        reason = _staleness_reason(elf, objects)
        if not is_stale(elf, objects):
            log_detail(f"{elf.name} up to date")
            return StageOutcome(Stage.LINK, elf, False, reason)

        log_detail(f"building {elf.name} ({reason})")
        self.linker.link(objects)
        return StageOutcome(Stage.LINK, elf, True, reason)

    def _extract(self) -> StageOutcome:
        spec = self.spec
        return self._gated(
            Stage.EXTRACT,
            spec.bin_path,
            [spec.elf_path],
            self._run_extract,
        )

    def _run_extract(self) -> None:
        bin_path = self.linker.extract_binary()
        if self.verbose and bin_path.exists():
            log_detail(f"{bin_path.name}: {bin_path.stat().st_size:,} bytes")

    def _header(self) -> StageOutcome:
        spec = self.spec
        return self._gated(
            Stage.HEADER,
            spec.ip_bin_path,
            [self.context.toolchain.ip_template, spec.bin_path],
            self.disc_image.synthesize_header,
        )

    def _image(self) -> StageOutcome:
        spec = self.spec
        return self._gated(
            Stage.IMAGE,
            spec.iso_path,
            [spec.ip_bin_path, spec.bin_path],
            self.disc_image.synthesize_image,
        )

    def _cue(self, image_built: bool) -> StageOutcome:
        cue = self.spec.cue_path
        log_phase(Stage.CUE.value, TOTAL_STAGES, f"Generating {cue.name}...")

        if not cue.exists():
            reason = f"{cue.name} missing"
        elif image_built:
            reason = f"{self.spec.iso_path.name} rebuilt"
        else:
            log_detail(f"{cue.name} up to date")
            return StageOutcome(Stage.CUE, cue, False, "up to date")

        log_detail(f"building {cue.name} ({reason})")
        self.disc_image.synthesize_cue()
        return StageOutcome(Stage.CUE, cue, True, reason)

    def _gated(self, stage: Stage, output: Path, inputs: List[Path], action) -> StageOutcome:
        """Run action if output is stale relative to inputs."""
        log_phase(stage.value, TOTAL_STAGES, f"Generating {output.name}...")

        if self.verbose:
            compared = " || ".join(
                f"{path.name} ({_describe_mtime(path)}) > {output.name} ({_describe_mtime(output)})"
                for path in inputs
            )
            log_detail(compared)

        reason = _staleness_reason(output, inputs)
        if not is_stale(output, inputs):
            log_detail(f"{output.name} up to date")
            return StageOutcome(stage, output, False, reason)

        log_detail(f"building {output.name} ({reason})")
        action()
        return StageOutcome(stage, output, True, reason)
