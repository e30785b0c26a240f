"""Per-file pipeline: resolve package, extract directives, generate, write."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from .config import TypegenConfig
from .directives import Invocation, extract_invocations
from .errors import GenerationError, NoDirectivesFound, PackageResolutionError
from .frontend import SchemaLoader
from .logging import get_logger
from .session import GenerationSession
from .templates import TemplateLocator
from .types import Package
from .writer import Artifact, ArtifactWriter


@dataclass
class FileResult:
    """Everything produced for one processed file."""

    source: Path
    package: Package
    invocations: List[Invocation]
    outputs: List[str]
    references: List[str]
    artifact: Artifact
    written: bool = False


@dataclass
class FileOutcome:
    """Success or failure of one file within a multi-file run."""

    source: Path
    result: Optional[FileResult] = None
    error: Optional[GenerationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class RunReport:
    outcomes: List[FileOutcome] = field(default_factory=list)

    @property
    def failed(self) -> List[FileOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.ok]

    @property
    def succeeded(self) -> List[FileOutcome]:
        return [outcome for outcome in self.outcomes if outcome.ok]


class Orchestrator:
    """Coordinates generation for one or more schema files.

    Each file gets its own session and is all-or-nothing. Files are isolated
    from each other: a failure is recorded and the next file still runs. The
    template locator, and therefore its cache, is shared by the whole run.
    """

    def __init__(
        self,
        config: Optional[TypegenConfig] = None,
        *,
        loader: Optional[SchemaLoader] = None,
        locator: Optional[TemplateLocator] = None,
        writer: Optional[ArtifactWriter] = None,
    ) -> None:
        self.config = config or TypegenConfig(root=Path.cwd().resolve())
        self.loader = loader or SchemaLoader(self.config.modules)
        templates = self.config.templates
        self.locator = locator or TemplateLocator(
            suffix=templates.suffix,
            trim_blocks=templates.trim_blocks,
            lstrip_blocks=templates.lstrip_blocks,
            strict_undefined=templates.strict_undefined,
        )
        self.writer = writer or ArtifactWriter(self.config.output)
        self.logger = get_logger("orchestrator")

    def resolve_package(self, source: Path) -> Package:
        packages = self.loader.packages_for(source)
        if len(packages) != 1:
            raise PackageResolutionError(str(source), [package.path for package in packages])
        return packages[0]

    def extract(self, source: Path, package: Package) -> List[Invocation]:
        invocations: List[Invocation] = []
        for named in package.structs_in_file(source):
            invocations.extend(
                extract_invocations(
                    named,
                    directive_key=self.config.directive_key,
                    max_depth=self.config.max_depth,
                )
            )
        if not invocations:
            raise NoDirectivesFound(str(source))
        return invocations

    def process_file(self, path: Path | str, *, dry_run: bool = False) -> FileResult:
        source = Path(path).expanduser().resolve()
        self.logger.info("Generating for %s", source)
        package = self.resolve_package(source)
        invocations = self.extract(source, package)
        self.logger.debug("Found %d invocation(s) in %s", len(invocations), source)

        session = GenerationSession(self.loader.universe, self.locator)
        outputs, references = session.run(invocations)
        artifact = self.writer.render(source, package, outputs, references)

        written = False
        if not dry_run:
            self.writer.write(artifact)
            written = True
        return FileResult(
            source=source,
            package=package,
            invocations=invocations,
            outputs=outputs,
            references=references,
            artifact=artifact,
            written=written,
        )

    def run(self, paths: Iterable[Path | str], *, dry_run: bool = False) -> RunReport:
        report = RunReport()
        for path in paths:
            source = Path(path)
            try:
                result = self.process_file(source, dry_run=dry_run)
            except GenerationError as exc:
                self.logger.error("Generation failed for %s: %s", source, exc)
                report.outcomes.append(FileOutcome(source=source, error=exc))
            else:
                report.outcomes.append(FileOutcome(source=source, result=result))
        return report


__all__ = ["FileOutcome", "FileResult", "Orchestrator", "RunReport"]
