"""
Monolith assembler.

Concatenates a project's fragments in load order into the single file the
Vocalls platform accepts, scanning every fragment for dialect violations
on the way. Production builds drop all banners and refuse to produce output
when any violation is found.
"""
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .compliance import Violation, scan
from .config import settings
from .errors import ComplianceViolationError
from .project import (
    ROLE_TITLES,
    FragmentReader,
    ProjectDescriptor,
    load_fragments,
)

logger = logging.getLogger("voc.assembler")

HEADER_TITLE = "VOCALLS COMPATIBLE MONOLITHIC IVR"
_RULE = "// " + "=" * 72
_SUBRULE = "// " + "-" * 72


@dataclass(frozen=True)
class AssemblyStats:
    size: int
    fragment_count: int

    def to_dict(self) -> dict:
        return {"size": self.size, "fragmentCount": self.fragment_count}


@dataclass(frozen=True)
class AssemblyResult:
    output_text: str
    stats: AssemblyStats
    violations: List[Violation] = field(default_factory=list)


@dataclass(frozen=True)
class BuildResult:
    monolith_path: Path
    size: int
    fragment_count: int
    violations: List[Violation] = field(default_factory=list)


def _header(project: ProjectDescriptor, fragment_count: int) -> List[str]:
    return [
        _RULE,
        f"// {HEADER_TITLE}",
        f"// Project: {project.name}",
        f"// Fragments: {fragment_count}",
        _RULE,
        "",
    ]


def _banner(title: str, name: str) -> List[str]:
    return [_SUBRULE, f"// {title}: {name}", _SUBRULE]


def assemble(
    project: ProjectDescriptor,
    production: bool = False,
    reader: Optional[FragmentReader] = None,
) -> AssemblyResult:
    """Assemble ``project`` into one buffer.

    Raises FragmentNotFound (production only) or ComplianceViolationError
    (production only, listing every violation).
    """
    fragments = load_fragments(project, strict=production, reader=reader)

    parts: List[str] = []
    violations: List[Violation] = []

    if not production:
        parts.extend(_header(project, len(fragments)))

    for fragment in fragments:
        if not production:
            parts.extend(_banner(ROLE_TITLES[fragment.role], fragment.name))

        found = scan(fragment.text)
        violations.extend(v.with_fragment(fragment.name) for v in found)

        text = fragment.text
        if not text.endswith("\n"):
            text += "\n"
        parts.append(text)

    if violations:
        if production:
            raise ComplianceViolationError(violations)
        logger.warning(f"{len(violations)} compliance violations in {project.name}")
        for v in violations:
            logger.warning(f"  {v.fragment}:{v.line} [{v.rule_id}] {v.snippet}")

    output_text = "\n".join(parts)
    stats = AssemblyStats(
        size=len(output_text.encode("utf-8")),
        fragment_count=len(fragments),
    )
    return AssemblyResult(output_text=output_text, stats=stats, violations=violations)


def build(
    project: ProjectDescriptor,
    production: bool = False,
    out_dir: Optional[Path] = None,
    reader: Optional[FragmentReader] = None,
) -> BuildResult:
    """Assemble and persist the monolith under ``<project>/dist``.

    The file is replaced atomically and only after assembly succeeded, so a
    failed production build never leaves a partial file behind.
    """
    result = assemble(project, production=production, reader=reader)

    target_dir = Path(out_dir) if out_dir is not None else project.root / settings.DIST_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    monolith_path = target_dir / f"{project.name}.js"

    fd, tmp_path = tempfile.mkstemp(prefix=".voc_build_", suffix=".js", dir=str(target_dir))
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(result.output_text)
        os.replace(tmp_path, monolith_path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.unlink(tmp_path)
        raise

    logger.info(f"Built {monolith_path} ({result.stats.size} bytes, {result.stats.fragment_count} fragments)")
    return BuildResult(
        monolith_path=monolith_path,
        size=result.stats.size,
        fragment_count=result.stats.fragment_count,
        violations=result.violations,
    )
