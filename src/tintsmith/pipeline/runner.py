"""Update runner: load -> compute -> merge -> persist.

This is the single entry point for the CLI ``update`` command.  Every
request is validated and every ramp computed before anything is merged
or written, so a failing run leaves the target untouched.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from tintsmith.config import DEFAULT_WORKERS, DOCUMENT_EXTENSIONS, JSON_EXTENSIONS
from tintsmith.core.palette import NamedPalette, RampJob, merge_ramps, resolve_updates
from tintsmith.core.ramp import generate_ramp
from tintsmith.core.types import (
    ColorRequest,
    DuplicatePolicy,
    ProgressCallback,
    Ramp,
    RampConfig,
    TargetKind,
    UpdateSummary,
)
from tintsmith.errors import DocumentFormatError, PipelineError
from tintsmith.io import lunacy, palette_json
from tintsmith.pipeline.requests import prefix_requests

logger = logging.getLogger(__name__)


@dataclass
class UpdateConfig:
    """Configuration for one update run."""
    target: Path
    requests: list[ColorRequest] = field(default_factory=list)
    output: Optional[Path] = None  # None = overwrite target
    ramp: RampConfig = field(default_factory=RampConfig)
    policy: DuplicatePolicy = DuplicatePolicy.LAST_WINS
    workers: int = DEFAULT_WORKERS
    dry_run: bool = False
    name_prefix: str = ""  # prepended to every requested name


@dataclass
class UpdateResult:
    """Result from an update run."""
    palette: NamedPalette
    summary: UpdateSummary
    kind: TargetKind
    output_path: Optional[Path] = None
    diagnostics: dict = field(default_factory=dict)


def _emit_progress(
    callback: Optional[ProgressCallback],
    stage: str,
    fraction: float,
    message: str = "",
) -> None:
    """Emit progress update if callback is provided."""
    if callback is not None:
        callback(stage, fraction, message)


def detect_target_kind(path: Path) -> TargetKind:
    """Lunacy document or JSON definition file, by extension."""
    suffix = Path(path).suffix.lower()
    if suffix in DOCUMENT_EXTENSIONS:
        return TargetKind.LUNACY
    if suffix in JSON_EXTENSIONS:
        return TargetKind.JSON
    raise DocumentFormatError(
        f"Unsupported target {path}: expected one of "
        f"{', '.join(sorted(DOCUMENT_EXTENSIONS | JSON_EXTENSIONS))}"
    )


def compute_ramps(
    jobs: Sequence[RampJob],
    config: Optional[RampConfig] = None,
    workers: int = DEFAULT_WORKERS,
) -> list[Ramp]:
    """Generate one ramp per job, in job order.

    With ``workers > 1`` ramps are computed on a thread pool; the result
    is identical to the sequential path.
    """
    if workers <= 1 or len(jobs) <= 1:
        return [generate_ramp(job.color, job.step, config) for job in jobs]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(generate_ramp, job.color, job.step, config) for job in jobs]
        return [f.result() for f in futures]


def load_target(config: UpdateConfig, kind: TargetKind):
    """Load the target palette.

    Returns:
        (palette, raw, extra_requests) where ``raw`` is the
        :class:`LunacyDocument` or JSON mapping to write back and
        ``extra_requests`` are definitions stored in the target itself.
    """
    if kind is TargetKind.LUNACY:
        doc = lunacy.read_document(config.target)
        return lunacy.palette_from_document(doc, config.ramp), doc, []

    if not Path(config.target).exists():
        logger.info("%s does not exist yet; starting an empty palette file", config.target)
        return NamedPalette(), {}, []

    data = palette_json.read_palette_file(config.target)
    return (
        palette_json.palette_from_mapping(data),
        data,
        palette_json.requests_from_mapping(data),
    )


def run_update(
    config: UpdateConfig,
    progress_callback: Optional[ProgressCallback] = None,
) -> UpdateResult:
    """Run a complete palette update.

    Stages:
        1. Load: read the target document or JSON file
        2. Compute: validate requests, generate ramps
        3. Merge: apply ramps to the palette by name
        4. Write: persist to ``config.output`` (or the target)

    Args:
        config: Update configuration.
        progress_callback: (stage_name, fraction, message) callback.

    Returns:
        UpdateResult with the merged palette, summary and diagnostics.
    """
    t_start = time.perf_counter()
    diagnostics = {}
    kind = detect_target_kind(config.target)

    # ---------------------------------------------------------------
    # Stage 1: Load
    # ---------------------------------------------------------------
    _emit_progress(progress_callback, "load", 0.0, f"Reading {Path(config.target).name}...")
    t0 = time.perf_counter()
    palette, raw, stored_requests = load_target(config, kind)
    diagnostics["load_time"] = time.perf_counter() - t0
    diagnostics["existing_palettes"] = len(palette)
    _emit_progress(progress_callback, "load", 1.0, f"{len(palette)} palette(s) loaded")
    logger.info("Loaded %d palette(s) from %s", len(palette), config.target)

    # Flags override definitions stored in the target itself
    incoming = prefix_requests(config.requests, config.name_prefix)
    flagged = {r.name.strip() for r in incoming if isinstance(r.name, str)}
    requests = [r for r in stored_requests if r.name.strip() not in flagged] + incoming
    if not requests:
        raise PipelineError("No colors to apply: pass --color or --from-json")

    # ---------------------------------------------------------------
    # Stage 2: Compute
    # ---------------------------------------------------------------
    _emit_progress(progress_callback, "compute", 0.0, f"Generating {len(requests)} ramp(s)...")
    t0 = time.perf_counter()
    jobs = resolve_updates(palette, requests, config.policy)
    ramps = compute_ramps(jobs, config.ramp, config.workers)
    diagnostics["compute_time"] = time.perf_counter() - t0
    diagnostics["num_requests"] = len(requests)
    diagnostics["num_jobs"] = len(jobs)
    _emit_progress(progress_callback, "compute", 1.0, f"{len(ramps)} ramp(s) generated")

    # ---------------------------------------------------------------
    # Stage 3: Merge
    # ---------------------------------------------------------------
    summary = merge_ramps(palette, jobs, ramps)
    _emit_progress(progress_callback, "merge", 1.0, f"{len(summary.changed)} palette(s) changed")
    logger.info(
        "Merge: %d created, %d updated, %d unchanged",
        len(summary.created), len(summary.updated), len(summary.unchanged),
    )

    # ---------------------------------------------------------------
    # Stage 4: Write
    # ---------------------------------------------------------------
    output_path = None
    target_out = Path(config.output or config.target)
    in_place = target_out.resolve() == Path(config.target).resolve()
    if config.dry_run:
        logger.info("Dry run: not writing %s", target_out)
    elif not summary.changed and in_place and target_out.exists():
        logger.info("Nothing changed; %s left as is", target_out)
    else:
        _emit_progress(progress_callback, "write", 0.0, f"Writing {target_out.name}...")
        if kind is TargetKind.LUNACY:
            diagnostics["objects_touched"] = lunacy.apply_palette_to_document(raw, palette, summary.changed)
            output_path = lunacy.write_document(raw, target_out)
        else:
            output_path = palette_json.save_palette(palette, target_out, raw, summary.changed)
        _emit_progress(progress_callback, "write", 1.0, "Saved")

    diagnostics["total_time"] = time.perf_counter() - t_start
    return UpdateResult(
        palette=palette,
        summary=summary,
        kind=kind,
        output_path=output_path,
        diagnostics=diagnostics,
    )
