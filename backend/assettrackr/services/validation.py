"""File validation against the effective rule pack.

Checks work on file names only (format, required format, frame count and
sequence numbering); decoding images or audio to measure dimensions or
sample rates is out of scope. Every check returns a list of
``RuleFinding`` so they compose freely.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from assettrackr.schemas.asset import RuleFinding
from assettrackr.schemas.common import Severity
from assettrackr.services.rule_packs import RulePack, all_known_formats
from assettrackr.utils.naming import is_contiguous_sequence
from assettrackr.utils.paths import split_filename

logger = logging.getLogger(__name__)


# ── Individual checks ──────────────────────────────────────────────────

def check_formats(pack: RulePack, files: list[str]) -> list[RuleFinding]:
    findings = []
    expected = ", ".join(pack.formats)
    for name in files:
        _, ext = split_filename(name)
        if ext not in pack.formats:
            findings.append(RuleFinding(
                rule_id=f"{pack.asset_type}.format",
                severity=Severity.ERROR,
                expected=expected,
                actual=ext or "(none)",
                message=f"'{name}' is not an allowed format for {pack.asset_type}",
                evidence_paths=[name],
            ))
    return findings


def check_required_format(pack: RulePack, files: list[str], required_format: str | None) -> list[RuleFinding]:
    if not required_format:
        return []
    required = required_format.lower()
    off = [f for f in files if split_filename(f)[1] in pack.formats and split_filename(f)[1] != required]
    if not off:
        return []
    return [RuleFinding(
        rule_id=f"{pack.asset_type}.required_format",
        severity=Severity.WARN,
        expected=required,
        actual=", ".join(sorted({split_filename(f)[1] for f in off})),
        message=f"{len(off)} file(s) are not in the required format",
        evidence_paths=off,
    )]


def check_frame_count(pack: RulePack, files: list[str]) -> list[RuleFinding]:
    max_frames = pack.rules.get("max_frames")
    if not max_frames or len(files) <= max_frames:
        return []
    return [RuleFinding(
        rule_id=f"{pack.asset_type}.max_frames",
        severity=Severity.ERROR,
        expected=max_frames,
        actual=len(files),
        message="Animation has more frames than allowed",
        evidence_paths=[],
    )]


def check_sequence(pack: RulePack, files: list[str]) -> list[RuleFinding]:
    if not pack.rules.get("sequence_pattern_required") or is_contiguous_sequence(files):
        return []
    return [RuleFinding(
        rule_id=f"{pack.asset_type}.sequence",
        severity=Severity.ERROR,
        expected="Contiguous numbered frames",
        actual=", ".join(files[:5]) + ("..." if len(files) > 5 else ""),
        message="Frame files must carry a gapless numeric index",
        evidence_paths=list(files),
    )]


# ── Composite ──────────────────────────────────────────────────────────

def validate_files(
    pack: RulePack | None,
    files: list[str],
    required_format: str | None = None,
    strict: bool = False,
) -> list[RuleFinding]:
    """Run every applicable check for *files*.

    Without a rule pack nothing can be checked and the result is empty.
    In strict mode warnings are reported as errors.
    """
    if pack is None or not files:
        return []
    findings = (
        check_formats(pack, files)
        + check_required_format(pack, files, required_format)
        + check_frame_count(pack, files)
        + check_sequence(pack, files)
    )
    if strict:
        findings = [
            f.model_copy(update={"severity": Severity.ERROR}) if f.severity == Severity.WARN else f
            for f in findings
        ]
    logger.debug("Validated %d file(s) for %s: %d finding(s)", len(files), pack.asset_type, len(findings))
    return findings


def has_errors(findings: list[RuleFinding]) -> bool:
    return any(f.severity == Severity.ERROR for f in findings)


def check_known_formats(files: list[str]) -> list[str]:
    """Files whose extension no rule pack accepts."""
    known = all_known_formats()
    return [f for f in files if split_filename(f)[1] not in known]


# ── Conversions ────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Conversion:
    tool: str
    lossy: bool


CONVERSION_MAP: dict[str, dict[str, Conversion]] = {
    "jpg": {"png": Conversion("ImageMagick", False)},
    "jpeg": {"png": Conversion("ImageMagick", False)},
    "webp": {"png": Conversion("ImageMagick", False)},
    "gif": {"png": Conversion("ImageMagick", False)},
    "bmp": {"png": Conversion("ImageMagick", False)},
    "tga": {"png": Conversion("ImageMagick", False)},
    "mp3": {"wav": Conversion("FFmpeg", True)},
    "ogg": {"wav": Conversion("FFmpeg", True)},
    "flac": {"wav": Conversion("FFmpeg", False)},
    "aiff": {"wav": Conversion("FFmpeg", False)},
    "obj": {"fbx": Conversion("Blender", False)},
    "dae": {"fbx": Conversion("Blender", False)},
}


def plan_conversions(
    files: list[str],
    target_format: str,
    allow_lossy: bool = False,
) -> tuple[list[str], list[dict]]:
    """Plan format fixes that bring *files* to *target_format*.

    Returns the resulting file names and the ``fixes_applied`` entries.
    Lossy conversions are skipped unless *allow_lossy*; files without a
    known conversion are kept as-is.
    """
    target = target_format.lower()
    result: list[str] = []
    fixes: list[dict] = []
    for name in files:
        stem, ext = split_filename(name)
        conversion = CONVERSION_MAP.get(ext, {}).get(target)
        if ext == target or conversion is None or (conversion.lossy and not allow_lossy):
            result.append(name)
            continue
        result.append(f"{stem}.{target}")
        fixes.append({"conversion": f"{ext} → {target}", "tool": conversion.tool, "lossy": conversion.lossy})
    return result, fixes
