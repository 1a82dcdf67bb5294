"""Destination path templating for sub-asset deliveries.

``resolve_path_preview`` is shown live in the UI while a sub-asset is
being defined, so its fallback literals are part of the contract.
"""
from __future__ import annotations

from pathlib import PurePosixPath

PREVIEW_FALLBACKS = {
    "{base}": "base_path",
    "{key}": "sub_asset_key",
    "{version}": "1",
    "{ext}": "ext",
}

DEFAULT_TEMPLATES = {
    "folder": "{base}/{key}/v{version}/",
    "filename": "{base}/{name}_v{version}.{ext}",
}


def resolve_path_preview(
    base: str = "",
    key: str = "",
    version: str | int = "",
    ext: str = "",
    template: str | None = "",
) -> str:
    """Substitute ``{base}``, ``{key}``, ``{version}`` and ``{ext}`` into *template*.

    Without a template the folder layout ``{base}/{key}/v{version}/`` is
    returned with the given values as-is. With a template, each empty
    field falls back to its own placeholder literal. Plain substitution:
    unknown placeholders are left untouched.
    """
    version = "" if version is None else str(version)
    if not template:
        return f"{base}/{key}/v{version}/"

    values = {"{base}": base, "{key}": key, "{version}": version, "{ext}": ext}
    result = template
    for placeholder, value in values.items():
        result = result.replace(placeholder, value or PREVIEW_FALLBACKS[placeholder])
    return result


def default_path_template(versioning: str) -> str:
    return DEFAULT_TEMPLATES.get(str(versioning), DEFAULT_TEMPLATES["folder"])


def split_filename(filename: str) -> tuple[str, str]:
    """Return ``(stem, ext)`` with the extension lowercased and without the dot."""
    p = PurePosixPath(filename)
    return p.stem, p.suffix.lstrip(".").lower()


def destination_path(
    base: str,
    key: str,
    versioning: str,
    version: int,
    filename: str,
    template: str | None = None,
    fallback_ext: str = "",
) -> str:
    """Where *filename* lands when delivered as *version* of a sub-asset.

    ``folder`` versioning nests every version in its own directory,
    ``filename`` versioning embeds the version in the file name. A custom
    template may also use ``{name}`` for the file stem. When the resolved
    template is a directory the file name is appended.
    """
    stem, ext = split_filename(filename)
    tpl = (template or default_path_template(versioning)).replace("{name}", stem)
    resolved = resolve_path_preview(
        base=base, key=key, version=str(version), ext=ext or fallback_ext, template=tpl,
    )
    if resolved.endswith("/"):
        return resolved + PurePosixPath(filename).name
    return resolved
