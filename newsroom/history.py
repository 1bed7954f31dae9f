import json
import logging
from dataclasses import asdict
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Union

from newsroom.models import Edition
from newsroom.sections import FRONT_PAGE

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def manifest_path(out_dir: PathLike) -> Path:
    return Path(out_dir) / "editions" / "manifest.json"


def read_manifest(out_dir: PathLike) -> List[Dict[str, Any]]:
    """Published editions, newest first. Missing or corrupt manifests read as empty."""
    path = manifest_path(out_dir)
    if not path.exists():
        return []
    try:
        manifest = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Corrupt manifest.json, starting fresh: {e}")
        return []
    if not isinstance(manifest, list):
        logger.warning("manifest.json is not a list, starting fresh")
        return []
    return manifest


def write_manifest(out_dir: PathLike, manifest: List[Dict[str, Any]]) -> None:
    path = manifest_path(out_dir)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(manifest, indent=2), encoding="utf-8")


def recent_repo_names(out_dir: PathLike, lookback: int = 3) -> FrozenSet[str]:
    """Repo names from the last ``lookback`` editions, used as the scoring history penalty."""
    names = set()
    for entry in read_manifest(out_dir)[:lookback]:
        names.update(entry.get("repos") or [])
    return frozenset(names)


def _json_default(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def edition_to_dict(edition: Edition) -> Dict[str, Any]:
    sections = {}
    for section_id, section in edition.sections.items():
        data = asdict(section)
        data["is_empty"] = section.is_empty
        sections[section_id] = data
    return {"sections": sections, "tagline": edition.tagline}


def record_edition(edition: Edition, out_dir: PathLike, day: date, base_path: str = "") -> Dict[str, Any]:
    """
    Store the edition's content and prepend it to the manifest.

    A rerun on the same day replaces that day's entry. Rendering the stored
    content is left to the site builder.
    """
    day_str = day.isoformat()
    edition_dir = Path(out_dir) / "editions" / day_str
    edition_dir.mkdir(parents=True, exist_ok=True)
    (edition_dir / "content.json").write_text(
        json.dumps(edition_to_dict(edition), indent=2, default=_json_default),
        encoding="utf-8",
    )

    manifest = [e for e in read_manifest(out_dir) if e.get("date") != day_str]

    front_page = edition.sections.get(FRONT_PAGE)
    lead = front_page.lead if front_page else None
    entry = {
        "date": day_str,
        "headline": lead.headline if lead else "The Git Times Edition",
        "subheadline": lead.subheadline if lead else "",
        "tagline": edition.tagline,
        "url": f"{base_path}/editions/{day_str}/",
        "repos": edition.repo_names(),
    }
    manifest.insert(0, entry)
    write_manifest(out_dir, manifest)
    logger.info(f"Edition {day_str} recorded in {out_dir}")
    return entry
