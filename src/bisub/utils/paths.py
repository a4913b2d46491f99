"""Output paths and video identifiers."""

from __future__ import annotations

import re
from pathlib import Path
from urllib.parse import parse_qs, urlparse

_YOUTUBE_HOSTS = {"youtube.com", "www.youtube.com", "m.youtube.com", "music.youtube.com"}
# Bare YouTube ids are case-sensitive
_VIDEO_ID_RE = re.compile(r"[\w-]{11}")


def slugify(text: str) -> str:
    """Convert text to a filesystem-safe slug."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return text[:80].strip("-")


def video_id_from(source: str) -> str:
    """Derive a stable per-video identifier.

    YouTube URLs yield their video id (``?v=`` or youtu.be path) and a bare
    11-character id is kept as given. Anything else (file paths, titles) is
    slugified from its stem.
    """
    if _VIDEO_ID_RE.fullmatch(source):
        return source
    parsed = urlparse(source)
    if parsed.scheme in ("http", "https"):
        host = parsed.netloc.lower()
        if host in _YOUTUBE_HOSTS:
            video = parse_qs(parsed.query).get("v")
            if video:
                return video[0]
        if host == "youtu.be" and parsed.path.strip("/"):
            return parsed.path.strip("/").split("/")[0]
        return slugify(parsed.netloc + parsed.path) or "untitled"
    return slugify(Path(source).stem) or "untitled"


def output_paths(output_dir: Path, video_id: str) -> dict[str, Path]:
    """Standard output files for one translated video.

    Returns a dict with keys: merged_vtt, translation_vtt, bilingual_vtt,
    translations_json.
    """
    if _VIDEO_ID_RE.fullmatch(video_id):
        stem = video_id
    else:
        stem = slugify(video_id) or "untitled"
    return {
        "merged_vtt": output_dir / f"{stem}.merged.vtt",
        "translation_vtt": output_dir / f"{stem}.translation.vtt",
        "bilingual_vtt": output_dir / f"{stem}.bilingual.vtt",
        "translations_json": output_dir / f"{stem}.translations.json",
    }
