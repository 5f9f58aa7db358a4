import hashlib
import json
import logging
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import List, Optional

from pydantic import BaseModel

from astro_layouts.config import DATA_DIR
from astro_layouts.exceptions import (
    InvalidLayoutPathError,
    LayoutNotFoundError,
    RevisionConflictError,
)

logger = logging.getLogger("astro_layouts.store")

LAYOUT_SUFFIX = ".astro"
_RESERVED_DIRS = ("_history", "_vc")


def git_blob_sha(content: str) -> str:
    """SHA-1 of `content` as a git blob, the revision id the editor sends back."""
    data = content.encode("utf-8")
    header = f"blob {len(data)}\0".encode("utf-8")
    return hashlib.sha1(header + data).hexdigest()


class StoredLayout(BaseModel):
    path: str
    content: str
    sha: str


class LayoutStore:
    """
    Persists compiled layout files with revision checks and version history.

    Storage Layout:
        <data_dir>/
        ├── layouts/Main.astro        # Current layout text
        ├── _vc/layouts/Main.astro.json   # Version metadata
        └── _history/
            └── layouts/Main.astro/
                ├── v1.astro          # Snapshot at version 1
                └── ...

    Revision Checks:
        Each layout's revision is its git blob sha. Updating a layout requires
        the sha the editor loaded; creating one requires no sha. Anything else
        raises RevisionConflictError, which the editor turns into an
        "overwrite?" prompt.
    """

    def __init__(self, data_dir: Optional[Path] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else DATA_DIR
        self.history_dir = self.data_dir / "_history"
        self.vc_dir = self.data_dir / "_vc"
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _normalize(self, path: str) -> str:
        """
        Validate a layout path and return it in canonical `a/b.astro` form.

        Raises:
            InvalidLayoutPathError: absolute, escaping, reserved or non-.astro paths
        """
        if not path or not path.strip():
            raise InvalidLayoutPathError(path, "empty path")
        candidate = PurePosixPath(path.strip().replace("\\", "/"))
        if candidate.is_absolute():
            raise InvalidLayoutPathError(path, "must be relative")
        if any(part in ("..", ".") for part in candidate.parts):
            raise InvalidLayoutPathError(path, "must not contain '.' or '..'")
        if candidate.parts[0] in _RESERVED_DIRS:
            raise InvalidLayoutPathError(path, "reserved directory")
        if candidate.suffix != LAYOUT_SUFFIX:
            raise InvalidLayoutPathError(path, f"must end in {LAYOUT_SUFFIX}")
        return candidate.as_posix()

    def _file_path(self, path: str) -> Path:
        return self.data_dir / path

    def _vc_path(self, path: str) -> Path:
        return self.vc_dir / f"{path}.json"

    def _snapshot_path(self, path: str, version: int) -> Path:
        return self.history_dir / path / f"v{version}{LAYOUT_SUFFIX}"

    # -------------------------------------------------------------------------
    # Layout files
    # -------------------------------------------------------------------------

    def list_layouts(self) -> List[str]:
        """All stored layout paths, sorted."""
        layouts = []
        for file_path in self.data_dir.rglob(f"*{LAYOUT_SUFFIX}"):
            relative = file_path.relative_to(self.data_dir)
            if relative.parts[0] in _RESERVED_DIRS:
                continue
            layouts.append(relative.as_posix())
        return sorted(layouts)

    def get_layout(self, path: str) -> StoredLayout:
        path = self._normalize(path)
        file_path = self._file_path(path)
        if not file_path.is_file():
            raise LayoutNotFoundError(path)
        content = file_path.read_text(encoding="utf-8")
        return StoredLayout(path=path, content=content, sha=git_blob_sha(content))

    def save_layout(self, path: str, content: str,
                    sha: Optional[str] = None,
                    message: Optional[str] = None) -> StoredLayout:
        """
        Create or update a layout.

        Args:
            path: Relative `.astro` path
            content: Full layout text
            sha: Revision the edit is based on; None to create a new layout
            message: Version comment (auto-generated if None)

        Returns:
            The stored layout with its new sha

        Raises:
            RevisionConflictError: `sha` does not match what is stored
        """
        path = self._normalize(path)
        file_path = self._file_path(path)
        current_sha = None
        if file_path.is_file():
            current_sha = git_blob_sha(file_path.read_text(encoding="utf-8"))

        if sha != current_sha:
            logger.warning(f"Revision conflict on '{path}': expected {sha}, found {current_sha}")
            raise RevisionConflictError(path, sha, current_sha)

        new_sha = git_blob_sha(content)
        if new_sha == current_sha:
            return StoredLayout(path=path, content=content, sha=new_sha)

        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content, encoding="utf-8")

        if current_sha is None:
            self._add_version(path, content, "create", message or f"Create layout {path}")
        else:
            self._add_version(path, content, "save", message or f"Update layout {path}")
        logger.info(f"Saved layout '{path}' at {new_sha[:7]}")
        return StoredLayout(path=path, content=content, sha=new_sha)

    # -------------------------------------------------------------------------
    # Version Control Methods
    # -------------------------------------------------------------------------

    def get_vc_data(self, path: str) -> dict:
        """
        Get version metadata for a layout.

        Returns:
            VC data dict or empty structure if not found
        """
        vc_path = self._vc_path(self._normalize(path))
        empty = {"current_version": 0, "created_at": None, "versions": []}
        if not vc_path.exists():
            return empty
        try:
            return json.loads(vc_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, IOError):
            logger.warning(f"Unreadable version data for '{path}', starting over")
            return empty

    def _save_vc_data(self, path: str, vc_data: dict):
        vc_path = self._vc_path(path)
        vc_path.parent.mkdir(parents=True, exist_ok=True)
        vc_path.write_text(json.dumps(vc_data, indent=2), encoding="utf-8")

    def _add_version(self, path: str, content: str, trigger: str, message: str) -> int:
        vc_data = self.get_vc_data(path)
        new_version = vc_data.get("current_version", 0) + 1
        now = datetime.now(timezone.utc).isoformat()
        if vc_data.get("created_at") is None:
            vc_data["created_at"] = now

        vc_data["current_version"] = new_version
        vc_data["versions"].append({
            "version": new_version,
            "timestamp": now,
            "message": message,
            "trigger": trigger,
            "sha": git_blob_sha(content),
        })
        self._save_vc_data(path, vc_data)

        snapshot_path = self._snapshot_path(path, new_version)
        snapshot_path.parent.mkdir(parents=True, exist_ok=True)
        snapshot_path.write_text(content, encoding="utf-8")
        return new_version

    def list_versions(self, path: str) -> list:
        return self.get_vc_data(path).get("versions", [])

    def rollback_to_version(self, path: str, version: int) -> bool:
        """
        Restore a layout to an earlier version.

        Creates a new version with the 'rollback' trigger; the history is never
        rewritten.

        Returns:
            True if successful, False if the version has no snapshot
        """
        path = self._normalize(path)
        snapshot_path = self._snapshot_path(path, version)
        if not snapshot_path.exists():
            return False

        content = snapshot_path.read_text(encoding="utf-8")
        file_path = self._file_path(path)
        old_content = file_path.read_text(encoding="utf-8") if file_path.exists() else None
        if old_content != content:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding="utf-8")
            self._add_version(path, content, "rollback", f"Rolled back to version {version}")
        return True


# Global instance
store = LayoutStore()
