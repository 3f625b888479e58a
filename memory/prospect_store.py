"""
Nitya Proxy - Prospect Store
Capability-scoped access to per-prospect folders.

Layout under the prospects root:
    {userId}/assets/*           uploaded images
    {userId}/conversation.json  {messages, updatedAt?, approvedSections?, ...}
    {userId}/metadata.json      free-form business data
    {userId}/sitemap.json       {pages: [...]}
    {userId}/styles.css         brand CSS

Every path is derived from a validated userId, so callers (tools and HTTP
routes) can never reach outside the prospects root.
"""

import json
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from agency.tools.errors import (
    CorruptDataError,
    InvalidUserIdError,
    ResourceNotFoundError,
    ToolValidationError,
)
from core.logger import log_info, log_success

CONVERSATION_FILE = "conversation.json"
METADATA_FILE = "metadata.json"
SITEMAP_FILE = "sitemap.json"
STYLES_FILE = "styles.css"
ASSETS_DIR = "assets"

# One path segment: letters, digits, underscore, dot, dash
_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def slugify(page_name: str) -> str:
    """Lowercase a page name and collapse whitespace runs into dashes."""
    return re.sub(r"\s+", "-", page_name.lower())


def is_safe_segment(value: Any) -> bool:
    """True when value is a non-empty single path segment other than . or .."""
    return (
        isinstance(value, str)
        and value not in (".", "..")
        and bool(_SEGMENT_PATTERN.match(value))
    )


class ProspectStore:
    """
    Reads and writes prospect state files.

    Read methods raise ResourceNotFoundError for absent files/folders and
    CorruptDataError for unparseable JSON; tools decide what those mean.
    """

    def __init__(self, root: Path, image_extensions: Iterable[str] = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".svg", ".ico")):
        """
        Initialize the store.

        Args:
            root: Directory holding one folder per prospect
            image_extensions: Lowercase extensions counted as assets
        """
        self.root = Path(root)
        self.image_extensions = tuple(ext.lower() for ext in image_extensions)

    # =========================================================================
    # PATHS
    # =========================================================================

    @staticmethod
    def validate_user_id(user_id: Any) -> str:
        """Return user_id unchanged, or raise InvalidUserIdError."""
        if not is_safe_segment(user_id):
            raise InvalidUserIdError(user_id)
        return user_id

    def user_path(self, user_id: str) -> Path:
        """Folder for one prospect."""
        return self.root / self.validate_user_id(user_id)

    def assets_path(self, user_id: str) -> Path:
        """Assets folder for one prospect."""
        return self.user_path(user_id) / ASSETS_DIR

    def folder_exists(self, user_id: str) -> bool:
        """Check if the prospect folder has been created."""
        return self.user_path(user_id).is_dir()

    def _file_path(self, user_id: str, filename: str) -> Path:
        if not is_safe_segment(filename):
            raise ResourceNotFoundError(f"Invalid filename: {filename!r}")
        return self.user_path(user_id) / filename

    # =========================================================================
    # READS
    # =========================================================================

    def read_text(self, user_id: str, filename: str) -> str:
        """
        Read a prospect file as UTF-8 text.

        Raises:
            ResourceNotFoundError: If the file does not exist
        """
        path = self._file_path(user_id, filename)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise ResourceNotFoundError(f"{filename} not found for {user_id}")

    def read_json(self, user_id: str, filename: str) -> Any:
        """
        Read and parse a prospect JSON file.

        Raises:
            ResourceNotFoundError: If the file does not exist
            CorruptDataError: If the file is not valid JSON
        """
        text = self.read_text(user_id, filename)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise CorruptDataError(f"Invalid JSON in {filename}: {e.msg}")

    def read_json_object(self, user_id: str, filename: str) -> Dict[str, Any]:
        """read_json for files whose top level must be an object."""
        data = self.read_json(user_id, filename)
        if not isinstance(data, dict):
            raise CorruptDataError(f"Invalid JSON in {filename}: expected an object")
        return data

    def list_assets(self, user_id: str) -> List[str]:
        """
        List image filenames in the assets folder, sorted.

        Raises:
            ResourceNotFoundError: If the assets folder does not exist
        """
        assets_dir = self.assets_path(user_id)
        try:
            entries = os.listdir(assets_dir)
        except FileNotFoundError:
            raise ResourceNotFoundError(f"assets folder not found for {user_id}")

        return sorted(
            name for name in entries
            if os.path.splitext(name)[1].lower() in self.image_extensions
        )

    # =========================================================================
    # WRITES
    # =========================================================================

    def ensure_folder(self, user_id: str) -> Path:
        """Create the prospect folder and its assets folder if missing."""
        user_dir = self.user_path(user_id)
        if not user_dir.is_dir():
            log_info(f"Initializing prospect folder for {user_id}", prefix="📁")
        (user_dir / ASSETS_DIR).mkdir(parents=True, exist_ok=True)
        return user_dir

    def write_json(self, user_id: str, filename: str, data: Any) -> None:
        """Write a JSON file atomically (temp file + rename)."""
        path = self._file_path(user_id, filename)
        self.ensure_folder(user_id)

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{filename}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def update_json(self, user_id: str, filename: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """
        Shallow-merge updates into a JSON object file and stamp updatedAt.

        A missing or corrupt file is treated as an empty object.
        """
        try:
            current = self.read_json_object(user_id, filename)
        except (ResourceNotFoundError, CorruptDataError):
            current = {}

        merged = {**current, **updates, "updatedAt": utc_timestamp()}
        self.write_json(user_id, filename, merged)
        return merged

    # =========================================================================
    # CONVERSATION / SITEMAP / METADATA
    # =========================================================================

    @staticmethod
    def empty_conversation(user_id: str) -> Dict[str, Any]:
        """Conversation structure for a prospect with no saved history."""
        return {
            "userId": user_id,
            "messages": [],
            "approvedSections": {},
            "messageCount": 0,
        }

    def load_conversation(self, user_id: str) -> Dict[str, Any]:
        """Saved conversation, or the empty structure if none is readable."""
        try:
            return self.read_json_object(user_id, CONVERSATION_FILE)
        except (ResourceNotFoundError, CorruptDataError):
            return self.empty_conversation(user_id)

    def save_conversation(
        self,
        user_id: str,
        messages: Optional[List[Dict[str, Any]]] = None,
        approved_section: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Persist chat history and/or record an approved section.

        Args:
            user_id: Prospect identifier
            messages: Full message list to store (replaces the saved one)
            approved_section: {"section": name, "html": markup} to record

        Returns:
            The conversation object as written
        """
        conversation = self.load_conversation(user_id)
        conversation.setdefault("approvedSections", {})

        if messages is not None:
            conversation["messages"] = messages
            conversation["messageCount"] = len(messages)

        if approved_section:
            section = approved_section.get("section")
            html = approved_section.get("html")
            if section and html:
                conversation["approvedSections"][section] = {
                    "approved": True,
                    "html": html,
                    "timestamp": utc_timestamp(),
                }
                log_success(f"Section approved: {section}")

        now = utc_timestamp()
        conversation["savedAt"] = now
        conversation["updatedAt"] = now

        self.write_json(user_id, CONVERSATION_FILE, conversation)
        log_success(f"Conversation saved for {user_id} ({conversation.get('messageCount', 0)} messages)")
        return conversation

    def write_sitemap(self, user_id: str, page_names: List[str]) -> Dict[str, Any]:
        """Replace the sitemap with the given ordered page names."""
        sitemap = {
            "pages": [
                {"name": name, "slug": slugify(name), "order": index}
                for index, name in enumerate(page_names, start=1)
            ],
            "updatedAt": utc_timestamp(),
        }
        self.write_json(user_id, SITEMAP_FILE, sitemap)
        log_success(f"Sitemap updated for {user_id} ({len(page_names)} pages)")
        return sitemap

    def update_metadata(self, user_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """Merge business data into metadata.json."""
        metadata = self.update_json(user_id, METADATA_FILE, data)
        log_success(f"Metadata updated for {user_id}")
        return metadata

    # =========================================================================
    # ASSETS
    # =========================================================================

    def save_asset(self, user_id: str, filename: str, data: bytes) -> str:
        """
        Store an uploaded file in the assets folder.

        Returns:
            Public URL path of the stored asset
        """
        if not is_safe_segment(filename):
            raise ToolValidationError(f"Invalid filename: {filename!r}")
        assets_dir = self.ensure_folder(user_id) / ASSETS_DIR
        (assets_dir / filename).write_bytes(data)
        log_success(f"File uploaded: {filename} for {user_id}")
        return f"/prospects/{user_id}/{ASSETS_DIR}/{filename}"

    def delete_asset(self, user_id: str, filename: str) -> None:
        """
        Remove a file from the assets folder.

        Raises:
            ResourceNotFoundError: If the file does not exist
        """
        if not is_safe_segment(filename):
            raise ResourceNotFoundError(f"File not found: {filename}")
        path = self.assets_path(user_id) / filename
        try:
            path.unlink()
        except FileNotFoundError:
            raise ResourceNotFoundError(f"File not found: {filename}")
        log_success(f"File deleted: {filename} for {user_id}")
