"""
Local Host Adapter

HostCapabilitiesPort implementation for running outside a site generator:
nodes are appended to a JSON Lines file and the cache is a JSON file.
"""

import hashlib
import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ...core.domain import ContentNode
from ...core.ports import ReporterPort
from .reporter import LoggingReporter

logger = logging.getLogger(__name__)


class JsonFileCache:
    """Key/value cache persisted as a single JSON object"""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._data: Dict[str, Any] = {}
        if self.path and self.path.exists():
            with open(self.path, "r", encoding="utf-8") as f:
                self._data = json.load(f)

    async def get(self, key: str) -> Any:
        return self._data.get(key)

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, indent=2, ensure_ascii=False)


class LocalHost:
    """Host that writes every emitted node as one JSON line"""

    def __init__(
        self,
        output_path: Union[str, Path],
        reporter: Optional[ReporterPort] = None,
        cache: Optional[JsonFileCache] = None,
        namespace: str = "bulk-sourcing"
    ):
        self.output_path = Path(output_path)
        self.reporter = reporter or LoggingReporter()
        self.cache = cache or JsonFileCache()
        self._namespace = uuid.uuid5(uuid.NAMESPACE_URL, namespace)
        self.nodes_written = 0

        self.output_path.parent.mkdir(parents=True, exist_ok=True)
        # Each run replaces the previous output
        self.output_path.write_text("", encoding="utf-8")

    def create_node(self, node: ContentNode) -> None:
        with open(self.output_path, "a", encoding="utf-8") as f:
            f.write(json.dumps(node.to_dict(), ensure_ascii=False, default=str))
            f.write("\n")
        self.nodes_written += 1

    def create_node_id(self, seed: str) -> str:
        return str(uuid.uuid5(self._namespace, seed))

    def create_content_digest(self, content: Any) -> str:
        if isinstance(content, str):
            payload = content
        else:
            payload = json.dumps(content, sort_keys=True, ensure_ascii=False, default=str)
        return hashlib.md5(payload.encode("utf-8")).hexdigest()
