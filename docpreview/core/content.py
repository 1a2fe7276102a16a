"""Serialization boundary for structured document content.

The editor tree is opaque to the preview flow.  It crosses the wire wrapped in
a small versioned envelope so both sides can detect format drift instead of
rendering garbage.
"""
from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from typing import Any

CONTENT_SCHEMA_VERSION = 1
SUPPORTED_SCHEMA_VERSIONS = frozenset({CONTENT_SCHEMA_VERSION})


class ContentError(ValueError):
    """Raised when a content payload cannot cross the envelope boundary."""


def _canonical_json(content: Mapping[str, Any]) -> str:
    try:
        return json.dumps(content, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise ContentError(f"content is not JSON serialisable: {exc}") from exc


def build_envelope(content: Any) -> dict[str, Any]:
    """Wrap ``content`` in the versioned envelope sent to the generator."""

    if not isinstance(content, Mapping):
        raise ContentError("content must be a mapping")
    # round-trip so the envelope never shares mutable state with the caller
    tree = json.loads(_canonical_json(content))
    return {"schemaVersion": CONTENT_SCHEMA_VERSION, "tiptapJson": tree}


def unwrap_envelope(payload: Any) -> dict[str, Any]:
    """Return the content tree from an envelope or a legacy ``{"tiptapJson": ...}`` body."""

    if not isinstance(payload, Mapping):
        raise ContentError("request body must be a JSON object")

    version = payload.get("schemaVersion", CONTENT_SCHEMA_VERSION)
    if not isinstance(version, int) or version not in SUPPORTED_SCHEMA_VERSIONS:
        raise ContentError(f"unsupported schemaVersion: {version!r}")

    tree = payload.get("tiptapJson")
    if tree is None:
        raise ContentError("tiptapJson is required")
    if not isinstance(tree, Mapping):
        raise ContentError("tiptapJson must be an object")
    return dict(tree)


def extract_text(node: Any) -> str:
    """Concatenate the text leaves below ``node``."""

    if not isinstance(node, Mapping):
        return ""
    if node.get("type") == "hardBreak":
        return "\n"
    text = node.get("text")
    if isinstance(text, str):
        return text
    children = node.get("content")
    if isinstance(children, list):
        return "".join(extract_text(child) for child in children)
    return ""


def content_digest(content: Mapping[str, Any]) -> str:
    """Stable sha256 of the canonical JSON form."""

    return hashlib.sha256(_canonical_json(content).encode("utf-8")).hexdigest()


__all__ = [
    "CONTENT_SCHEMA_VERSION",
    "ContentError",
    "build_envelope",
    "content_digest",
    "extract_text",
    "unwrap_envelope",
]
