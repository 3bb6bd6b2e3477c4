"""
Input items

An item is a mapping carrying the document text under the configured
input field. Files given on the command line are turned into items here.
"""
from __future__ import annotations
from pathlib import Path
from typing import Any, Dict, List
import base64
import binascii
import json
import logging

logger = logging.getLogger(__name__)

Item = Dict[str, Any]

TEXT_SUFFIXES = (".txt", ".md", ".text")

# Per-item override of the configured memory key
MEMORY_KEY_FIELD = "memoryKey"


def _binary_text(item: Item) -> str:
    binary = item.get("binary")
    if not isinstance(binary, dict) or not binary:
        return ""
    first = next(iter(binary.values()))
    data = first.get("data") if isinstance(first, dict) else first
    if not isinstance(data, str):
        return ""
    try:
        return base64.b64decode(data).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        logger.warning(f"Could not decode binary input: {e}")
        return ""


def document_text(item: Item, input_field: str) -> str:
    """Text under `input_field`, falling back to the item's first binary attachment."""
    text = item.get(input_field) or ""
    if not isinstance(text, str):
        text = str(text)
    if not text:
        text = _binary_text(item)
    return text


def memory_key_for(item: Item, default_key: str) -> str:
    key = item.get(MEMORY_KEY_FIELD)
    return str(key) if key else default_key


def load_items(path: str, input_field: str) -> List[Item]:
    """
    Read a document file into items.

    .txt/.md files become one item; .json holds one item or a list of
    items; .docx is read with python-docx.
    """
    p = Path(path)
    suffix = p.suffix.lower()

    if suffix == ".docx":
        from text_refinery.adapters.docx_adapter import extract_text
        return [{input_field: extract_text(str(p)), "source": str(p)}]

    if suffix == ".json":
        with open(p, "r", encoding="utf-8") as f:
            data = json.load(f)
        records = data if isinstance(data, list) else [data]
        items: List[Item] = []
        for i, rec in enumerate(records):
            if not isinstance(rec, dict):
                raise ValueError(f"{path}: item {i} is not an object")
            items.append({**rec, "source": rec.get("source") or f"{p}#{i}"})
        return items

    if suffix not in TEXT_SUFFIXES:
        logger.warning(f"Unknown extension '{suffix}' for {path}, reading as plain text")
    return [{input_field: p.read_text(encoding="utf-8"), "source": str(p)}]


def item_label(item: Item, index: int) -> str:
    return item.get("source") or f"item_{index:04d}"
