from __future__ import annotations
from typing import Dict, Any, List
import json

def write_json(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)

def write_txt(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_txt(payload))

def write_text(path: str, text: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)

def render_txt(payload: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append(f"Refinery Run: {payload.get('timestamp_utc')}")
    lines.append("")
    cfg = payload.get("config", {})
    lines.append("Configuration")
    lines.append(f"- Model:        {cfg.get('default_model')}")
    lines.append(f"- Split:        {cfg.get('split_method')} (size={cfg.get('chunk_size')}, overlap={cfg.get('overlap_chars')})")
    lines.append(f"- Memory:       {cfg.get('memory_mode')} key={cfg.get('memory_key')}")
    lines.append(f"- Stages:       {', '.join(cfg.get('stages', []) or []) or '[none]'}")
    lines.append("")
    stats = payload.get("stats", {})
    lines.append("Stats")
    for k, v in stats.items():
        lines.append(f"- {k}: {v}")
    lines.append("")
    docs = payload.get("documents", []) or []
    if docs:
        lines.append("Documents")
        for d in docs:
            persisted = "persisted" if d.get("memoryPersisted") else "not persisted"
            lines.append(
                f"- {d.get('source')}: {d.get('chunksCount')} chunks, "
                f"memory v{d.get('memoryVersion')} ({persisted}) -> {d.get('output') or '[not written]'}"
            )
        lines.append("")
    failures = payload.get("failures", []) or []
    if failures:
        lines.append("Failures")
        for f in failures:
            lines.append(f"- {f['source']}: {f['error']}")
    return "\n".join(lines)
