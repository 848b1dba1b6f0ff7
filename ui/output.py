"""
Output formatting -- JSON export and plain text.
"""
from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from typing import Any, Dict

from engine.session import SessionReport


def create_result_json(report: SessionReport, server_url: str) -> Dict[str, Any]:
    """Build the JSON document for one session."""
    result: Dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "server_url": server_url,
    }
    result.update(report.to_dict())
    return result


def save_json(result: Dict[str, Any], filepath: str) -> None:
    """Write *result* to *filepath* atomically (write-tmp then rename)."""
    dir_path = os.path.dirname(filepath) or "."
    tmp = os.path.join(dir_path, f".tmp_{os.path.basename(filepath)}")

    try:
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(result, fh, indent=2, ensure_ascii=False)
        os.replace(tmp, filepath)
    except (IOError, OSError) as exc:
        # Clean up partial temp file
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise IOError(f"Failed to save JSON to {filepath}: {exc}") from exc


def format_text_result(report: SessionReport) -> str:
    """Plain-text summary used by ``--simple``."""
    lines = [
        f"Ping: {report.latency.latency:.1f} ms (jitter: {report.latency.jitter:.2f} ms)",
    ]
    if report.latency.packet_loss:
        lines.append(f"Packet Loss: {report.latency.packet_loss:.1f}%")
    lines.append(f"Download: {report.download.throughput:.2f} Mbps")
    lines.append(f"Upload: {report.upload.throughput:.2f} Mbps")
    lines.append(
        f"Stability: {report.quality.stability_score}/100 "
        f"({'stable' if report.quality.is_stable else 'unstable'})"
    )
    lines.append(f"Streaming: {report.streaming.recommended_quality}")
    lines.append(f"Gaming: {'yes' if report.gaming.suitable else 'no'}")
    lines.append(f"Video calls: {'yes' if report.video_call.suitable else 'no'}")
    return "\n".join(lines)
