"""MCP server entry point for the DLE frame codec.

Exposes encode/decode tools, a wire-format resource, and prompts via the
Model Context Protocol using the official Python MCP SDK with stdio
transport. Payloads travel as hex strings.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from .protocol.constants import DLE, ESCAPE_OFFSET, ETX, STX
from .protocol.errors import DleError
from .protocol.framing import (
    DleEncoder,
    FrameMode,
    TrailingPolicy,
    decode,
    encode,
    iter_frames,
)

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "dle-encoder",
    instructions="Encode and decode STX/ETX/DLE byte-stuffed serial frames",
)

MODE_ALIASES: dict[str, FrameMode] = {
    "escaped": FrameMode.ESCAPED,
    "non_escaped": FrameMode.NON_ESCAPED,
    "nonescaped": FrameMode.NON_ESCAPED,
}


def _parse_mode(mode: str) -> FrameMode:
    """Map a tool argument to a FrameMode, raising ValueError if unknown."""
    key = mode.strip().lower().replace("-", "_")
    if key not in MODE_ALIASES:
        raise ValueError(
            f"Unknown mode {mode!r}, expected one of {sorted(MODE_ALIASES)}"
        )
    return MODE_ALIASES[key]


def _check_capacity(capacity: int | None) -> None:
    if capacity is not None and capacity < 0:
        raise ValueError(f"Capacity must be >= 0, got {capacity}")


def _parse_hex(text: str) -> bytes:
    """Accept hex with optional spaces, colons, or 0x prefixes per token."""
    tokens = text.replace(":", " ").split()
    cleaned = [t[2:] if t.lower().startswith("0x") else t for t in tokens]
    return bytes.fromhex("".join(cleaned))


def _error_result(exc: DleError) -> dict[str, Any]:
    return {
        "error": type(exc).__name__,
        "message": str(exc),
        "consumed": getattr(exc, "consumed", 0),
    }


# ─── CODEC TOOLS ─────────────────────────────────────────────────────

@mcp.tool()
def encode_frame(
    payload_hex: str,
    mode: str = "escaped",
    capacity: int | None = None,
    escape_cr: bool = False,
    add_stx_etx: bool = True,
) -> dict[str, Any]:
    """Wrap a payload in a DLE frame.

    Args:
        payload_hex: Raw payload as hex, e.g. "00 02 10".
        mode: "escaped" (STX ... ETX) or "non_escaped" (DLE STX ... DLE ETX).
        capacity: Optional maximum encoded size in bytes.
        escape_cr: Also escape carriage returns (escaped mode only).
        add_stx_etx: Emit the start and end markers.
    """
    try:
        frame_mode = _parse_mode(mode)
        payload = _parse_hex(payload_hex)
        _check_capacity(capacity)
    except ValueError as e:
        return {"error": "InvalidArgument", "message": str(e)}

    try:
        encoded = encode(
            frame_mode,
            payload,
            capacity,
            escape_cr=escape_cr,
            add_stx_etx=add_stx_etx,
        )
    except DleError as e:
        logger.info("encode_frame failed: %s", e)
        return _error_result(e)

    return {
        "mode": frame_mode.value,
        "encoded_hex": encoded.hex(" "),
        "length": len(encoded),
        "overhead": len(encoded) - len(payload),
    }


@mcp.tool()
def decode_frame(
    frame_hex: str,
    mode: str = "escaped",
    capacity: int | None = None,
    escape_cr: bool = False,
    reject_trailing: bool = False,
) -> dict[str, Any]:
    """Decode the first frame in a hex byte string.

    Args:
        frame_hex: Encoded bytes as hex.
        mode: "escaped" or "non_escaped".
        capacity: Optional maximum payload size in bytes.
        escape_cr: Accept escaped carriage returns (escaped mode only).
        reject_trailing: Fail if bytes follow the end marker.
    """
    try:
        frame_mode = _parse_mode(mode)
        data = _parse_hex(frame_hex)
        _check_capacity(capacity)
    except ValueError as e:
        return {"error": "InvalidArgument", "message": str(e)}

    trailing = TrailingPolicy.REJECT if reject_trailing else TrailingPolicy.ALLOW
    try:
        result = decode(
            frame_mode, data, capacity, escape_cr=escape_cr, trailing=trailing
        )
    except DleError as e:
        logger.info("decode_frame failed: %s", e)
        return _error_result(e)

    return {
        "mode": frame_mode.value,
        "payload_hex": result.payload.hex(" "),
        "length": len(result.payload),
        "consumed": result.consumed,
        "remaining": len(data) - result.consumed,
    }


@mcp.tool()
def scan_frames(
    data_hex: str,
    mode: str = "escaped",
    escape_cr: bool = False,
) -> dict[str, Any]:
    """Decode every complete frame in a captured byte stream.

    Noise and malformed frames are skipped. ``used`` reports how many
    bytes were covered by the frames found; anything after it is an
    incomplete frame or unframed noise.
    """
    try:
        frame_mode = _parse_mode(mode)
        data = _parse_hex(data_hex)
    except ValueError as e:
        return {"error": "InvalidArgument", "message": str(e)}

    frames = []
    used = 0
    for frame in iter_frames(frame_mode, data, escape_cr=escape_cr):
        frames.append({
            "offset": frame.offset,
            "consumed": frame.consumed,
            "payload_hex": frame.payload.hex(" "),
        })
        used = frame.offset + frame.consumed

    if not frames and data:
        logger.warning("scan_frames found no complete frame in %d byte(s)", len(data))

    return {
        "mode": frame_mode.value,
        "frames": frames,
        "count": len(frames),
        "used": used,
    }


# ─── RESOURCES ───────────────────────────────────────────────────────

@mcp.resource("dle://wire-format")
def resource_wire_format() -> str:
    """Start/end markers and escaping rules for both modes."""
    return json.dumps({
        "constants": {
            "STX": f"0x{STX:02X}",
            "ETX": f"0x{ETX:02X}",
            "DLE": f"0x{DLE:02X}",
            "ESCAPE_OFFSET": f"0x{ESCAPE_OFFSET:02X}",
        },
        "modes": {
            FrameMode.ESCAPED.value: {
                "start": "STX",
                "end": "ETX",
                "start_hex": FrameMode.ESCAPED.start_marker.hex(" "),
                "end_hex": FrameMode.ESCAPED.end_marker.hex(" "),
                "stx_etx_in_payload": "DLE, byte + 0x40",
                "dle_in_payload": "DLE, DLE",
            },
            FrameMode.NON_ESCAPED.value: {
                "start": "DLE, STX",
                "end": "DLE, ETX",
                "start_hex": FrameMode.NON_ESCAPED.start_marker.hex(" "),
                "end_hex": FrameMode.NON_ESCAPED.end_marker.hex(" "),
                "stx_etx_in_payload": "unchanged",
                "dle_in_payload": "DLE, DLE",
            },
        },
    })


@mcp.resource("dle://settings/defaults")
def resource_default_settings() -> str:
    """Default encoder settings."""
    return json.dumps(DleEncoder().to_dict())


# ─── PROMPTS ─────────────────────────────────────────────────────────

@mcp.prompt()
def explain_frame(frame_hex: str) -> str:
    """Walk through an encoded frame byte by byte.

    Args:
        frame_hex: Encoded bytes as hex.
    """
    return f"""Explain the DLE-encoded frame {frame_hex}.

Read the dle://wire-format resource first. Then:
- Decide which mode it uses from the first bytes (STX alone or DLE STX)
- Call decode_frame with that mode
- Point out every escape sequence and what payload byte it stands for
- If decoding fails, say which byte is at fault and why"""


@mcp.prompt()
def diagnose_capture(data_hex: str, mode: str = "escaped") -> str:
    """Find frames and framing faults in a raw serial capture."""
    return f"""Analyze this serial capture in {mode} mode: {data_hex}

Use scan_frames to list the complete frames. For any bytes not covered by
a frame, use decode_frame at that offset to find out why (missing start
marker, bad escape, truncated frame). Summarize what the sender did wrong,
if anything."""


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=logging.INFO)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
