"""ASCII control characters used as frame and escape markers."""

from __future__ import annotations

STX = 0x02  # start of text, frame start
ETX = 0x03  # end of text, frame end
CR = 0x0D   # carriage return, optionally escaped
DLE = 0x10  # data link escape

# Added to an escaped STX/ETX/CR so the shifted value is never a control char
ESCAPE_OFFSET = 0x40

ESCAPED_STX = STX + ESCAPE_OFFSET  # 0x42
ESCAPED_ETX = ETX + ESCAPE_OFFSET  # 0x43
ESCAPED_CR = CR + ESCAPE_OFFSET    # 0x4D

NON_ESCAPED_START = bytes([DLE, STX])
NON_ESCAPED_END = bytes([DLE, ETX])
