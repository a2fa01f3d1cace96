"""MPEG-TS codecs, H.264 SPS parsing, engine settings, logging, events and frames."""

__version__ = "0.1.0"

__all__ = [
    "events",
    "frame",
    "logs",
    "settings",
    "sps",
    "ts_io",
    "ts_packet",
    "ts_pes",
    "ts_pmt",
    "ts_psi",
]