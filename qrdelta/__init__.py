"""qrdelta: read QR payloads, bump their createTime, compare batches."""

__version__ = "0.1.0"
