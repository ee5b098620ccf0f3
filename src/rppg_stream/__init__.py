"""Streaming rPPG core: per-frame facial colour samples to HR, HRV and SQI."""

__all__ = [
    "config",
    "roi",
    "stabilizer",
    "sampler",
    "chrom",
    "pos",
    "combine",
    "fusion",
    "preprocess",
    "bpm",
    "tracker",
    "peaks",
    "hrv",
    "quality",
    "pipeline",
    "session",
    "messages",
    "worker",
    "telemetry",
    "service",
    "evaluation",
]

__version__ = "0.1.0"
