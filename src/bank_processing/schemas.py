"""
JSON schemas for input banks and settings files.
"""

FEATURE_SCHEMA = {
    "type": "object",
    "properties": {
        "id": {"type": "string"},
        "group": {"type": "string"},
        "provider": {"type": "string", "minLength": 1},
        "maxRpm": {"type": "integer", "minimum": 1},
        "options": {"type": "object"},
    },
    "required": ["provider", "options"],
    "additionalProperties": True,
}

INPUT_BANK_SCHEMA = {
    "type": "object",
    "properties": {
        "schemaVersion": {"type": "string"},
        "title": {"type": "string"},
        "description": {"type": "string"},
        "author": {"type": "string"},
        "sourceLanguage": {"type": "string"},
        "features": {"type": "array", "items": FEATURE_SCHEMA},
        "data": {"type": "array", "items": {"type": "string"}},
    },
    "required": ["schemaVersion", "title", "sourceLanguage", "features", "data"],
    "additionalProperties": True,
}

PATHS_SCHEMA = {
    "type": "object",
    "properties": {
        "in_dir": {"type": "string"},
        "out_dir": {"type": "string"},
    },
    "additionalProperties": False,
}

DEFAULTS_SCHEMA = {
    "type": "object",
    "properties": {
        "replay_policy": {"type": "string", "enum": ["LIVE", "REPLAY_ONLY", "REPLAY_THEN_LIVE"]},
        "feature_parallelism": {"type": ["integer", "null"], "minimum": 1},
        "feature_concurrency": {"type": "integer", "minimum": 1},
        "error_policy": {"type": "string", "enum": ["FAIL", "SKIP_ITEM"]},
    },
    "additionalProperties": False,
}

LOGGING_SCHEMA = {
    "type": "object",
    "properties": {
        "level": {"type": "string", "enum": ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]},
        "format": {"type": "string", "enum": ["text", "json"]},
        "log_file": {"type": "string"},
    },
    "additionalProperties": False,
}

PROVIDER_SCHEMA = {
    "type": "object",
    "properties": {
        "timeout_ms": {"type": "integer", "minimum": 1},
        "item_concurrency": {"type": ["integer", "null"], "minimum": 1},
    },
    "additionalProperties": True,
}

CONFIG_SCHEMA = {
    "type": "object",
    "properties": {
        "paths": PATHS_SCHEMA,
        "defaults": DEFAULTS_SCHEMA,
        "logging": LOGGING_SCHEMA,
        "translategemma": PROVIDER_SCHEMA,
        "vdu_kirciuoklis": PROVIDER_SCHEMA,
    },
    "additionalProperties": False,
}

__all__ = ["FEATURE_SCHEMA", "INPUT_BANK_SCHEMA", "CONFIG_SCHEMA"]
