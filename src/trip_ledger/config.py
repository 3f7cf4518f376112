"""
Configuration for ledger computations.
"""
import json
import logging
from dataclasses import dataclass, fields

logger = logging.getLogger(__name__)


@dataclass
class LedgerConfig:
    """
    Policy switches for the ledger builder.

    strict_participants: raise UnknownParticipant when an expense or a
        recorded settlement names someone outside the trip. When off, the
        unknown part is dropped with a warning.
    skip_invalid_expenses: skip an expense that fails to split instead of
        failing the whole ledger.
    tolerance_cents: balances within this many cents of zero are settled.
    currency: default currency for new trips.
    """
    strict_participants: bool = True
    skip_invalid_expenses: bool = False
    tolerance_cents: int = 1
    currency: str = "EUR"


DEFAULT_CONFIG = LedgerConfig()


def config_from_dict(d: dict) -> LedgerConfig:
    """Build a LedgerConfig from a dict, ignoring unknown keys."""
    known = {f.name for f in fields(LedgerConfig)}
    unknown = set(d) - known
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))
    values = {k: v for k, v in d.items() if k in known}
    if "tolerance_cents" in values:
        values["tolerance_cents"] = int(values["tolerance_cents"])
        if values["tolerance_cents"] < 0:
            raise ValueError("tolerance_cents must not be negative")
    for key in ("strict_participants", "skip_invalid_expenses"):
        if key in values:
            values[key] = bool(values[key])
    return LedgerConfig(**values)


def load_config(path: str) -> LedgerConfig:
    """Load configuration from a JSON file, falling back to defaults."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        logger.debug("No config at %s, using defaults", path)
        return LedgerConfig()
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid config file {path}: {e}") from e

    if isinstance(data, dict):
        data = data.get("ledger", data)
    if not isinstance(data, dict):
        raise ValueError(f"Config in {path} must be a JSON object")
    return config_from_dict(data)
