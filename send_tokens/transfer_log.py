"""
Transfer log: short log identifiers and the append-only JSON-lines log.
"""
import json
import logging
import time as _time
from pathlib import Path
from typing import Any, Dict, Optional, Union

from eth_utils import keccak

from .addresses import checksum_or_name
from .models import LogRecord

logger = logging.getLogger(__name__)

LOG_ID_BYTES = 4


def _amount_hex(amount: int) -> str:
    # Minimal big-endian encoding, at least one byte
    length = max(1, (amount.bit_length() + 7) // 8)
    return "0x" + amount.to_bytes(length, "big").hex()


def make_log_id(time: int, token: str, to: str, from_address: str,
                amount: Union[int, str]) -> str:
    """
    Fingerprint a transfer for correlating prompts and log lines.

    Args:
        time: Timestamp in milliseconds
        token: Token address or ENS name
        to: Recipient address or ENS name
        from_address: Sender address
        amount: Amount in base units

    Returns:
        8 lowercase hex characters
    """
    record = {
        "time": time,
        "token": checksum_or_name(token),
        "to": checksum_or_name(to),
        "from": checksum_or_name(from_address),
        "amount": _amount_hex(int(amount)),
    }
    serialized = json.dumps(record, separators=(",", ":"))
    return keccak(text=serialized)[:LOG_ID_BYTES].hex()


class JsonLineLogger:
    """Appends one JSON object per transfer to a file."""

    def __init__(self, path: Union[str, Path], log_id: str):
        self.path = Path(path).expanduser()
        self.log_id = log_id

    def write(self, payload: Dict[str, Any], now: Optional[float] = None) -> LogRecord:
        """
        Append a record.

        ``time`` (unix seconds) and ``id`` are added to ``payload``.
        """
        data = dict(payload)
        data["time"] = int(now if now is not None else _time.time())
        data["id"] = self.log_id
        record = LogRecord.model_validate(data)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(record.to_json() + "\n")
        logger.debug("Appended transfer %s to %s", self.log_id, self.path)
        return record
