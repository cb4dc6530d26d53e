"""
Asana token lookup in AWS Secrets Manager.

Used only when ASANA_TOKEN is unset and ASANA_SECRET_NAME names a secret.
"""

from __future__ import annotations

import importlib
import json
import logging

logger = logging.getLogger(__name__)


def _boto3():
    # Allow tests to monkeypatch module-level `boto3` symbol.
    return globals().get("boto3") or importlib.import_module("boto3")


def load_token_from_secret(secret_name: str) -> str | None:
    """Return the token stored in `secret_name`, or None if it can't be read.

    The SecretString may be the raw token or a JSON object holding an
    ``ASANA_TOKEN`` key.
    """
    try:
        client = _boto3().client("secretsmanager")
        resp = client.get_secret_value(SecretId=secret_name)
    except Exception:
        logger.exception("Failed to read secret %s", secret_name)
        return None

    raw = (resp or {}).get("SecretString") or ""
    raw = raw.strip()
    if not raw:
        return None
    if raw.startswith("{"):
        try:
            data = json.loads(raw)
        except ValueError:
            logger.warning("Secret %s is not valid JSON", secret_name)
            return None
        token = data.get("ASANA_TOKEN") if isinstance(data, dict) else None
        return str(token) if token else None
    return raw
