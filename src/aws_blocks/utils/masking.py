"""Redaction of secret-bearing values before they reach a log line.

Operation parameters routinely carry secrets (``SecretString``,
``MasterUserPassword``, KMS ``Plaintext``), so anything logged from a
parameter mapping goes through ``redact_sensitive_fields`` first.
"""

from __future__ import annotations

_MAX_REDACT_DEPTH = 20

# Substring match against the lower-cased key.
SENSITIVE_KEY_MARKERS: tuple[str, ...] = (
    "password",
    "secret",
    "token",
    "accesskey",
    "credential",
    "authorization",
    "plaintext",
    "privatekey",
    "passphrase",
)


def is_sensitive_key(key: object) -> bool:
    if not isinstance(key, str):
        return False
    lowered = key.lower().replace("_", "")
    return any(marker in lowered for marker in SENSITIVE_KEY_MARKERS)


def redact_sensitive_fields(
    value: object,
    *,
    mask: str = "***",
    depth: int = 0,
    max_depth: int = _MAX_REDACT_DEPTH,
) -> object:
    """Return a copy of ``value`` with sensitive mapping values replaced by ``mask``.

    Sub-trees nested deeper than ``max_depth`` collapse to ``mask``.
    """
    if depth >= max_depth:
        return mask
    if isinstance(value, dict):
        return {
            key: mask
            if is_sensitive_key(key)
            else redact_sensitive_fields(val, mask=mask, depth=depth + 1, max_depth=max_depth)
            for key, val in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [
            redact_sensitive_fields(item, mask=mask, depth=depth + 1, max_depth=max_depth)
            for item in value
        ]
    return value
