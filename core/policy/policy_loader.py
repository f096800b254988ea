"""Policy loading utilities for validation, regression and recovery."""

from __future__ import annotations

from pathlib import Path

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.policy.models import IntegrityPolicy

DEFAULT_POLICY_PATH = Path(__file__).with_name("policy.yaml")


def load_policy(path: Path | None = None) -> IntegrityPolicy:
    """Load and validate the integrity policy from YAML."""

    policy_path = path or DEFAULT_POLICY_PATH

    try:
        raw = yaml.safe_load(policy_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Policy file not found: {policy_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in policy file: {policy_path}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError(f"Policy file must contain a mapping: {policy_path}")

    try:
        return IntegrityPolicy.model_validate(raw)
    except ValidationError as exc:
        raise ValueError(f"Invalid policy schema: {policy_path}") from exc


def resolve_policy(policy: IntegrityPolicy | None) -> IntegrityPolicy:
    """Return ``policy`` or the built-in defaults (identical to policy.yaml)."""

    return policy if policy is not None else _DEFAULT_POLICY


_DEFAULT_POLICY = IntegrityPolicy()
