"""Probe a trigger once: build its scaler, poll it and print the result."""

import argparse
import asyncio
import json
import logging
import os
import sys
from typing import Any, Dict, Optional

import yaml

from .config import setup_logging
from .exceptions import ScalerError
from .factory import create_scaler

logger = logging.getLogger(__name__)


def load_trigger(path: str) -> Dict[str, Any]:
    """
    Load a trigger file.

    Expected keys: ``type`` (required), ``name``, ``metadata``,
    ``authParams``, ``podIdentity`` and ``env``.

    Raises:
        OSError: If the file cannot be read
        ValueError: If the file is not a trigger mapping
    """
    with open(path, "r", encoding="utf-8") as fh:
        trigger = yaml.safe_load(fh)

    if not isinstance(trigger, dict) or not trigger.get("type"):
        raise ValueError(f"{path} does not define a trigger type")

    for key in ("metadata", "authParams", "env"):
        section = trigger.get(key) or {}
        if not isinstance(section, dict):
            raise ValueError(f"{key} in {path} must be a mapping")
        trigger[key] = {
            str(k): "" if v is None else str(v) for k, v in section.items()
        }

    return trigger


async def probe(
    trigger: Dict[str, Any], metric: Optional[str] = None, job: bool = False
) -> Dict[str, Any]:
    """
    Build the trigger's scaler, poll it once and close it.

    Returns:
        A JSON-serializable report of specs, activity and samples
    """
    resolved_env = {**os.environ, **trigger["env"]}
    scaler = await create_scaler(
        trigger["type"],
        resolved_env,
        trigger["metadata"],
        trigger["authParams"],
        trigger.get("podIdentity") or "",
        trigger_name=trigger.get("name") or "",
    )

    try:
        specs = (
            scaler.get_metric_spec_for_scaling_job()
            if job
            else scaler.get_metric_spec_for_scaling()
        )
        if metric is None:
            if not specs:
                raise ScalerError("scaler advertises no metrics for this scaling mode")
            metric = specs[0].name

        active = await scaler.is_active()
        samples = await scaler.get_metrics(metric)
    finally:
        await scaler.close()

    return {
        "metricSpecs": [spec.model_dump(mode="json") for spec in specs],
        "isActive": active,
        "metrics": [sample.model_dump(mode="json") for sample in samples],
    }


def main(argv=None):
    """Main entry point for the probe."""
    parser = argparse.ArgumentParser(description="Poll a scaler trigger once")
    parser.add_argument("trigger_file", help="YAML file describing the trigger")
    parser.add_argument("--metric", help="Metric name to fetch (default: first advertised)")
    parser.add_argument(
        "--job", action="store_true", help="Use the job scaling metric spec"
    )
    args = parser.parse_args(argv)

    setup_logging()

    try:
        trigger = load_trigger(args.trigger_file)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Failed to load trigger file {args.trigger_file}: {e}")
        return 2

    try:
        report = asyncio.run(probe(trigger, args.metric, args.job))
    except ScalerError as e:
        logger.error(f"Probe failed: {e}")
        return 1

    print(json.dumps(report, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
