"""Calls into the OpenClaw agent binary."""

from __future__ import annotations

import logging
import subprocess

logger = logging.getLogger(__name__)

DOCTOR_TIMEOUT_SECONDS = 120


def run_doctor_fix(binary: str = "openclaw") -> bool:
    """Run ``openclaw doctor --fix`` to normalize the configured channels.

    Runs after the runtime config is written and before the proxy starts. The
    config is already durable at this point, so a failure is reported but does
    not abort startup.

    Returns:
        True if the doctor exited cleanly
    """
    try:
        result = subprocess.run(
            [binary, "doctor", "--fix"],
            capture_output=True,
            text=True,
            check=False,
            timeout=DOCTOR_TIMEOUT_SECONDS,
        )
    except FileNotFoundError:
        logger.warning(f"Agent binary '{binary}' not found; skipping doctor --fix")
        return False
    except subprocess.TimeoutExpired:
        logger.warning(f"'{binary} doctor --fix' timed out after {DOCTOR_TIMEOUT_SECONDS}s")
        return False

    if result.returncode != 0:
        logger.warning(f"'{binary} doctor --fix' exited {result.returncode}: {result.stderr.strip()}")
        return False

    logger.info("Agent doctor --fix completed")
    return True


__all__ = ["run_doctor_fix"]
