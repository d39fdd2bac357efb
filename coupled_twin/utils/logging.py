"""
Coupled Twin Utils - Logging & Diagnostics
==========================================

Logging setup and diagnostic summaries for simulation runs.

Features:
---------
1. Logging Setup
   - Console and rotating file handlers
   - Structured log format

2. Module Loggers
   - Cached loggers keyed by module name

3. Run Logging
   - Per-step coupled results (DEBUG)
   - Statistics summaries
   - Diagnostic reports over the results history

Log Format:
-----------
[2026-10-17 12:30:45.123] [INFO    ] [coupled_twin.pipeline.manager] Message here
[TIMESTAMP] [LEVEL] [MODULE] Message

Log Levels:
-----------
DEBUG:    Per-step detail (coupling, solves)
INFO:     State transitions, scenarios, maintenance
WARNING:  Failure events, singular systems, broken joints
ERROR:    CLI failures

Example:
--------
>>> from coupled_twin.utils import setup_logging, get_logger
>>>
>>> setup_logging("logs/", level="INFO")
>>> logger = get_logger(__name__)
>>> logger.info("Simulation started")

Author: Coupled Twin Team
Date: October 17, 2026
"""

import logging
import logging.handlers
from pathlib import Path
from typing import Dict, Any, List
from datetime import datetime


_loggers = {}


class StructuredFormatter(logging.Formatter):
    """Structured logging formatter."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime(
            "%Y-%m-%d %H:%M:%S.%f"
        )[:-3]

        message = (
            f"[{timestamp}] [{record.levelname:8}] "
            f"[{record.name}] {record.getMessage()}"
        )
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logging(log_dir: str = "logs",
                  level: str = "INFO",
                  console_output: bool = True,
                  file_output: bool = True) -> None:
    """
    Set up logging configuration.

    Args:
        log_dir: Directory for log files
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        console_output: Enable console output
        file_output: Enable file output
    """
    numeric_level = getattr(logging, level.upper())

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = StructuredFormatter()

    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if file_output:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"coupled_twin_{timestamp}.log"

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10 MB
            backupCount=5,
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.info(f"Logging configured: level={level}, dir={log_dir}")


def get_logger(name: str) -> logging.Logger:
    """Get (cached) logger for a module."""
    if name not in _loggers:
        _loggers[name] = logging.getLogger(name)

    return _loggers[name]


def log_results(results: Dict[str, Any], step: int) -> None:
    """
    Log one coupled-results record at DEBUG.

    Args:
        results: CoupledResults.to_dict() output
        step: Step number
    """
    logger = get_logger(__name__)
    interactions = results.get("interactions", {})

    logger.debug(
        f"Step {step} t={results.get('timestamp', 0.0):.3f}s: "
        f"P={interactions.get('electrical_to_thermal', 0.0):.3f}W, "
        f"σ_th={interactions.get('thermal_to_mechanical', 0.0):.3e}Pa, "
        f"σ_mech={interactions.get('mechanical_to_failure', 0.0):.3e}Pa"
    )


def log_statistics(stats: Dict[str, Any]) -> None:
    """Log statistics summary."""
    logger = get_logger(__name__)

    logger.info("=== Statistics Summary ===")
    for key, value in stats.items():
        if isinstance(value, float):
            logger.info(f"{key}: {value:.4f}")
        else:
            logger.info(f"{key}: {value}")


def log_error(error: Exception,
              context: str = "") -> None:
    """
    Log an error with context.

    Example:
        >>> try:
        ...     config = load_config("bench.yaml")
        ... except ConfigError as e:
        ...     log_error(e, context="Invalid configuration")
    """
    logger = get_logger(__name__)

    if context:
        logger.error(f"{context}: {str(error)}")
    else:
        logger.error(f"Error: {str(error)}")

    logger.debug("", exc_info=True)


def create_diagnostic_report(history: List[Dict[str, Any]],
                             stats: Dict[str, Any]) -> str:
    """
    Create diagnostic report from a results history.

    Args:
        history: Sequence of CoupledResults.to_dict() records
        stats: Statistics dictionary

    Returns:
        Diagnostic report string
    """
    report = []
    report.append("=" * 60)
    report.append("DIAGNOSTIC REPORT")
    report.append("=" * 60)

    report.append("\n[Simulation Statistics]")
    for key, value in stats.items():
        if isinstance(value, float):
            report.append(f"  {key}: {value:.4f}")
        else:
            report.append(f"  {key}: {value}")

    if history:
        report.append("\n[History Analysis]")
        report.append(f"  Total steps: {len(history)}")
        report.append(
            f"  Time span: {history[0].get('timestamp', 0.0):.3f} - "
            f"{history[-1].get('timestamp', 0.0):.3f} s"
        )

        temps = [(h.get("thermal") or {}).get("max_temperature") for h in history]
        temps = [t for t in temps if t is not None]
        if temps:
            report.append(f"  Temperature range: {min(temps):.1f} - {max(temps):.1f} °C")

        reliability = [(h.get("failure") or {}).get("system_reliability") for h in history]
        reliability = [r for r in reliability if r is not None]
        if reliability:
            report.append(f"  Reliability range: {min(reliability):.6f} - {max(reliability):.6f}")

        failures = sum(len((h.get("failure") or {}).get("failures", [])) for h in history)
        report.append(f"  Failure events: {failures}")

    report.append("\n" + "=" * 60)

    return "\n".join(report)


def save_diagnostic_report(report: str,
                           output_path: str) -> None:
    """Save diagnostic report to file."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        f.write(report)

    get_logger(__name__).info(f"Saved diagnostic report to {output_path}")
