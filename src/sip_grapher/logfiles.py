"""Discovery of Asterisk log files, including rotated copies."""

from pathlib import Path

from sip_grapher.logging import get_logger

logger = get_logger("logfiles")


def discover_log_files(logpath: Path) -> list[Path]:
    """Find the configured log and its rotated siblings.

    Looks in the parent directory of `logpath` for regular files whose name
    contains the configured file name, so /var/log/asterisk/messages also
    finds messages.1, messages.2, ...

    Args:
        logpath: Configured log path, e.g. /var/log/asterisk/messages

    Returns:
        Matching files, most recently modified first
    """
    log_dir = logpath.parent
    if not log_dir.is_dir():
        logger.warning("Log directory does not exist: %s", log_dir)
        return []

    candidates: list[tuple[float, Path]] = []
    for path in log_dir.iterdir():
        if logpath.name not in path.name or not path.is_file():
            continue
        try:
            candidates.append((path.stat().st_mtime, path))
        except OSError:
            continue

    candidates.sort(key=lambda item: (item[0], item[1].name), reverse=True)
    logger.debug("Discovered log files: dir=%s pattern=%s count=%d", log_dir, logpath.name, len(candidates))
    return [path for _, path in candidates]
