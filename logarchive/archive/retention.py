"""
Retention policy enforcement for log archives.

Deletes archives and their sidecars from the archive directory once
they are older than the configured retention window.
"""

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Dict, Any, Optional

from .compression import ARCHIVE_PREFIX


logger = logging.getLogger(__name__)


class RetentionSweeper:
    """
    Removes expired archives from a directory.

    Age is counted in whole days, like ``find -mtime``: a file is expired
    when its age, rounded down to days, is strictly greater than
    retention_days. A file exactly retention_days old is kept.
    """

    def __init__(self, archive_dir, retention_days: int):
        """
        Initialize retention sweeper.

        Args:
            archive_dir: Directory holding the archives
            retention_days: Age in days beyond which archives are deleted
        """
        self.archive_dir = Path(archive_dir)
        self.retention_days = retention_days

    def find_expired(self, now: Optional[datetime] = None) -> list:
        """
        List archive files older than the retention window.

        Returns:
            List of Path objects
        """
        expired, _ = self._scan(now or datetime.now())
        return expired

    def _scan(self, now: datetime):
        expired = []
        errors = []

        if not self.archive_dir.is_dir():
            return expired, errors

        for path in sorted(self.archive_dir.glob(f"{ARCHIVE_PREFIX}*")):
            try:
                if not path.is_file():
                    continue
                modified = datetime.fromtimestamp(path.stat().st_mtime)
            except FileNotFoundError:
                logger.debug(f"Removed during sweep: {path.name}")
                continue
            except OSError as e:
                error_msg = f"Failed to inspect {path.name}: {e}"
                logger.warning(error_msg)
                errors.append(error_msg)
                continue

            age_days = (now - modified) // timedelta(days=1)
            if age_days > self.retention_days:
                expired.append(path)

        return expired, errors

    def sweep(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Delete expired archives.

        Failures to delete are logged and counted but never raised: a
        stale archive that cannot be removed must not fail a run that has
        already produced a good new archive.

        Returns:
            Dict with 'expired', 'deleted' and 'errors' (list of str)
        """
        logger.info(
            f"Removing archives older than {self.retention_days} days from {self.archive_dir}"
        )

        expired, errors = self._scan(now or datetime.now())
        summary = {
            'expired': len(expired),
            'deleted': 0,
            'errors': errors
        }

        for path in expired:
            try:
                path.unlink()
                summary['deleted'] += 1
                logger.info(f"Deleted expired archive: {path.name}")
            except FileNotFoundError:
                logger.debug(f"Already removed: {path.name}")
            except OSError as e:
                error_msg = f"Failed to delete {path.name}: {e}"
                logger.warning(error_msg)
                summary['errors'].append(error_msg)

        logger.info(
            f"Retention sweep complete. "
            f"Deleted: {summary['deleted']}, "
            f"Errors: {len(summary['errors'])}"
        )
        return summary
