"""Eligibility rules for listed objects."""

import logging
from collections.abc import Iterable
from typing import Optional

from ..exceptions import GlacierObjectError, is_cancellation
from ..output import OutputFormatter
from ..storage import Object
from ..utils import matches_any

logger = logging.getLogger(__name__)


class ObjectFilter:
    """Decides which listed objects take part in the diff.

    Rules are applied in order:

    1. Directories are skipped, the engine works on leaf objects only.
    2. Objects carrying a cancellation error are skipped without a report.
    3. Objects carrying any other error are skipped. Source errors are
       reported, destination listing is best-effort and stays silent.
    4. Objects on an archival storage class are skipped with a warning.
    5. Objects matching an exclude pattern are skipped.
    """

    def __init__(
        self,
        output: OutputFormatter,
        command: str,
        exclude_patterns: Optional[list[str]] = None,
    ):
        """Initialize object filter.

        Args:
            output: Output formatter used for reports
            command: Full command line, used as context in reports
            exclude_patterns: Wildcard patterns matched against relative paths
        """
        self.output = output
        self.command = command
        self.exclude_patterns = list(exclude_patterns or [])

    def should_skip(self, obj: Object, is_source: bool) -> bool:
        """Check whether an object must be left out of the diff.

        Args:
            obj: Listed object
            is_source: True for source objects, enables reporting

        Returns:
            True if the object should be skipped
        """
        if obj.type.is_dir or is_cancellation(obj.error):
            return True

        if obj.error is not None:
            if is_source:
                self.output.command_error(self.command, obj.error)
            return True

        if obj.storage_class is not None and obj.storage_class.is_glacier:
            if is_source:
                self.output.command_warning(self.command, GlacierObjectError(obj))
            return True

        if self.exclude_patterns and matches_any(
            obj.relative(), self.exclude_patterns
        ):
            logger.debug("Excluding %s", obj.url)
            return True

        return False

    def filter(self, objects: Iterable[Object], is_source: bool) -> list[Object]:
        """Collect the eligible objects of a listing."""
        return [obj for obj in objects if not self.should_skip(obj, is_source)]
