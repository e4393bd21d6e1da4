"""Per-year file bundles for multi-year report types."""

from typing import Optional

from report_intake.core import get_logger
from report_intake.upload.models import BundleSlot, FileAttachment, FileBundle

logger = get_logger(__name__)

MIN_YEARS = 1
MAX_YEARS = 10


class YearGroupManager:
    """Keeps an ordered list of year labels in sync with a label -> bundle map.

    Year labels are free text and are used as the map key, so two positions
    holding the same label share one bundle. Bundles keyed by a label that is
    no longer in the list are pruned.
    """

    def __init__(self, year_count: int = MIN_YEARS):
        self._years: list[str] = [""]
        self._bundles: dict[str, FileBundle] = {}
        if year_count != MIN_YEARS:
            self.set_year_count(year_count)

    @property
    def years(self) -> list[str]:
        return list(self._years)

    @property
    def year_count(self) -> int:
        return len(self._years)

    def bundle_for(self, label: str) -> Optional[FileBundle]:
        return self._bundles.get(label)

    def set_year_count(self, count: int) -> int:
        """Resize the year list, clamped to 1..10.

        Existing labels keep their position; new positions start empty.

        Returns:
            The applied (clamped) count
        """
        count = max(MIN_YEARS, min(MAX_YEARS, count))
        self._years = [
            self._years[i] if i < len(self._years) else ""
            for i in range(count)
        ]
        for label in self._years:
            if label and label not in self._bundles:
                self._bundles[label] = FileBundle()
        self._prune()
        return count

    def rename_year(self, index: int, new_label: str) -> None:
        """Change the label at ``index`` and re-key its bundle.

        On collision with an existing label, the destination bundle is
        overwritten only when the moved bundle holds at least one file.

        Raises:
            ValueError: If ``index`` is outside the year list
        """
        if not 0 <= index < len(self._years):
            raise ValueError(
                f"Year index {index} out of range for {len(self._years)} years"
            )
        old_label = self._years[index]
        self._years[index] = new_label
        if old_label == new_label:
            return

        source = self._bundles.pop(old_label, None) if old_label else None
        if source is not None:
            if new_label and (new_label not in self._bundles or source.has_any_file):
                if new_label in self._bundles:
                    logger.warning(
                        "year_bundle_overwritten",
                        old_label=old_label,
                        new_label=new_label,
                    )
                self._bundles[new_label] = source
        elif new_label and new_label not in self._bundles:
            self._bundles[new_label] = FileBundle()

        self._prune()

    def set_file(
        self,
        label: str,
        slot: BundleSlot,
        attachment: Optional[FileAttachment],
    ) -> None:
        """Set or clear one slot of the bundle for ``label``."""
        if not label:
            return
        bundle = self._bundles.setdefault(label, FileBundle())
        bundle.set(slot, attachment)

    def is_ready(self) -> bool:
        """True if at least one year in the list has its primary file."""
        return any(
            label and label in self._bundles and self._bundles[label].is_ready
            for label in self._years
        )

    def ordered_bundles(self) -> list[tuple[str, FileBundle]]:
        """Distinct non-empty labels in list order with their bundles."""
        seen = set()
        ordered = []
        for label in self._years:
            if not label or label in seen:
                continue
            seen.add(label)
            bundle = self._bundles.get(label)
            if bundle is not None:
                ordered.append((label, bundle))
        return ordered

    def _prune(self) -> None:
        current = set(self._years)
        for label in [key for key in self._bundles if key not in current]:
            del self._bundles[label]
