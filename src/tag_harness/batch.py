"""Batch processing of an image directory into report files."""

from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Dict, List, Union

from .config import HarnessConfig
from .errors import InputDirectoryError
from .orchestrator import DetectionOrchestrator
from .serializer import serialize_manifest, serialize_result
from .types import Manifest

logger = logging.getLogger(__name__)


class BatchRunner:
    """Writes one report per image plus a manifest for the whole run."""

    def __init__(self, config: HarnessConfig, orchestrator: DetectionOrchestrator) -> None:
        self.config = config
        self.orchestrator = orchestrator
        self._cancelled = threading.Event()

    def cancel(self) -> None:
        """Stop starting new images; images already running still finish."""

        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def list_images(self, input_dir: Union[str, Path]) -> List[Path]:
        """Image files in name order, one per report name.

        Files sharing a stem (``a.jpg`` and ``a.png``) would write the same
        report; only the first in name order is kept.
        """

        candidates = sorted(
            (entry for entry in Path(input_dir).iterdir() if self.config.is_image(entry)),
            key=lambda entry: entry.name,
        )
        owners: Dict[str, Path] = {}
        images: List[Path] = []
        for entry in candidates:
            report_name = self.config.report_name(entry)
            owner = owners.get(report_name)
            if owner is not None:
                logger.warning("Skipping %s: report %s already comes from %s", entry.name, report_name, owner.name)
                continue
            owners[report_name] = entry
            images.append(entry)
        return images

    def run(self, input_dir: Union[str, Path], output_dir: Union[str, Path]) -> int:
        """Process every image in ``input_dir`` and return the reports written."""

        input_dir = Path(input_dir)
        output_dir = Path(output_dir)
        if not input_dir.is_dir():
            raise InputDirectoryError(f"Input directory does not exist: {input_dir}")

        output_dir.mkdir(parents=True, exist_ok=True)
        images = self.list_images(input_dir)
        if not images:
            logger.warning("No image files found in %s", input_dir)

        workers = self.config.workers or os.cpu_count() or 1
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tag-harness") as executor:
            futures = [executor.submit(self._process_image, path, output_dir) for path in images]
            written = sum(1 for path, future in zip(images, futures) if self._collect(path, future))

        logger.info("Processed %d images", written)
        self._write_manifest(output_dir)
        return written

    def _collect(self, image_path: Path, future: Future[bool]) -> bool:
        while True:
            try:
                return bool(future.result())
            except KeyboardInterrupt:
                logger.warning("Interrupted; finishing images already in progress")
                self.cancel()
            except Exception:
                logger.exception("Unexpected failure while processing %s", image_path.name)
                return False

    def _process_image(self, image_path: Path, output_dir: Path) -> bool:
        if self.cancelled:
            logger.info("Skipping %s: run cancelled", image_path.name)
            return False

        logger.info("Processing: %s", image_path.name)
        result = self.orchestrator.run(image_path, self.config.families)
        output_path = output_dir / self.config.report_name(image_path)
        try:
            output_path.write_text(serialize_result(result), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to write output file %s: %s", output_path, exc)
            return False
        return True

    def _write_manifest(self, output_dir: Path) -> None:
        manifest_path = output_dir / self.config.manifest_name
        manifest = Manifest.from_names(self.config.family_names())
        try:
            manifest_path.write_text(serialize_manifest(manifest), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to write manifest %s: %s", manifest_path, exc)
            return
        logger.info("Wrote manifest: %s", manifest_path)
