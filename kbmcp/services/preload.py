"""Concurrent multi-document fetch with per-document role labelling.

A batch never aborts on a single failure: every requested id lands either
in :attr:`PreloadResult.succeeded` or in :attr:`PreloadResult.failed`, in
request order.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Sequence

from ..core.formatting import format_document
from ..core.model import FormattedBlock, OutputFormat, PreloadFailure, PreloadResult
from ..core.overlay import CorrectionGuide
from ..core.roles import RoleResolver
from ..errors import KnowledgeBaseError, PreconditionError
from ..telemetry import log_event
from .documents import DocumentReader

logger = logging.getLogger(__name__)

MAX_BATCH_DOCUMENTS = 10


def _failure_message(exc: BaseException) -> str:
    return str(exc) or type(exc).__name__


class Preloader:
    """Fetch, classify and format documents for an assistant's context."""

    def __init__(
        self,
        reader: DocumentReader,
        roles: RoleResolver,
        guide: CorrectionGuide | None = None,
    ) -> None:
        self._reader = reader
        self._roles = roles
        self._guide = guide

    async def load(
        self,
        document_id: str,
        output_format: OutputFormat = OutputFormat.MARKDOWN,
        *,
        with_corrections: bool = True,
    ) -> FormattedBlock:
        """Fetch a single document and render it with its role."""
        document = await self._reader.read(document_id, output_format)
        role = self._roles.resolve_role(document.id)
        corrections = None
        if with_corrections and self._guide is not None:
            corrections = self._guide.overlay_for(document.id)
        text = format_document(document, role, corrections=corrections)
        return FormattedBlock(document=document, role=role, text=text)

    async def preload(
        self,
        ids: Sequence[str],
        output_format: OutputFormat = OutputFormat.MARKDOWN,
        *,
        enforce_cap: bool = True,
        with_corrections: bool = True,
    ) -> PreloadResult:
        """Fetch ``ids`` concurrently and fold the outcomes in request order.

        Raises :class:`PreconditionError` before touching the backend when
        ``ids`` is empty or, with ``enforce_cap``, longer than
        :data:`MAX_BATCH_DOCUMENTS`.
        """
        ids = list(ids)
        if not ids:
            raise PreconditionError("At least one document ID is required")
        if enforce_cap and len(ids) > MAX_BATCH_DOCUMENTS:
            raise PreconditionError(
                f"Maximum {MAX_BATCH_DOCUMENTS} documents per request to avoid overloading context"
            )
        started = time.monotonic()
        outcomes = await asyncio.gather(
            *(
                self.load(doc_id, output_format, with_corrections=with_corrections)
                for doc_id in ids
            ),
            return_exceptions=True,
        )
        result = PreloadResult()
        for doc_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, FormattedBlock):
                result.succeeded.append(outcome)
                continue
            if not isinstance(outcome, Exception):
                raise outcome
            message = _failure_message(outcome)
            logger.warning("Failed to load document %s: %s", doc_id, message)
            result.failed.append(PreloadFailure(document_id=doc_id, message=message))
        log_event(
            "PRELOAD_DONE",
            {
                "requested": len(ids),
                "succeeded": result.succeeded_ids,
                "failed": result.failed_ids,
            },
            start_time=started,
        )
        return result

    async def preload_critical(
        self,
        ids: Sequence[str],
        output_format: OutputFormat = OutputFormat.MARKDOWN,
    ) -> PreloadResult:
        """Preload for a workflow; never raises.

        Per-document corrections are left out; workflows inject the full
        overlay once. When the backend cannot even be acquired every id
        is reported as failed.
        """
        ids = list(ids)
        if not ids:
            return PreloadResult()
        try:
            return await self.preload(
                ids,
                output_format,
                enforce_cap=False,
                with_corrections=False,
            )
        except (KnowledgeBaseError, OSError) as exc:
            message = _failure_message(exc)
            logger.warning("Could not preload documents: %s", message)
            return PreloadResult(
                failed=[PreloadFailure(document_id=doc_id, message=message) for doc_id in ids]
            )


__all__ = ["MAX_BATCH_DOCUMENTS", "Preloader"]
