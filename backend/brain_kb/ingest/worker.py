"""Background embedding jobs."""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from brain_kb.core.logging import get_logger
from brain_kb.ingest.indexer import EmbeddingIndexer

logger = get_logger(__name__)


@dataclass
class EmbeddingJob:
    document_id: str
    future: Future
    cancel_event: threading.Event


class EmbeddingWorker:
    """Run embedding generation off the request path on a bounded thread pool.

    At most one job per document is in flight; submitting a document that is
    already queued or running returns the existing future.
    """

    def __init__(self, indexer: EmbeddingIndexer, max_workers: int = 2) -> None:
        self.indexer = indexer
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="brainkb-embed")
        self._lock = threading.Lock()
        self._jobs: dict[str, EmbeddingJob] = {}
        self._closed = False

    def submit(self, document_id: str) -> Future:
        with self._lock:
            if self._closed:
                raise RuntimeError("Embedding worker has been shut down")
            job = self._jobs.get(document_id)
            if job is not None and not job.future.done():
                return job.future
            cancel_event = threading.Event()
            future = self._executor.submit(self._run, document_id, cancel_event)
            job = EmbeddingJob(document_id=document_id, future=future, cancel_event=cancel_event)
            self._jobs[document_id] = job
        future.add_done_callback(lambda done, doc_id=document_id: self._forget(doc_id, done))
        return future

    def cancel(self, document_id: str) -> bool:
        """Signal the job of ``document_id`` to stop; False when none is in flight."""
        with self._lock:
            job = self._jobs.get(document_id)
        if job is None or job.future.done():
            return False
        job.cancel_event.set()
        job.future.cancel()
        return True

    def pending(self) -> list[str]:
        with self._lock:
            return [doc_id for doc_id, job in self._jobs.items() if not job.future.done()]

    def shutdown(self, wait: bool = True) -> None:
        with self._lock:
            self._closed = True
            jobs = list(self._jobs.values())
        if not wait:
            for job in jobs:
                job.cancel_event.set()
        self._executor.shutdown(wait=wait, cancel_futures=not wait)

    def _run(self, document_id: str, cancel_event: threading.Event) -> int:
        try:
            return self.indexer.generate_embeddings_for_doc(document_id, cancel_event=cancel_event)
        except Exception:
            logger.exception("Embedding job failed", extra={"ctx_doc_id": document_id})
            raise

    def _forget(self, document_id: str, future: Future) -> None:
        with self._lock:
            job = self._jobs.get(document_id)
            if job is not None and job.future is future:
                del self._jobs[document_id]


__all__ = ["EmbeddingWorker", "EmbeddingJob"]
