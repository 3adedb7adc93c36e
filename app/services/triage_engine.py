"""
Urgent-complaint triage: text extraction, concurrent urgency classification
and viewer scoping
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import ValidationError

from app.config import settings
from app.exceptions import DataUnavailableError
from app.logging_config import logger
from app.models import ClassificationResult, Complaint, TriageQueueEntry, VisibilityScope
from app.services.classification_cache import ClassificationCache
from app.services.urgency_classifier import UrgencyClassifier

ClassifyFn = Callable[[str], Awaitable[Any]]

# Text-bearing complaint fields, highest priority first. Forms populate at
# most one of them; the first non-empty value is the complaint's text.
TEXT_FIELD_PRIORITY: Tuple[str, ...] = (
    "concern_description",
    "incident_description",
    "facility_description",
    "concern_feedback",
    "other_description",
    "additional_context",
    "additional_notes",
    "impact_experience",
    "facility_safety",
)

SNIPPET_LENGTH = 120


def extract_text(complaint: Complaint, fields: Sequence[str] = TEXT_FIELD_PRIORITY) -> str:
    """
    Return the first non-empty text field of a complaint

    Args:
        complaint: Complaint to read
        fields: Field names in priority order

    Returns:
        The field's text, or an empty string when none is populated
    """
    for name in fields:
        value = getattr(complaint, name, None)
        if value:
            return str(value)
    return ""


def _as_result(raw: Any) -> Optional[ClassificationResult]:
    """Accept classifier answers as results, dicts or None"""
    if raw is None or isinstance(raw, ClassificationResult):
        return raw
    if isinstance(raw, dict):
        if raw.get("urgency") is None:
            return None
        try:
            return ClassificationResult.model_validate(raw)
        except ValidationError:
            logger.debug(f"Ignoring unknown urgency label: {raw.get('urgency')}")
            return None
    return None


def _empty_stats(total: int = 0) -> Dict[str, int]:
    return {
        'total': total,
        'urgent': 0,
        'queued': 0,
        'filtered_not_urgent': 0,
        'filtered_scope': 0,
        'classification_errors': 0,
        'cache_hits': 0,
    }


async def compute_urgent_queue(
    complaints: Sequence[Complaint],
    scope: VisibilityScope,
    classify: ClassifyFn,
    max_concurrent: Optional[int] = None,
    timeout: Optional[float] = None,
    cache: Optional[ClassificationCache] = None,
    text_fields: Sequence[str] = TEXT_FIELD_PRIORITY,
) -> Tuple[List[TriageQueueEntry], Dict[str, int]]:
    """
    Build the urgent queue for one viewer

    Every complaint is classified once (concurrently, bounded by
    ``max_concurrent``). Only Critical/High complaints visible to ``scope``
    are kept, in input order.

    Args:
        complaints: Complaints in source order
        scope: Viewer scope
        classify: Async text classifier
        max_concurrent: Maximum in-flight classifier calls
        timeout: Per-call timeout in seconds
        cache: Optional memoization keyed by complaint id and text hash
        text_fields: Text field priority list

    Returns:
        Tuple of (queue entries, statistics dictionary)
    """
    max_concurrent = max_concurrent or settings.MAX_CONCURRENT_CLASSIFICATIONS
    timeout = timeout if timeout is not None else settings.CLASSIFY_TIMEOUT
    semaphore = asyncio.Semaphore(max_concurrent)
    stats = _empty_stats(len(complaints))

    async def classify_one(complaint: Complaint, text: str) -> Optional[ClassificationResult]:
        if cache is not None and cache.contains(complaint.id, text):
            stats['cache_hits'] += 1
            return cache.get(complaint.id, text)

        async with semaphore:
            try:
                raw = await asyncio.wait_for(classify(text), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Urgency classification timed out for complaint {complaint.id}")
                stats['classification_errors'] += 1
                return None
            except Exception as e:
                logger.warning(f"Urgency classification failed for complaint {complaint.id}: {str(e)}")
                stats['classification_errors'] += 1
                return None

        result = _as_result(raw)
        if cache is not None:
            cache.put(complaint.id, text, result)
        return result

    texts = [extract_text(complaint, text_fields) for complaint in complaints]
    results = await asyncio.gather(
        *(classify_one(complaint, text) for complaint, text in zip(complaints, texts))
    )

    queue: List[TriageQueueEntry] = []
    for complaint, text, result in zip(complaints, texts, results):
        if result is None or not result.urgency.is_urgent:
            stats['filtered_not_urgent'] += 1
            continue
        stats['urgent'] += 1

        if not scope.matches(complaint):
            stats['filtered_scope'] += 1
            continue

        queue.append(TriageQueueEntry(
            complaint_id=complaint.id,
            snippet=text[:SNIPPET_LENGTH],
            category=complaint.category,
            submission_date=complaint.submission_date,
            urgency=result.urgency,
            source=complaint,
        ))

    stats['queued'] = len(queue)
    logger.info(
        f"Triage completed - Total: {stats['total']}, Urgent: {stats['urgent']}, "
        f"Queued: {stats['queued']}, Filtered (scope): {stats['filtered_scope']}, "
        f"Classification errors: {stats['classification_errors']}"
    )
    return queue, stats


@dataclass
class TriageRun:
    """Outcome of one engine refresh"""
    entries: List[TriageQueueEntry] = field(default_factory=list)
    stats: Dict[str, int] = field(default_factory=_empty_stats)
    error: Optional[DataUnavailableError] = None
    discarded: bool = False

    @property
    def data_unavailable(self) -> bool:
        return self.error is not None


class TriageEngine:
    """Owns the current urgent queue for one consumer (e.g. a dashboard view)"""

    def __init__(
        self,
        source,
        classifier: Union[UrgencyClassifier, ClassifyFn],
        cache: Optional[ClassificationCache] = None,
        max_concurrent: Optional[int] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize triage engine

        Args:
            source: Object exposing async ``list_complaints()``
            classifier: Urgency classifier or bare async classify function
            cache: Optional classification memoization
            max_concurrent: Maximum in-flight classifier calls
            timeout: Per-call classification timeout in seconds
        """
        self.source = source
        self.classify: ClassifyFn = (
            classifier.classify if isinstance(classifier, UrgencyClassifier) else classifier
        )
        self.cache = cache
        self.max_concurrent = max_concurrent
        self.timeout = timeout

        self.queue: List[TriageQueueEntry] = []
        self.last_error: Optional[DataUnavailableError] = None
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._closed = False
        logger.info("Triage engine initialized")

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(self, scope: VisibilityScope) -> TriageRun:
        """
        Fetch complaints and compute the queue without touching engine state

        Fetch failures are logged and reported in ``TriageRun.error`` with an
        empty queue; they never propagate.
        """
        try:
            complaints = await self.source.list_complaints()
        except DataUnavailableError as e:
            logger.error(f"Complaint data unavailable: {str(e)}")
            return TriageRun(error=e)
        except Exception as e:
            logger.error(f"Error fetching complaints: {str(e)}")
            return TriageRun(error=DataUnavailableError("complaints", str(e)))

        entries, stats = await compute_urgent_queue(
            complaints,
            scope,
            self.classify,
            max_concurrent=self.max_concurrent,
            timeout=self.timeout,
            cache=self.cache,
        )
        return TriageRun(entries=entries, stats=stats)

    async def refresh(self, scope: VisibilityScope) -> TriageRun:
        """
        Recompute and publish the queue

        Results of a refresh that was superseded by a newer one, or that
        finished after ``close()``, are discarded instead of published.
        """
        if self._closed:
            raise RuntimeError("Triage engine is closed")

        self._generation += 1
        generation = self._generation
        task = asyncio.ensure_future(self.run(scope))
        self._task = task

        try:
            result = await task
        except asyncio.CancelledError:
            if self._closed and task.cancelled():
                logger.info("Triage refresh cancelled by close()")
                return TriageRun(discarded=True)
            raise
        finally:
            if self._task is task:
                self._task = None

        if self._closed or generation != self._generation:
            logger.info("Discarding stale triage results")
            result.discarded = True
            return result

        self.queue = result.entries
        self.last_error = result.error
        return result

    def close(self):
        """Tear down the consumer: cancel in-flight work and ignore late results"""
        self._closed = True
        if self._task is not None and not self._task.done():
            self._task.cancel()
        logger.info("Triage engine closed")
