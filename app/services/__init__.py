# Business logic services package
from .urgency_classifier import OpenAIUrgencyClassifier, SentimentUrgencyClassifier, UrgencyClassifier
from .classification_cache import ClassificationCache
from .triage_engine import TriageEngine, compute_urgent_queue, extract_text
from .analytics_aggregator import AnalyticsAggregator, aggregate
from .notification_ledger import NotificationLedger
from .export_service import ExportService

__all__ = [
    "UrgencyClassifier",
    "OpenAIUrgencyClassifier",
    "SentimentUrgencyClassifier",
    "ClassificationCache",
    "TriageEngine",
    "compute_urgent_queue",
    "extract_text",
    "AnalyticsAggregator",
    "aggregate",
    "NotificationLedger",
    "ExportService",
]
