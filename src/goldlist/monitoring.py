"""Monitoring configuration for the application."""
from prometheus_client import Counter, start_http_server

# Word management metrics
words_added = Counter(
    "goldlist_words_added_total",
    "Total number of words written into notebooks",
)

notebooks_created = Counter(
    "goldlist_notebooks_created_total",
    "Total number of notebooks created",
)

# Review metrics
reviews_recorded = Counter(
    "goldlist_reviews_total",
    "Total number of review outcomes recorded",
    ["outcome"],
)

words_learned = Counter(
    "goldlist_words_learned_total",
    "Total number of words distilled out as learned",
)

stage_promotions = Counter(
    "goldlist_stage_promotions_total",
    "Total number of words promoted to the next stage",
    ["stage"],
)

leeches = Counter(
    "goldlist_leeches_total",
    "Total number of words that failed the gold stage four times",
)

# Notification metrics
reminders_sent = Counter(
    "goldlist_reminders_sent_total",
    "Total number of review reminders delivered",
)

# Error metrics
error_count = Counter(
    "goldlist_errors_total",
    "Total number of errors encountered",
    ["error_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
