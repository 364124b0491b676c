"""Semantic event constants for structured logging.

All log events should use these constants rather than magic strings to ensure
consistency and enable reliable querying of the log files.
"""

# Catalog events
CATALOG_LOAD_STARTED = "catalog_load_started"
CATALOG_LOADED = "catalog_loaded"
CATALOG_LOAD_FAILED = "catalog_load_failed"
SELECTION_PRUNED = "selection_pruned"

# Intent events
MODE_CHANGED = "mode_changed"
SELECTION_CHANGED = "selection_changed"
PROMPT_EDITED = "prompt_edited"
STATE_TRANSITION = "state_transition"

# Execution events
VALIDATION_FAILED = "validation_failed"
EXECUTION_STARTED = "execution_started"
EXECUTION_COMPLETED = "execution_completed"
EXECUTION_FAILED = "execution_failed"
EXECUTION_REFUSED_IN_FLIGHT = "execution_refused_in_flight"

# HTTP client events
API_CALL_STARTED = "api_call_started"
API_CALL_COMPLETED = "api_call_completed"
API_CALL_ERROR = "api_call_error"
