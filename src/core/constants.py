"""Core constants used across registry modules.

This module centralizes source names, file layouts, and defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

SPECIALTIES_SOURCE = "specialties"
COMPOSITIONS_SOURCE = "compositions"
PRESENTATIONS_SOURCE = "presentations"
CONDITIONS_SOURCE = "conditions"
GENERIC_GROUPS_SOURCE = "generic_groups"
SOURCE_NAMES = (
    SPECIALTIES_SOURCE,
    COMPOSITIONS_SOURCE,
    PRESENTATIONS_SOURCE,
    CONDITIONS_SOURCE,
    GENERIC_GROUPS_SOURCE,
)
SOURCE_FILE_NAMES = {
    SPECIALTIES_SOURCE: "CIS_bdpm.txt",
    COMPOSITIONS_SOURCE: "CIS_COMPO_bdpm.txt",
    PRESENTATIONS_SOURCE: "CIS_CIP_bdpm.txt",
    CONDITIONS_SOURCE: "CIS_CPD_bdpm.txt",
    GENERIC_GROUPS_SOURCE: "CIS_GENER_bdpm.txt",
}
DEFAULT_SOURCE_ROOT = "https://base-donnees-publique.medicaments.gouv.fr/download/file"

FIELD_SEPARATOR = "\t"
ROUTE_SEPARATOR = ";"
SPECIALTY_MIN_COLUMNS = 12
COMPOSITION_MIN_COLUMNS = 7
PRESENTATION_MIN_COLUMNS = 10
CONDITION_MIN_COLUMNS = 2
GENERIC_GROUP_MIN_COLUMNS = 4
SURVEILLANCE_YES = "oui"

REJECT_MISSING_COLUMNS = "missing_columns"
REJECT_INVALID_INTEGER = "invalid_integer"
REJECT_INVALID_PRICE = "invalid_price"
REJECT_INVALID_ROLE = "invalid_role"
REJECT_GROUP_ID_MISMATCH = "group_id_mismatch"
REJECT_RAW_LINE_PREVIEW = 120

GENERIC_ROLE_LABELS = {
    0: "Princeps",
    1: "Générique",
    2: "Génériques par complémentarité posologique",
    3: "Générique substituable",
    4: "Générique substituable",
}
GENERIC_ROLE_OTHER_LABEL = "Autre"
REFERENCE_ROLE_CODE = 0

WARNING_DUPLICATE_MEMBERSHIP = "duplicate_membership"
WARNING_LABEL_CONFLICT = "label_conflict"

DEFAULT_FETCH_TIMEOUT_SECONDS = 300.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 30.0
DEFAULT_REFRESH_INTERVAL_SECONDS = 43200.0
DEFAULT_MAX_REJECT_RATIO = 0.5
DEFAULT_LOG_LEVEL = "info"
SUPPORTED_LOG_LEVELS = ("debug", "info", "warning", "error")
HTTP_USER_AGENT = "medregistry/0.1 (+https://base-donnees-publique.medicaments.gouv.fr)"

HEALTH_STATUS_HEALTHY = "healthy"
HEALTH_STATUS_DEGRADED = "degraded"
HEALTH_STATUS_UNHEALTHY = "unhealthy"
HEALTH_UNHEALTHY_AGE_HOURS = 48.0
HEALTH_DEGRADED_AGE_HOURS = 24.0
HEALTH_REFRESHING_DEGRADED_AGE_HOURS = 6.0

REFRESH_STATUS_SUCCEEDED = "succeeded"
REFRESH_STATUS_FAILED = "failed"
REFRESH_STATUS_SKIPPED = "skipped"
