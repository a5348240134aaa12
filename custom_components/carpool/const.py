# File: const.py
"""Constants for the Carpool integration.

This file centralizes configuration keys, defaults, storage collection names,
service names, event signal suffixes, and translation keys for consistency
across the integration.
"""

import logging

from homeassistant.const import Platform

# ------------------------------------------------------------------------------------------------
# General / Integration Information
# ------------------------------------------------------------------------------------------------
# Integration Name
CARPOOL_TITLE = "Carpool"

# Integration Domain
DOMAIN = "carpool"

# Logger
LOGGER = logging.getLogger(__package__)

# Supported Platforms
PLATFORMS = [
    Platform.SENSOR,
]

# Coordinator
COORDINATOR = "coordinator"
COORDINATOR_SUFFIX = "_coordinator"

# Storage and Versioning
STORE = "store"
STORAGE_KEY = "carpool_data"
STORAGE_VERSION = 1

# Optimistic commit retries when the store revision moves underneath a commit
COMMIT_MAX_ATTEMPTS = 3

# ------------------------------------------------------------------------------------------------
# Calendar
# ------------------------------------------------------------------------------------------------
DAY_MONDAY = "monday"
DAY_TUESDAY = "tuesday"
DAY_WEDNESDAY = "wednesday"
DAY_THURSDAY = "thursday"
DAY_FRIDAY = "friday"

# Scan/display order of the working week
WEEKDAYS = [DAY_MONDAY, DAY_TUESDAY, DAY_WEDNESDAY, DAY_THURSDAY, DAY_FRIDAY]

SLOT_DROP_OFF = "drop_off"
SLOT_PICK_UP = "pick_up"
SLOT_TYPES = [SLOT_DROP_OFF, SLOT_PICK_UP]

# ------------------------------------------------------------------------------------------------
# Configuration Keys
# ------------------------------------------------------------------------------------------------
CONF_PARTICIPANTS = "participants"
CONF_NOTIFY_SERVICE = "notify_service"
CONF_ENABLE_PERSISTENT_NOTIFICATIONS = "enable_persistent_notifications"

CFOF_INPUT_TITLE = "title"
CFOF_INPUT_PARTICIPANTS = "participants"

CONFIG_FLOW_STEP_USER = "user"
OPTIONS_FLOW_STEP_INIT = "init"

DEFAULT_ENABLE_PERSISTENT_NOTIFICATIONS = True
DEFAULT_NOTIFY_SERVICE = ""
PARTICIPANT_SEPARATOR = ","

# ------------------------------------------------------------------------------------------------
# Storage Layout
# ------------------------------------------------------------------------------------------------
DATA_META = "meta"
DATA_META_REVISIONS = "revisions"
DATA_COLLECTIONS = "collections"

COLLECTION_SELECTIONS = "carpoolSelections"
COLLECTION_HOLIDAYS = "schoolHolidays"
COLLECTIONS = [COLLECTION_SELECTIONS, COLLECTION_HOLIDAYS]

# Record fields shared by every collection
DATA_RECORD_ID = "id"
DATA_RECORD_CREATED_AT = "created_at"

# SlotClaim records
DATA_CLAIM_PARTICIPANT = "participant"
DATA_CLAIM_DAY = "day"
DATA_CLAIM_DROP_OFF = SLOT_DROP_OFF
DATA_CLAIM_PICK_UP = SLOT_PICK_UP

# HolidayMark records
DATA_HOLIDAY_DAY = "day"

# Batch write operations
BATCH_OP = "op"
BATCH_OP_INSERT = "insert"
BATCH_OP_DELETE = "delete"
BATCH_RECORD = "record"
BATCH_ID = "id"

# WeekSchedule rows
SCHEDULE_DROP_OFF_OWNER = "drop_off_owner"
SCHEDULE_PICK_UP_OWNER = "pick_up_owner"
SCHEDULE_IS_HOLIDAY = "is_holiday"

# ------------------------------------------------------------------------------------------------
# Commit Results
# ------------------------------------------------------------------------------------------------
FAILURE_STORE_UNAVAILABLE = "store_unavailable"
FAILURE_CONFLICT = "conflict"
FAILURE_INVALID_PROPOSAL = "invalid_proposal"
FAILURE_NOT_FOUND = "not_found"

OPERATION_SUBMIT_CLAIMS = "submit_claims"
OPERATION_REMOVE_CLAIM = "remove_claim"
OPERATION_CLEAR_CLAIMS = "clear_claims"
OPERATION_TOGGLE_HOLIDAY = "toggle_holiday"

# ------------------------------------------------------------------------------------------------
# Events (instance-scoped dispatcher signals)
# ------------------------------------------------------------------------------------------------
SIGNAL_SUFFIX_COLLECTION_CHANGED = "collection_changed"
SIGNAL_SUFFIX_CLAIMS_COMMITTED = "claims_committed"
SIGNAL_SUFFIX_CLAIMS_SUPERSEDED = "claims_superseded"
SIGNAL_SUFFIX_CLAIMS_REMOVED = "claims_removed"
SIGNAL_SUFFIX_HOLIDAY_TOGGLED = "holiday_toggled"
SIGNAL_SUFFIX_OPERATION_FAILED = "operation_failed"

# ------------------------------------------------------------------------------------------------
# Services
# ------------------------------------------------------------------------------------------------
SERVICE_PREVIEW_CLAIMS = "preview_claims"
SERVICE_SUBMIT_CLAIMS = "submit_claims"
SERVICE_REMOVE_CLAIM = "remove_claim"
SERVICE_CLEAR_CLAIMS = "clear_claims"
SERVICE_TOGGLE_HOLIDAY = "toggle_holiday"

FIELD_PARTICIPANT = "participant"
FIELD_CLAIMS = "claims"
FIELD_DAY = "day"
FIELD_DROP_OFF = SLOT_DROP_OFF
FIELD_PICK_UP = SLOT_PICK_UP
FIELD_ALLOW_OVERRIDE = "allow_override"
FIELD_CLAIM_ID = "claim_id"

# Service responses
RESPONSE_CLEAN = "clean"
RESPONSE_CONFLICTS = "conflicts"
RESPONSE_CREATED_IDS = "created_ids"
RESPONSE_DELETED_IDS = "deleted_ids"
RESPONSE_SLOT_TYPE = "slot_type"
RESPONSE_CURRENT_OWNER = "current_owner"
RESPONSE_IS_HOLIDAY = "is_holiday"

# ------------------------------------------------------------------------------------------------
# Sensors
# ------------------------------------------------------------------------------------------------
DAY_STATE_OPEN = "open"
DAY_STATE_PARTIAL = "partial"
DAY_STATE_COVERED = "covered"
DAY_STATE_HOLIDAY = "holiday"
DAY_STATES = [DAY_STATE_OPEN, DAY_STATE_PARTIAL, DAY_STATE_COVERED, DAY_STATE_HOLIDAY]

SENSOR_SUFFIX_DAY_SCHEDULE = "_day_schedule"
SENSOR_SUFFIX_PARTICIPANT_CLAIMS = "_participant_claims"

ATTR_DAY = "day"
ATTR_DROP_OFF = SLOT_DROP_OFF
ATTR_PICK_UP = SLOT_PICK_UP
ATTR_IS_HOLIDAY = "is_holiday"
ATTR_PARTICIPANT = "participant"
ATTR_CLAIMS = "claims"

TRANS_KEY_SENSOR_DAY_SCHEDULE = "day_schedule"
TRANS_KEY_SENSOR_PARTICIPANT_CLAIMS = "participant_claims"

# ------------------------------------------------------------------------------------------------
# Notifications
# ------------------------------------------------------------------------------------------------
NOTIFY_DOMAIN = "notify"
NOTIFY_TITLE = "title"
NOTIFY_MESSAGE = "message"
NOTIFY_DATA = "data"
NOTIFY_TAG = "tag"

NOTIFICATION_ID_PREFIX = "carpool_"
NOTIFICATION_TITLE = "Carpool"

DISPLAY_DOT = "."

# ------------------------------------------------------------------------------------------------
# Translation Keys
# ------------------------------------------------------------------------------------------------
TRANS_KEY_ERROR_SINGLE_INSTANCE = "single_instance_allowed"
TRANS_KEY_ERROR_NO_PARTICIPANTS = "no_participants"
TRANS_KEY_ERROR_DUPLICATE_PARTICIPANTS = "duplicate_participants"
TRANS_KEY_ERROR_INVALID_NOTIFY_SERVICE = "invalid_notify_service"

TRANS_KEY_ERROR_NO_ENTRY = "no_entry"
TRANS_KEY_ERROR_CONFLICT = "conflict"
TRANS_KEY_ERROR_INVALID_PROPOSAL = "invalid_proposal"
TRANS_KEY_ERROR_NOT_FOUND = "not_found"
TRANS_KEY_ERROR_STORE_UNAVAILABLE = "store_unavailable"

# Operation failure reason -> service error translation key
TRANS_KEY_BY_FAILURE = {
    FAILURE_CONFLICT: TRANS_KEY_ERROR_CONFLICT,
    FAILURE_INVALID_PROPOSAL: TRANS_KEY_ERROR_INVALID_PROPOSAL,
    FAILURE_NOT_FOUND: TRANS_KEY_ERROR_NOT_FOUND,
    FAILURE_STORE_UNAVAILABLE: TRANS_KEY_ERROR_STORE_UNAVAILABLE,
}

# Labels
LABEL_DAY = {
    DAY_MONDAY: "Monday",
    DAY_TUESDAY: "Tuesday",
    DAY_WEDNESDAY: "Wednesday",
    DAY_THURSDAY: "Thursday",
    DAY_FRIDAY: "Friday",
}
LABEL_SLOT = {
    SLOT_DROP_OFF: "drop-off",
    SLOT_PICK_UP: "pick-up",
}
