"""Shared constants for the integrator."""

import re

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG = 2
EXIT_UNREACHABLE = 3
EXIT_MERGE_FAILED = 4

# Tracking modes for the baseline tip
TRACK_TAG = "tag"
TRACK_HEAD = "head"
VALID_TRACK_MODES = (TRACK_TAG, TRACK_HEAD)

# What to do when nothing changed since the last run
NOOP_ASK = "ask"
NOOP_ABORT = "abort"
NOOP_CONTINUE = "continue"
VALID_NOOP_POLICIES = (NOOP_ASK, NOOP_ABORT, NOOP_CONTINUE)

DEFAULT_BASELINE = "origin"
DEFAULT_REMOTE_BRANCH = "master"
DEFAULT_INTEGRATION_BRANCH = "integration"
DEFAULT_MANIFEST_PATH = "Next/SHA1s"
DEFAULT_MERGE_LOG = "merge.log"

# Config file locations, in lookup order after an explicit flag
CONFIG_DIRNAME = ".integrator"
BRANCHES_FILENAME = "branches.conf"
SETTINGS_FILENAME = "integrator.env"
USER_CONFIG_DIR = "~/.config/integrator"
SYSTEM_CONFIG_DIR = "/etc/integrator"

# Override refs substitute for a topic's normal source
OVERRIDE_PREFIX = "override/"

# Resolution cache layout inside the .git directory
RERERE_MOUNT_DIRNAME = "rerere-share"
RERERE_NATIVE_DIRNAME = "rr-cache"
RERERE_COMMIT_MESSAGE = "Update rerere cache"

MERGE_MESSAGE_TEMPLATE = "Merge remote-tracking branch '{source}'"
MANIFEST_COMMIT_MESSAGE = "Add topic SHA1 manifest"
ROTATION_TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"

# Report files written by the report generator
MERGED_REPORT_FILENAME = "topic_SHA1"
CONFLICT_REPORT_FILENAME = "topic_conflict"

# Merge log protocol
MERGE_LOGGER_NAME = "integrator.mergelog"
MERGE_SUCCESS_PATTERN = re.compile(
    r'^Merge successful : ([^:]+?) : ([a-fA-F0-9]{7,40})(?: : (\d+))?$'
)
MERGE_CONFLICT_PATTERN = re.compile(
    r'^Merge conflict : ([^:]+?) : ([a-fA-F0-9]{7,40})$'
)

LOCK_FILENAME = "integrator.lock"
DEFAULT_LOCK_TIMEOUT = 10
