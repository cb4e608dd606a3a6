"""
Constants for SmartInhale device data and adherence metrics.

Wire-format values mirror the SmartInhale firmware's compact binary
inhalation record.
"""

import struct

from pathlib import Path

# ============================================================================
# Binary Inhalation Record
# ============================================================================

# ts (uint64 ms) | strength (float32) | duration (float32, s) | flags (uint8)
BINARY_EVENT_FORMAT = ">QffB"
BINARY_EVENT_SIZE = struct.calcsize(BINARY_EVENT_FORMAT)  # 17 bytes

FLAG_SHAKE_OK = 0x01
FLAG_ORIENTATION_OK = 0x02

# ============================================================================
# Technique & Adherence
# ============================================================================

# Device units, uncalibrated
CORRECT_STRENGTH_THRESHOLD = 0.5
EXPECTED_DOSES_PER_DAY = 2
ADHERENCE_CAP_PERCENT = 100

TECHNIQUE_LABEL_CORRECT = "Correct"
TECHNIQUE_LABEL_IMPROPER = "Improper"

# ============================================================================
# Event Store
# ============================================================================

DEFAULT_STORE_CAPACITY = 1000
RECENT_EVENTS_LIMIT = 50

# Blob store keys
EVENTS_KEY = "si_events"
PATIENTS_KEY = "si_patients"

DEFAULT_PATIENT = {"id": "p1", "name": "SivaReddy", "deviceId": "device-001"}

# ============================================================================
# Simulation
# ============================================================================

SIMULATED_EVENT_COUNT = 5
SIMULATION_WINDOW_MS = 3_600_000  # within the last hour
SIMULATED_FLAG_OK_PROBABILITY = 0.7

TEST_EVENT = {
    "strength": 0.8,
    "duration": 1.2,
    "shakeOk": True,
    "orientationOk": True,
}

# ============================================================================
# Export
# ============================================================================

CSV_COLUMNS = ["ts", "strength", "duration", "shakeOk", "orientationOk"]
DEFAULT_CSV_FILENAME = "smartinhale_events.csv"

# ============================================================================
# Default Settings
# ============================================================================

# Database stored in user's home directory
DEFAULT_DATA_DIR = Path.home() / ".smartinhale"
DEFAULT_DATABASE_PATH = str(DEFAULT_DATA_DIR / "smartinhale.db")
SQLITE_BUSY_TIMEOUT_MS = 5000

# Logging configuration
DEFAULT_LOG_DIR = DEFAULT_DATA_DIR / "logs"
DEFAULT_LOG_FILE = "smartinhale.log"
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_LOG_BACKUP_COUNT = 5

MILLISECONDS_PER_SECOND = 1000
