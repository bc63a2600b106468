"""Physical constants, timing, thresholds, and lag rates for the engine model."""

# =============================================================================
# Timing
# =============================================================================

TICK_MS = 20                 # fixed simulation period
AMBIENT_TEMP_C = 20.0

# =============================================================================
# Failures
# =============================================================================

FAILURE_IDS = ["engine_fire", "oil_pump_failure", "fuel_pump_failure", "vib_sensor_fault"]

FAILURE_LABELS = {
    "engine_fire":       "Engine Fire",
    "oil_pump_failure":  "Oil Pump Fail",
    "fuel_pump_failure": "Fuel Pump Fail",
    "vib_sensor_fault":  "Vib Sensor Fault",
}

# Cascade dwell limits (ms of continuous condition before forced seizure)
OIL_FAILURE_SEIZE_MS = 5000
FIRE_SEIZE_MS = 7500
OIL_CASCADE_MIN_CORE = 5.0   # % N2 below which oil starvation does no damage

# =============================================================================
# Fire suppression
# =============================================================================

BOTTLES = ("bottle1", "bottle2")
EXTINGUISH_DELAY_MS = 1000
EXTINGUISH_PROBABILITY = 0.9

# =============================================================================
# Operating-mode setpoints (core speed %)
# =============================================================================

MOTORING_N2 = 25.0           # max starter motoring speed
LIGHT_OFF_N2 = 15.0          # starter + fuel + ignition light-off threshold
SELF_SUSTAIN_N2 = 58.0
STARTER_ASSIST_N2 = 60.0
STABLE_IDLE_N2 = 55.0        # STARTING -> IDLE
IDLE_N2 = 60.0
THROTTLE_N2_GAIN = 0.4       # N2 = 60 + throttle * 0.4
RUNNING_THROTTLE = 5.0       # throttle above this is RUNNING
SPOOLED_DOWN_N2 = 2.0        # SHUTDOWN -> OFF

# =============================================================================
# Core speed lag rates
# =============================================================================

N2_RATE_DEFAULT = 0.1
N2_RATE_STARTER = 0.05       # starter torque is lower
N2_RATE_STARTING = 0.08      # combustion torque
N2_RATE_RUNNING = 0.2
N2_RATE_SPOOL_DOWN = 0.05
N2_RATE_SEIZED = 1.0

# =============================================================================
# Other lag rates and model coefficients
# =============================================================================

N1_RATE = 0.08
N1_BYPASS_SLOPE = 1.05       # N1 = (N2 - 10) * 1.05
N1_BYPASS_OFFSET = 10.0
N1_N2_CAP = 1.1

EGT_RATE = 0.04
EGT_SEIZED_FIRE = 1200.0
EGT_SEIZED = 200.0
EGT_FIRE = 1250.0
EGT_FIRE_JITTER = 50.0
EGT_START_HOT = 750.0        # start spike before airflow stabilises
EGT_START_HOT_BELOW_N2 = 40.0
EGT_START = 550.0
EGT_RUN_BASE = 400.0
EGT_RUN_SLOPE = 12.0         # °C per % N2 above idle
EGT_OVERFUEL_THROTTLE = 95.0
EGT_OVERFUEL_DELTA = 50.0
EGT_RESIDUAL_SLOPE = 2.0
EGT_REDLINE = 950.0

FF_STARTING = 400.0          # kg/h
FF_BASE = 300.0
FF_SPAN = 4500.0
FF_EXPONENT = 2.5
FF_N2_OFFSET = 15.0
FF_N2_RANGE = 85.0

OIL_P_SLOPE = 1.1
OIL_P_MAX = 90.0             # psi
OIL_P_JITTER = 1.0

OIL_T_RATE = 0.005           # large thermal mass
OIL_T_SLOPE = 0.9
OIL_T_FIRE_DELTA = 50.0
OIL_T_SEIZED = 200.0

VIB_SLOPE = 0.8              # ips at 100 % N1
VIB_NOISE = 0.1
VIB_COLD_START = 0.5
VIB_COLD_OIL_T = 30.0
VIB_SENSOR_FAULT = 4.5

BLEED_RATE = 0.2
BLEED_N2_MIN = 20.0
BLEED_SLOPE = 0.6
BLEED_PACK_LOAD = 4.0        # psi drawn per running pack

# =============================================================================
# Fuel system (tank variant)
# =============================================================================

TANK_CAPACITY_KG = 5000.0
DUMP_RATE_KG_S = 25.0

# =============================================================================
# Telemetry validation limits (physical envelope of the model)
# =============================================================================

TELEMETRY_LIMITS = {
    "fan_speed":    (0.0, 110.0),    # %
    "core_speed":   (0.0, 100.5),    # %
    "egt":          (AMBIENT_TEMP_C, 1300.0),
    "fuel_flow":    (0.0, 4850.0),   # kg/h
    "oil_pressure": (0.0, 91.0),     # psi
    "oil_temp":     (0.0, 200.5),
    "vibration":    (0.0, 6.1),      # ips
    "bleed_psi":    (0.0, 48.5),
}
