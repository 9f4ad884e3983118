"""Internal constants shared across the library."""

PROVIDER = "tesla"
MAKE = "Tesla"

API_BASE_URL = "https://fleet-api.prd.na.vn.cloud.tesla.com"
AUTH_BASE_URL = "https://auth.tesla.com"
REDIRECT_URI = "https://localhost:3000/callback"
AUTHORIZE_PATH = "/oauth2/v3/authorize"
TOKEN_PATH = "/oauth2/v3/token"
USER_AGENT = "evconnect/0.3"

# Values shipped in example configuration; treated as "not configured".
PLACEHOLDER_CLIENT_ID = "YOUR_TESLA_CLIENT_ID"
PLACEHOLDER_CLIENT_SECRET = "YOUR_TESLA_CLIENT_SECRET"

DEFAULT_SCOPES: tuple[str, ...] = (
    "openid",
    "email",
    "offline_access",
    "vehicle_device_data",
    "vehicle_charging_cmds",
    "vehicle_cmds",
)

# Durable store keys. Written and removed as a pair.
ACCESS_TOKEN_KEY = "tesla_access_token"
REFRESH_TOKEN_KEY = "tesla_refresh_token"
# Outstanding OAuth state token, kept until the matching code is exchanged.
OAUTH_STATE_KEY = "tesla_oauth_state"

#: Default vehicle-list freshness window in seconds.
VEHICLE_CACHE_TTL: float = 5 * 60

# ------------------------------------------------------------------
# Units
# ------------------------------------------------------------------

MILES_TO_KM = 1.60934

# ------------------------------------------------------------------
# Lookup tables used by the normalization pipeline
# ------------------------------------------------------------------

KNOWN_MODELS: tuple[str, ...] = ("Model S", "Model 3", "Model X", "Model Y", "Cybertruck", "Roadster")
DEFAULT_MODEL = "Tesla"

# Rated pack capacity (kWh) per model family.
RATED_CAPACITY_KWH: dict[str, float] = {
    "Model S": 100.0,
    "Model X": 100.0,
    "Model 3": 75.0,
    "Model Y": 75.0,
}
DEFAULT_CAPACITY_KWH = 75.0

# VIN position 10 model-year codes. I, O, Q and U are never used.
VIN_YEAR_INDEX = 9
VIN_YEAR_CODES: dict[str, int] = {
    "A": 2010,
    "B": 2011,
    "C": 2012,
    "D": 2013,
    "E": 2014,
    "F": 2015,
    "G": 2016,
    "H": 2017,
    "J": 2018,
    "K": 2019,
    "L": 2020,
    "M": 2021,
    "N": 2022,
    "P": 2023,
    "R": 2024,
    "S": 2025,
}
DEFAULT_YEAR = 2023

UNKNOWN_LOCATION = "Unknown Location"

# Voltage-spread proxy: distance of the charger voltage from nominal pack voltage.
NOMINAL_PACK_VOLTAGE = 400.0
MIN_ESTIMATED_HEALTH = 85.0
HEALTH_SPREAD_WEIGHT = 50.0

# The Fleet API does not expose cell-level voltages.
BRICK_VOLTAGE_MAX = 4.15
BRICK_VOLTAGE_MIN = 4.12

ESTIMATED_EFFICIENCY_KWH_PER_100KM = 15.2
PLACEHOLDER_TIRE_PRESSURE_PSI: dict[str, float] = {
    "front_left": 42.0,
    "front_right": 42.0,
    "rear_left": 40.0,
    "rear_right": 40.0,
}
BATTERY_TEMP_HEATER_ON_C = 26.0
BATTERY_TEMP_DEFAULT_C = 24.0

LOW_BATTERY_THRESHOLD = 20
