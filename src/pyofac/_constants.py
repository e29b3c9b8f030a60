"""Internal constants shared across the library."""

OFAC_URL = "https://www.treasury.gov/ofac/downloads/sanctions/1.0/sdn_advanced.xml"
USER_AGENT = "pyofac"

#: ``FeatureTypeID`` of the "Digital Currency Address - XBT" feature.
BTC_FEATURE_TYPE_ID = "344"

DEFAULT_POLL_INTERVAL: float = 600.0
DEFAULT_PROBE_BYTES = 16 * 1024
DEFAULT_PROBE_TIMEOUT: float = 30.0
DEFAULT_REQUEST_TIMEOUT: float = 300.0
DEFAULT_PARSE_CHUNK_SIZE = 64 * 1024

# ------------------------------------------------------------------
# SDN advanced XML vocabulary
# ------------------------------------------------------------------

FEATURE_TAG = "Feature"
FEATURE_TYPE_ATTR = "FeatureTypeID"
VERSION_DETAIL_TAG = "VersionDetail"

PUBLISH_YEAR_TAG = "Year"
PUBLISH_MONTH_TAG = "Month"
PUBLISH_DAY_TAG = "Day"
