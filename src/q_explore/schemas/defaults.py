"""Default values for the q-explore history client.

These constants are used as `Field(default=...)` values in the Pydantic
schemas and as keys/limits by the services layer. They live in the schemas
layer so that `schemas` does not depend on `services`.

All distances are in METERS (the canonical unit). Display units are a
presentation concern handled by `q_explore.core.units`.
"""

# --- Persistent key-value slots ---
HISTORY_STORAGE_KEY = "q-explore-history"
SETTINGS_STORAGE_KEY = "q-explore-settings"

# --- History ---
HISTORY_CAPACITY = 100  # Hard cap on stored records; oldest evicted first

# --- Generation request ---
DEFAULT_RADIUS_METERS = 3000.0
DEFAULT_POINTS = 10000  # Points sampled per circle by the generation API
DEFAULT_BACKEND = "pseudo"
DEFAULT_MODE = "standard"
DEFAULT_RESULT_TYPE = "attractor"  # Selector used when a record stores none

# --- Display settings ---
DEFAULT_UNIT_SYSTEM = "metric"
DEFAULT_MAP_PROVIDER = "google"
MAP_PROVIDERS = ("google", "openstreetmap", "apple")

# --- Replay / map view ---
REPLAY_ZOOM = 13  # Zoom used when centering the map on a replayed request
MAP_LINK_ZOOM = 15  # Zoom embedded in external map links
