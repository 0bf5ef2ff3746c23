"""Strongly typed column names for history DataFrames.

Defines the data contract between the history schemas and tabular export.
"""


class ColumnNames:
    """Column name constants for flattened HistoryRecord rows."""

    ID = "id"
    TIMESTAMP = "timestamp"
    NAME = "name"
    FAVORITE = "favorite"
    CENTER_LAT = "center_lat"
    CENTER_LNG = "center_lng"
    RADIUS_METERS = "radius_meters"
    MODE = "mode"
    BACKEND = "backend"
    RESULT_TYPE = "result_type"
    WINNER_LAT = "winner_lat"
    WINNER_LNG = "winner_lng"
    Z_SCORE = "z_score"
    IS_ATTRACTOR = "is_attractor"
