"""External map links and share links."""

import logging
from urllib.parse import parse_qs, urlencode

from pydantic import ValidationError

from q_explore.schemas import GenerationRequest, ResultType, SharedView
from q_explore.schemas.defaults import DEFAULT_MAP_PROVIDER, MAP_LINK_ZOOM

logger = logging.getLogger(__name__)

MAP_URL_TEMPLATES = {
    "google": "https://www.google.com/maps/@{lat},{lng}," + f"{MAP_LINK_ZOOM}z",
    "openstreetmap": "https://www.openstreetmap.org/#map=18/{lat}/{lng}",
    "apple": "https://maps.apple.com/?ll={lat},{lng}",
}


def map_url(lat: float, lng: float, provider: str = DEFAULT_MAP_PROVIDER) -> str:
    """Link to a coordinate on an external map. Unknown providers use Google."""
    template = MAP_URL_TEMPLATES.get(provider)
    if template is None:
        logger.debug(f"Unknown map provider {provider!r}, using Google")
        template = MAP_URL_TEMPLATES[DEFAULT_MAP_PROVIDER]
    return template.format(lat=lat, lng=lng)


def share_query(
    request: GenerationRequest, result_type: ResultType | str | None = None
) -> str:
    """Query string reproducing a request's form state, e.g. ``?lat=..&lng=..``."""
    params = {
        "lat": request.lat,
        "lng": request.lng,
        "radius": request.radius,
        "mode": request.mode.value,
        "backend": request.backend,
    }
    selected = result_type or request.result_type
    if selected is not None:
        params["type"] = ResultType(selected).value
    return "?" + urlencode(params)


def parse_share_query(query: str) -> SharedView | None:
    """Read a share link's query string.

    Returns:
        The shared form state, or None when lat/lng are missing or invalid.
        Invalid optional parameters are dropped rather than failing the link.
    """
    params = {k: v[0] for k, v in parse_qs(query.lstrip("?")).items() if v}
    if "lat" not in params or "lng" not in params:
        return None

    try:
        view = SharedView(lat=params["lat"], lng=params["lng"])
    except ValidationError:
        logger.debug(f"Ignoring share link with invalid location: {query!r}")
        return None

    optional = {
        "radius": params.get("radius"),
        "mode": params.get("mode"),
        "backend": params.get("backend"),
        "result_type": params.get("type"),
    }
    for name, value in optional.items():
        if value is None:
            continue
        try:
            view = SharedView(**{**view.model_dump(), name: value})
        except ValidationError:
            logger.debug(f"Ignoring invalid share parameter {name}={value!r}")
    return view
