"""Outbound booking / activity-search links attached to booking reminders."""

from typing import Any, Protocol

import httpx

from companion.config import settings


class LinkGenerator(Protocol):
    def generate(self, params: dict[str, Any]) -> dict[str, str]: ...


class LodgingSearchLinkGenerator:
    """Hotel search deep link for a city and optional dates."""

    def __init__(self, base_url: str | None = None):
        self.base_url = base_url or settings.lodging_search_base_url

    def generate(self, params: dict[str, Any]) -> dict[str, str]:
        query: dict[str, Any] = {"ss": params.get("city", "")}
        if params.get("checkin"):
            query["checkin"] = str(params["checkin"])
        if params.get("checkout"):
            query["checkout"] = str(params["checkout"])
        if params.get("adults"):
            query["group_adults"] = params["adults"]
        return {"url": str(httpx.URL(self.base_url, params=query))}


class ActivitySearchLinkGenerator:
    """Tickets / tours search for a named attraction."""

    def __init__(self, base_url: str | None = None):
        self.base_url = base_url or settings.activity_search_base_url

    def generate(self, params: dict[str, Any]) -> dict[str, str]:
        terms = " ".join(p for p in (params.get("name"), params.get("city")) if p)
        return {"url": str(httpx.URL(self.base_url, params={"q": terms}))}


def default_link_generators() -> dict[str, LinkGenerator]:
    return {
        "lodging": LodgingSearchLinkGenerator(),
        "activity": ActivitySearchLinkGenerator(),
    }
